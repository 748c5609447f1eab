"""
Skeleton Model - Minimal skeletal model fed by the tracker pipeline
Owns the computed hand slots read by the IK solver
"""

import logging
from typing import Optional

from .trackers import Tracker, TrackerRegistry
from .hand_source_arbiter import HandSourceArbiter


class SkeletonModel:
    """Skeleton state written by the input pipeline each tick"""

    def __init__(self, registry: TrackerRegistry):
        self.logger = logging.getLogger(__name__)
        self.registry = registry

        self.computed_left_hand_tracker: Optional[Tracker] = None
        self.computed_right_hand_tracker: Optional[Tracker] = None

        self.hand_source_arbiter = HandSourceArbiter(self, registry)
        self.update_count = 0

    def update(self) -> None:
        """Refresh tracker-derived state. Must run on the thread that owns the skeleton."""
        self.hand_source_arbiter.update()
        self.update_count += 1
