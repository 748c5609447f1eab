"""
Hand Source Arbiter - Picks which tracker drives each hand of the skeleton
Controllers are used when they report a real position; hand tracking replaces
a controller only once that controller was seen earlier in the same scan.
"""

import logging
from typing import Optional
import numpy as np

from .trackers import Tracker, TrackerRegistry, TrackerRole


ORIGIN = np.array([0.0, 0.0, 0.0])


def _has_live_position(tracker: Tracker) -> bool:
    # TODO: check whether the controller is in the headset's view instead of rejecting the origin
    return tracker.has_position and not np.array_equal(tracker.position, ORIGIN)


class HandSourceArbiter:
    """Selects the left/right hand source trackers on every skeleton update"""

    def __init__(self, skeleton, registry: TrackerRegistry):
        self.logger = logging.getLogger(__name__)
        self.skeleton = skeleton
        self.registry = registry
        self.is_enabled = False

    def set_enabled(self, value: bool) -> None:
        """Enable substitution. Once enabled it stays enabled for this instance."""
        if value and not self.is_enabled:
            self.is_enabled = True
            self.logger.info("Hand source substitution enabled")

    def update(self) -> None:
        if not self.is_enabled:
            return

        left_hand_tracker: Optional[Tracker] = None
        right_hand_tracker: Optional[Tracker] = None

        for tracker in self.registry.all_trackers():
            role = tracker.role
            if role == TrackerRole.LEFT_CONTROLLER and _has_live_position(tracker):
                left_hand_tracker = tracker
            elif role == TrackerRole.RIGHT_CONTROLLER and _has_live_position(tracker):
                right_hand_tracker = tracker
            elif (left_hand_tracker is not None and role == TrackerRole.LEFT_HAND
                  and _has_live_position(tracker)):
                left_hand_tracker = tracker
            elif (right_hand_tracker is not None and role == TrackerRole.RIGHT_HAND
                  and _has_live_position(tracker)):
                right_hand_tracker = tracker

        if left_hand_tracker is not self.skeleton.computed_left_hand_tracker:
            self.logger.debug(f"Left hand source: {left_hand_tracker}")
        if right_hand_tracker is not self.skeleton.computed_right_hand_tracker:
            self.logger.debug(f"Right hand source: {right_hand_tracker}")

        self.skeleton.computed_left_hand_tracker = left_hand_tracker
        self.skeleton.computed_right_hand_tracker = right_hand_tracker
