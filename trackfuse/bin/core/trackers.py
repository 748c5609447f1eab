"""
Trackers - Tracker model and live tracker registry for TrackFuse
Holds the per-tracker pose state shared by calibration, hand selection and recording
"""

import time
import logging
import itertools
from enum import Enum
from typing import Dict, List, Optional
import numpy as np


class TrackerRole(Enum):
    """Anatomical role a tracker is attached to"""
    HEAD = "head"
    NECK = "neck"
    CHEST = "chest"
    WAIST = "waist"
    HIP = "hip"
    LEFT_UPPER_LEG = "left_upper_leg"
    RIGHT_UPPER_LEG = "right_upper_leg"
    LEFT_LOWER_LEG = "left_lower_leg"
    RIGHT_LOWER_LEG = "right_lower_leg"
    LEFT_FOOT = "left_foot"
    RIGHT_FOOT = "right_foot"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_UPPER_ARM = "left_upper_arm"
    RIGHT_UPPER_ARM = "right_upper_arm"
    LEFT_LOWER_ARM = "left_lower_arm"
    RIGHT_LOWER_ARM = "right_lower_arm"
    LEFT_HAND = "left_hand"
    RIGHT_HAND = "right_hand"
    LEFT_CONTROLLER = "left_controller"
    RIGHT_CONTROLLER = "right_controller"

    LEFT_THUMB_PROXIMAL = "left_thumb_proximal"
    LEFT_THUMB_INTERMEDIATE = "left_thumb_intermediate"
    LEFT_THUMB_DISTAL = "left_thumb_distal"
    LEFT_INDEX_PROXIMAL = "left_index_proximal"
    LEFT_INDEX_INTERMEDIATE = "left_index_intermediate"
    LEFT_INDEX_DISTAL = "left_index_distal"
    LEFT_MIDDLE_PROXIMAL = "left_middle_proximal"
    LEFT_MIDDLE_INTERMEDIATE = "left_middle_intermediate"
    LEFT_MIDDLE_DISTAL = "left_middle_distal"
    LEFT_RING_PROXIMAL = "left_ring_proximal"
    LEFT_RING_INTERMEDIATE = "left_ring_intermediate"
    LEFT_RING_DISTAL = "left_ring_distal"
    LEFT_LITTLE_PROXIMAL = "left_little_proximal"
    LEFT_LITTLE_INTERMEDIATE = "left_little_intermediate"
    LEFT_LITTLE_DISTAL = "left_little_distal"

    RIGHT_THUMB_PROXIMAL = "right_thumb_proximal"
    RIGHT_THUMB_INTERMEDIATE = "right_thumb_intermediate"
    RIGHT_THUMB_DISTAL = "right_thumb_distal"
    RIGHT_INDEX_PROXIMAL = "right_index_proximal"
    RIGHT_INDEX_INTERMEDIATE = "right_index_intermediate"
    RIGHT_INDEX_DISTAL = "right_index_distal"
    RIGHT_MIDDLE_PROXIMAL = "right_middle_proximal"
    RIGHT_MIDDLE_INTERMEDIATE = "right_middle_intermediate"
    RIGHT_MIDDLE_DISTAL = "right_middle_distal"
    RIGHT_RING_PROXIMAL = "right_ring_proximal"
    RIGHT_RING_INTERMEDIATE = "right_ring_intermediate"
    RIGHT_RING_DISTAL = "right_ring_distal"
    RIGHT_LITTLE_PROXIMAL = "right_little_proximal"
    RIGHT_LITTLE_INTERMEDIATE = "right_little_intermediate"
    RIGHT_LITTLE_DISTAL = "right_little_distal"

    @property
    def is_left_finger(self) -> bool:
        return self.value.startswith("left_") and self.value.endswith(
            ("_proximal", "_intermediate", "_distal"))

    @property
    def is_right_finger(self) -> bool:
        return self.value.startswith("right_") and self.value.endswith(
            ("_proximal", "_intermediate", "_distal"))

    @property
    def is_finger(self) -> bool:
        return self.is_left_finger or self.is_right_finger


class TrackerStatus(Enum):
    """Connection/data status of a tracker"""
    DISCONNECTED = "disconnected"
    OK = "ok"
    BUSY = "busy"
    ERROR = "error"
    OCCLUDED = "occluded"
    TIMED_OUT = "timed_out"


_local_tracker_ids = itertools.count(1)


def next_local_tracker_id() -> int:
    """Allocate a process-wide id for trackers created by the server itself"""
    return next(_local_tracker_ids)


class Tracker:
    """Represents the state of a single tracker"""

    def __init__(self, tracker_id: int, name: str = "",
                 role: Optional[TrackerRole] = None,
                 has_position: bool = False,
                 has_rotation: bool = False,
                 has_acceleration: bool = False,
                 is_internal: bool = False,
                 is_computed: bool = False,
                 device: Optional[str] = None):
        self.id = tracker_id
        self.name = name or f"tracker_{tracker_id}"
        self.role = role
        self.device = device

        self.position = np.array([0.0, 0.0, 0.0])
        self.rotation = np.array([1.0, 0.0, 0.0, 0.0])  # w, x, y, z quaternion
        self.acceleration = np.array([0.0, 0.0, 0.0])

        self.has_position = has_position
        self.has_rotation = has_rotation
        self.has_acceleration = has_acceleration
        self.is_internal = is_internal
        self.is_computed = is_computed

        self.status = TrackerStatus.DISCONNECTED
        self.last_update = 0.0
        self.data_ticks = 0

    def set_position(self, position) -> None:
        self.position = np.asarray(position, dtype=float).copy()

    def set_rotation(self, rotation) -> None:
        """Set rotation from a [w, x, y, z] quaternion"""
        self.rotation = np.asarray(rotation, dtype=float).copy()

    def set_acceleration(self, acceleration) -> None:
        self.acceleration = np.asarray(acceleration, dtype=float).copy()

    def data_tick(self) -> None:
        """Mark that fresh data arrived for this tracker"""
        self.last_update = time.time()
        self.data_ticks += 1

    def __repr__(self) -> str:
        role = self.role.name if self.role else None
        return f"Tracker(id={self.id}, name={self.name!r}, role={role}, status={self.status.name})"


class TrackerRegistry:
    """Registry of all live trackers, iterated in registration order"""

    def __init__(self, max_trackers: Optional[int] = None):
        self.logger = logging.getLogger(__name__)
        self.trackers: Dict[int, Tracker] = {}
        self.max_trackers = max_trackers

    def add(self, tracker: Tracker) -> Tracker:
        if tracker.id in self.trackers:
            self.logger.debug(f"Tracker {tracker.id} already registered")
            return self.trackers[tracker.id]

        if self.max_trackers is not None and len(self.trackers) >= self.max_trackers:
            raise ValueError(f"Tracker limit reached ({self.max_trackers})")

        self.trackers[tracker.id] = tracker
        self.logger.info(f"Tracker registered: {tracker}")
        return tracker

    def remove(self, tracker_id: int) -> Optional[Tracker]:
        tracker = self.trackers.pop(tracker_id, None)
        if tracker:
            self.logger.info(f"Tracker removed: {tracker}")
        return tracker

    def get(self, tracker_id: int) -> Optional[Tracker]:
        return self.trackers.get(tracker_id)

    def find_by_role(self, role: TrackerRole) -> List[Tracker]:
        return [t for t in self.trackers.values() if t.role == role]

    def all_trackers(self) -> List[Tracker]:
        """Snapshot of every registered tracker in registration order"""
        return list(self.trackers.values())

    def __len__(self) -> int:
        return len(self.trackers)

    def __iter__(self):
        return iter(self.all_trackers())
