"""
Flex Sensor - Self-calibrating flex/resistance sensor handling
Maps raw resistance readings onto a joint rotation using an observed min/max range.
Resistance is expected to rise with bend, but a mounting reset may invert the range.
"""

import math
import logging
from enum import Enum
from typing import Optional
import numpy as np
from scipy.spatial.transform import Rotation as R

from .trackers import Tracker, TrackerRole


HALF_PI = math.pi / 2
QUARTER_PI = math.pi / 4

_DISTAL_ROLES = {role for role in TrackerRole if role.is_finger and role.value.endswith("_distal")}
_INTERMEDIATE_ROLES = {role for role in TrackerRole if role.is_finger and role.value.endswith("_intermediate")}
_PROXIMAL_ROLES = {role for role in TrackerRole if role.is_finger and role.value.endswith("_proximal")}
_SHOULDER_ROLES = {TrackerRole.LEFT_SHOULDER, TrackerRole.RIGHT_SHOULDER}


def max_angle_for_role(role: Optional[TrackerRole]) -> float:
    """Maximum bend angle (radians) a sensor on the given role can report"""
    if role is None:
        return math.pi  # 180 degrees
    if role in _DISTAL_ROLES:
        return math.pi + HALF_PI  # 270 degrees
    if role in _INTERMEDIATE_ROLES:
        return math.pi  # 180 degrees
    if role in _PROXIMAL_ROLES:
        return HALF_PI  # 90 degrees
    if role in _SHOULDER_ROLES:
        return QUARTER_PI  # 45 degrees
    return HALF_PI + QUARTER_PI  # 135 degrees


def rotation_for_angle(role: Optional[TrackerRole], angle: float) -> np.ndarray:
    """
    Build the [w, x, y, z] quaternion for a flex angle on a given role.

    Left fingers and the right shoulder bend about +Z, right fingers and the
    left shoulder about -Z. Everything else pitches about X.
    """
    if role is not None and (role.is_left_finger or role == TrackerRole.RIGHT_SHOULDER):
        r = R.from_euler('z', angle)
    elif role is not None and (role.is_right_finger or role == TrackerRole.LEFT_SHOULDER):
        r = R.from_euler('z', -angle)
    else:
        r = R.from_euler('x', angle)

    quat = r.as_quat()  # [x, y, z, w] format
    return np.array([quat[3], quat[0], quat[1], quat[2]])  # [w, x, y, z]


class CalibrationState(Enum):
    """Shape of the observed resistance range"""
    UNINITIALIZED = "uninitialized"
    NORMAL = "normal"
    INVERTED = "inverted"


class CalibratedFlexSensor:
    """Converts raw flex resistance into a tracker rotation with a self-widening range"""

    def __init__(self, tracker: Tracker, clamp_angles: bool = False):
        self.logger = logging.getLogger(__name__)
        self.tracker = tracker
        self.clamp_angles = clamp_angles

        self.min_observed: Optional[float] = None
        self.max_observed: Optional[float] = None
        self.last_raw_value = 0.0
        self.current_angle = 0.0

    @property
    def calibration_state(self) -> CalibrationState:
        return self._state_of(self.min_observed, self.max_observed)

    @staticmethod
    def _state_of(low: Optional[float], high: Optional[float]) -> CalibrationState:
        if low is None or high is None:
            return CalibrationState.UNINITIALIZED
        if low > high:
            return CalibrationState.INVERTED
        return CalibrationState.NORMAL

    def _next_min(self, value: float) -> float:
        if self.min_observed is None:
            return value
        if self.calibration_state is CalibrationState.INVERTED:
            # Inverted: the min bound may only move back towards max
            return max(self.min_observed, value)
        return min(self.min_observed, value)

    def _next_max(self, value: float) -> float:
        if self.max_observed is None:
            return value
        if self.calibration_state is CalibrationState.INVERTED:
            return min(self.max_observed, value)
        return max(self.max_observed, value)

    def reset_min(self) -> None:
        """Reset the min resistance from the last resistance value received"""
        self.min_observed = self.last_raw_value
        self.logger.debug(f"{self.tracker.name}: min resistance reset to {self.last_raw_value}")

        self.set_reading(self.last_raw_value)
        self.tracker.data_tick()

    def reset_max(self) -> None:
        """Reset the max resistance from the last resistance value received"""
        self.max_observed = self.last_raw_value
        self.logger.debug(f"{self.tracker.name}: max resistance reset to {self.last_raw_value}")

        self.set_reading(self.last_raw_value)
        self.tracker.data_tick()

    def restore_calibration(self, min_observed: Optional[float], max_observed: Optional[float]) -> None:
        """Load previously observed bounds, e.g. from a saved mounting calibration"""
        self.min_observed = min_observed
        self.max_observed = max_observed
        if self.calibration_state is CalibrationState.INVERTED:
            self.logger.info(f"{self.tracker.name}: restored inverted flex range "
                             f"({min_observed} > {max_observed})")

    def set_reading(self, value: float) -> float:
        """
        Set the flex resistance, which is then calculated into an angle.

        The min bound is updated first and the max bound is checked against
        the already-updated min, so an inverted range converges one reading
        at a time instead of jumping.

        Returns:
            The angle (radians) applied to the tracker
        """
        self.min_observed = self._next_min(value)
        self.max_observed = self._next_max(value)

        max_bend = max_angle_for_role(self.tracker.role)

        if self.min_observed == self.max_observed:
            # Avoid division by 0
            angle = 0.0
        else:
            angle = max_bend * (value - self.min_observed) / (self.max_observed - self.min_observed)

        if self.clamp_angles:
            angle = min(max(angle, 0.0), max_bend)

        self.set_angle(angle)
        self.last_raw_value = value
        return angle

    def set_angle(self, angle: float) -> None:
        """Set an angle (radians) about the axis given by the tracker's role"""
        self.current_angle = angle
        self.tracker.set_rotation(rotation_for_angle(self.tracker.role, angle))

    def __repr__(self) -> str:
        return (f"CalibratedFlexSensor(tracker={self.tracker.name!r}, min={self.min_observed}, "
                f"max={self.max_observed}, state={self.calibration_state.name})")
