"""Tests for the self-calibrating flex sensor."""

import math

import numpy as np
import pytest
from scipy.spatial.transform import Rotation as R

from trackfuse.bin.core.flex_sensor import (
    CalibratedFlexSensor,
    CalibrationState,
    max_angle_for_role,
    rotation_for_angle,
)
from trackfuse.bin.core.trackers import Tracker, TrackerRole


def make_sensor(role=TrackerRole.LEFT_INDEX_PROXIMAL, clamp_angles=False) -> CalibratedFlexSensor:
    tracker = Tracker(1000, name="flex", role=role, has_rotation=True)
    return CalibratedFlexSensor(tracker, clamp_angles=clamp_angles)


def applied_angle(sensor: CalibratedFlexSensor) -> float:
    w, x, y, z = sensor.tracker.rotation
    return R.from_quat([x, y, z, w]).magnitude()


@pytest.mark.parametrize(
    "role, degrees",
    [
        (TrackerRole.LEFT_THUMB_PROXIMAL, 90),
        (TrackerRole.RIGHT_LITTLE_PROXIMAL, 90),
        (TrackerRole.LEFT_MIDDLE_INTERMEDIATE, 180),
        (TrackerRole.RIGHT_RING_INTERMEDIATE, 180),
        (TrackerRole.LEFT_INDEX_DISTAL, 270),
        (TrackerRole.RIGHT_THUMB_DISTAL, 270),
        (TrackerRole.LEFT_SHOULDER, 45),
        (TrackerRole.RIGHT_SHOULDER, 45),
        (TrackerRole.LEFT_LOWER_LEG, 135),
        (TrackerRole.HEAD, 135),
        (None, 180),
    ],
)
def test_max_angle_for_role(role, degrees) -> None:
    assert max_angle_for_role(role) == pytest.approx(math.radians(degrees))


def test_max_angle_ordering() -> None:
    distal = max_angle_for_role(TrackerRole.LEFT_RING_DISTAL)
    intermediate = max_angle_for_role(TrackerRole.LEFT_RING_INTERMEDIATE)
    proximal = max_angle_for_role(TrackerRole.LEFT_RING_PROXIMAL)
    shoulder = max_angle_for_role(TrackerRole.RIGHT_SHOULDER)
    assert distal > intermediate > proximal > shoulder


def test_fresh_sensor_is_uninitialized() -> None:
    sensor = make_sensor()
    assert sensor.calibration_state is CalibrationState.UNINITIALIZED
    assert sensor.min_observed is None
    assert sensor.max_observed is None


def test_repeated_identical_readings_keep_zero_angle() -> None:
    sensor = make_sensor()
    for _ in range(3):
        assert sensor.set_reading(5.0) == 0.0
    assert sensor.min_observed == sensor.max_observed == 5.0
    assert sensor.calibration_state is CalibrationState.NORMAL


def test_monotonic_readings_widen_range() -> None:
    sensor = make_sensor(TrackerRole.LEFT_INDEX_PROXIMAL)

    assert sensor.set_reading(2) == 0.0
    assert sensor.set_reading(4) == pytest.approx(math.radians(90))
    assert (sensor.min_observed, sensor.max_observed) == (2, 4)

    assert sensor.set_reading(6) == pytest.approx(math.radians(90))
    assert (sensor.min_observed, sensor.max_observed) == (2, 6)

    assert sensor.set_reading(4) == pytest.approx(math.radians(45))
    assert sensor.last_raw_value == 4


def test_angle_is_applied_to_tracker_rotation() -> None:
    sensor = make_sensor(TrackerRole.LEFT_INDEX_PROXIMAL)
    sensor.set_reading(0)
    sensor.set_reading(10)
    sensor.set_reading(5)
    assert applied_angle(sensor) == pytest.approx(math.radians(45))
    assert sensor.current_angle == pytest.approx(math.radians(45))


def test_reset_min_snaps_to_last_value() -> None:
    sensor = make_sensor()
    for value in (2, 4, 6, 8):
        sensor.set_reading(value)
    ticks = sensor.tracker.data_ticks

    sensor.reset_min()

    assert sensor.min_observed == 8
    assert sensor.max_observed == 8
    assert sensor.current_angle == 0.0
    assert sensor.tracker.data_ticks == ticks + 1
    assert sensor.set_reading(8) == 0.0


def test_reset_max_snaps_to_last_value() -> None:
    sensor = make_sensor(TrackerRole.RIGHT_INDEX_INTERMEDIATE)
    for value in (10, 2, 6):
        sensor.set_reading(value)

    sensor.reset_max()

    assert (sensor.min_observed, sensor.max_observed) == (2, 6)
    assert sensor.current_angle == pytest.approx(math.radians(180))
    assert sensor.tracker.data_ticks == 1


def test_reading_below_range_is_not_clamped_until_range_widens() -> None:
    sensor = make_sensor(TrackerRole.LEFT_INDEX_PROXIMAL)
    sensor.restore_calibration(2.0, 6.0)

    # Range widens before the angle is computed, so a new extreme maps to a bound
    assert sensor.set_reading(0.0) == pytest.approx(0.0)
    assert sensor.min_observed == 0.0


def test_inverted_range_moves_one_reading_at_a_time() -> None:
    sensor = make_sensor(TrackerRole.LEFT_INDEX_PROXIMAL)
    sensor.restore_calibration(8.0, 2.0)
    assert sensor.calibration_state is CalibrationState.INVERTED

    angle = sensor.set_reading(5.0)

    assert sensor.min_observed == 8.0
    assert sensor.max_observed == 2.0
    assert angle == pytest.approx(math.radians(90) * (5.0 - 8.0) / (2.0 - 8.0))


def test_inverted_range_tracks_new_extremes() -> None:
    sensor = make_sensor(TrackerRole.LEFT_INDEX_PROXIMAL)
    sensor.restore_calibration(8.0, 2.0)

    angle = sensor.set_reading(1.0)

    # min stays at 8, max shrinks to 1: the reading sits exactly on max
    assert (sensor.min_observed, sensor.max_observed) == (8.0, 1.0)
    assert angle == pytest.approx(math.radians(90))

    angle = sensor.set_reading(9.0)
    assert (sensor.min_observed, sensor.max_observed) == (9.0, 1.0)
    assert angle == pytest.approx(0.0)


def test_half_initialized_range_behaves_as_normal() -> None:
    sensor = make_sensor()
    sensor.reset_min()  # last raw value is still 0.0
    assert sensor.min_observed == 0.0
    assert sensor.max_observed == 0.0

    sensor.set_reading(3.0)
    assert (sensor.min_observed, sensor.max_observed) == (0.0, 3.0)


@pytest.mark.parametrize("clamp_angles", [False, True])
def test_angle_stays_within_role_bounds(clamp_angles) -> None:
    sensor = make_sensor(TrackerRole.LEFT_INDEX_DISTAL, clamp_angles=clamp_angles)
    max_bend = max_angle_for_role(TrackerRole.LEFT_INDEX_DISTAL)
    readings = [300.0, 120.0, 950.0, 10.0, 475.5, 1200.0, 600.0]

    for restored in [(None, None), (900.0, 100.0), (400.0, 380.0)]:
        sensor.restore_calibration(*restored)
        for value in readings:
            angle = sensor.set_reading(value)
            assert 0.0 <= angle <= max_bend + 1e-9


def test_clamp_policy_keeps_in_range_results() -> None:
    clamped = make_sensor(clamp_angles=True)
    unclamped = make_sensor()
    for value in (3.0, 9.0, 4.5):
        assert clamped.set_reading(value) == pytest.approx(unclamped.set_reading(value))


@pytest.mark.parametrize(
    "role, axis, sign",
    [
        (TrackerRole.LEFT_INDEX_PROXIMAL, 2, 1.0),
        (TrackerRole.RIGHT_SHOULDER, 2, 1.0),
        (TrackerRole.RIGHT_INDEX_PROXIMAL, 2, -1.0),
        (TrackerRole.LEFT_SHOULDER, 2, -1.0),
        (TrackerRole.LEFT_LOWER_ARM, 0, 1.0),
        (None, 0, 1.0),
    ],
)
def test_rotation_axis_and_sign_follow_role(role, axis, sign) -> None:
    quat = rotation_for_angle(role, math.radians(60))
    w, vector = quat[0], quat[1:]
    rotvec = R.from_quat([*vector, w]).as_rotvec()

    expected = np.zeros(3)
    expected[axis] = sign * math.radians(60)
    assert rotvec == pytest.approx(expected)


def test_zero_angle_is_identity() -> None:
    assert rotation_for_angle(TrackerRole.LEFT_THUMB_DISTAL, 0.0) == pytest.approx([1.0, 0.0, 0.0, 0.0])
