"""
TrackFuse Tracking Server - Tick-driven tracker input pipeline
Wires the tracker registry, flex calibration, hand source selection and recording
"""

import time
import logging
from pathlib import Path
from typing import Dict, Optional
from PySide6.QtCore import QObject, Signal

from .core.config_manager import ConfigManager
from .core.flex_sensor import CalibratedFlexSensor
from .core.performance_monitor import performance_monitor
from .core.pose_recorder import PoseRecorder
from .core.recording_io import save_recording
from .core.skeleton import SkeletonModel
from .core.trackers import Tracker, TrackerRegistry, TrackerRole, TrackerStatus, next_local_tracker_id


class TrackingServer(QObject):
    """Owns the live trackers and advances the input pipeline one tick at a time"""

    tracker_added = Signal(int, str)    # tracker_id, name
    tick_completed = Signal(int)        # tick number
    recording_saved = Signal(str)       # file path

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.config_manager = config_manager or ConfigManager()

        self.registry = TrackerRegistry(max_trackers=self.config_manager.get('trackers.max_trackers'))
        self.skeleton = SkeletonModel(self.registry)
        self.flex_sensors: Dict[int, CalibratedFlexSensor] = {}

        self.recorder: Optional[PoseRecorder] = None
        self.tick_count = 0

        if self.config_manager.get('hand_sources.substitute_inside_out_tracking'):
            self.set_hand_substitution_enabled(True)

        self.logger.info("Tracking server initialized")

    def add_tracker(self, tracker: Tracker) -> Tracker:
        """Register a tracker. Raises ValueError when the tracker limit is reached."""
        if self.registry.get(tracker.id) is tracker:
            return tracker
        self.registry.add(tracker)
        self.tracker_added.emit(tracker.id, tracker.name)
        return tracker

    def create_flex_tracker(self, name: str, role: Optional[TrackerRole] = None) -> CalibratedFlexSensor:
        """Create a rotation-only tracker driven by a flex sensor"""
        tracker = Tracker(next_local_tracker_id(), name=name, role=role, has_rotation=True)
        tracker.status = TrackerStatus.OK
        self.add_tracker(tracker)

        sensor = CalibratedFlexSensor(tracker, clamp_angles=bool(self.config_manager.get('flex.clamp_angles')))
        saved_range = self.config_manager.get_flex_range(name)
        if saved_range:
            sensor.restore_calibration(*saved_range)

        self.flex_sensors[tracker.id] = sensor
        return sensor

    def _flex_sensor(self, tracker_id: int) -> CalibratedFlexSensor:
        try:
            return self.flex_sensors[tracker_id]
        except KeyError:
            raise KeyError(f"No flex sensor for tracker {tracker_id}") from None

    def set_flex_reading(self, tracker_id: int, value: float) -> float:
        sensor = self._flex_sensor(tracker_id)
        angle = sensor.set_reading(value)
        sensor.tracker.data_tick()
        performance_monitor.record_flex_reading()
        return angle

    def reset_flex_min(self, tracker_id: int):
        sensor = self._flex_sensor(tracker_id)
        sensor.reset_min()
        self._remember_flex_range(sensor)

    def reset_flex_max(self, tracker_id: int):
        sensor = self._flex_sensor(tracker_id)
        sensor.reset_max()
        self._remember_flex_range(sensor)

    def _remember_flex_range(self, sensor: CalibratedFlexSensor):
        self.config_manager.set_flex_range(sensor.tracker.name, sensor.min_observed, sensor.max_observed)

    def set_hand_substitution_enabled(self, value: bool):
        self.skeleton.hand_source_arbiter.set_enabled(value)

    def start_recording(self) -> PoseRecorder:
        self.recorder = PoseRecorder()
        self.logger.info("Recording started")
        return self.recorder

    def stop_recording(self, file_path: Optional[str] = None) -> Optional[PoseRecorder]:
        """Stop recording and optionally export it. Returns the finished recording."""
        recorder, self.recorder = self.recorder, None
        if recorder is None:
            return None

        self.logger.info(f"Recording stopped after {recorder.frame_count} frames")
        if file_path:
            path = save_recording(recorder, file_path)
            self.recording_saved.emit(str(path))
        return recorder

    def default_recording_path(self) -> Path:
        directory = Path(self.config_manager.get('recording.output_directory'))
        return directory / f"recording_{time.strftime('%Y%m%d_%H%M%S')}.json"

    def tick(self) -> int:
        """Advance the pipeline by one tick. Must run on the thread owning the skeleton."""
        start_time = time.time()

        self.skeleton.update()

        if self.recorder is not None:
            captured = self.recorder.record(self.registry.all_trackers())
            performance_monitor.record_frames(captured)

        self.tick_count += 1
        performance_monitor.record_tick(start_time)
        self.tick_completed.emit(self.tick_count)
        return self.tick_count
