"""
TrackFuse - Headless entry point
Runs a simulated tracking session or inspects a saved recording
"""

import os
import sys
import math
import time
import logging
import argparse
from typing import List, Optional

from trackfuse.bin.core.config_manager import ConfigManager
from trackfuse.bin.core.performance_monitor import performance_monitor
from trackfuse.bin.core.recording_io import RecordingFormatError, load_recording
from trackfuse.bin.core.trackers import Tracker, TrackerRole, TrackerStatus, next_local_tracker_id
from trackfuse.bin.tracking_server import TrackingServer

logger = logging.getLogger("trackfuse.main")


class LessSpammyFilter(logging.Filter):
    def filter(self, record):
        # Only show INFO/DEBUG for lifecycle messages unless debugging is enabled
        if record.levelno >= logging.WARNING:
            return True
        if os.environ.get('TRACKFUSE_DEBUG', '0') == '1':
            return True
        message = record.getMessage().lower()
        return any(keyword in message for keyword in
                   ['initialized', 'started', 'stopped', 'saved', 'loaded', 'stream', 'summary'])


def configure_logging(level: str = "INFO"):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    handler.addFilter(LessSpammyFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trackfuse", description="TrackFuse tracker input pipeline")
    parser.add_argument("--config", help="Path to the configuration file")
    parser.add_argument("--ticks", type=int, default=0, help="Run a simulated session for this many ticks")
    parser.add_argument("--record", metavar="PATH", help="Record the simulated session to PATH")
    parser.add_argument("--inspect", metavar="PATH", help="Summarize a saved recording")
    return parser


def setup_simulated_session(server: TrackingServer) -> List[Tracker]:
    """Register a controller, a hand-tracking source and one finger per hand"""
    trackers = []
    for name, role in [("left_controller", TrackerRole.LEFT_CONTROLLER),
                       ("right_controller", TrackerRole.RIGHT_CONTROLLER),
                       ("left_hand", TrackerRole.LEFT_HAND),
                       ("right_hand", TrackerRole.RIGHT_HAND)]:
        tracker = Tracker(next_local_tracker_id(), name=name, role=role,
                          has_position=True, has_rotation=True)
        tracker.status = TrackerStatus.OK
        trackers.append(server.add_tracker(tracker))

    server.create_flex_tracker("left_index_proximal", TrackerRole.LEFT_INDEX_PROXIMAL)
    server.create_flex_tracker("right_index_proximal", TrackerRole.RIGHT_INDEX_PROXIMAL)
    return trackers


def simulate_tick(server: TrackingServer, trackers: List[Tracker], tick: int):
    phase = tick / 30.0
    for offset, tracker in enumerate(trackers):
        side = -1.0 if tracker.role in (TrackerRole.LEFT_CONTROLLER, TrackerRole.LEFT_HAND) else 1.0
        tracker.set_position([side * 0.3, 1.2 + 0.05 * math.sin(phase + offset), 0.2])
        tracker.data_tick()

    for tracker_id in server.flex_sensors:
        server.set_flex_reading(tracker_id, 500.0 + 400.0 * math.sin(phase))


def run_session(server: TrackingServer, ticks: int, record_path: Optional[str]) -> int:
    trackers = setup_simulated_session(server)
    if record_path:
        server.start_recording()

    tick_interval = 1.0 / float(server.config_manager.get('performance.tick_rate'))
    performance_monitor.start_monitoring()
    try:
        for tick in range(ticks):
            simulate_tick(server, trackers, tick)
            server.tick()
            time.sleep(tick_interval)
    finally:
        performance_monitor.stop_monitoring()

    if record_path:
        server.stop_recording(record_path)

    logger.info(f"Session summary: {server.tick_count} ticks, "
                f"left hand source={server.skeleton.computed_left_hand_tracker}, "
                f"right hand source={server.skeleton.computed_right_hand_tracker}")
    return 0


def inspect_recording(path: str) -> int:
    recorder = load_recording(path)
    for history in recorder.histories.values():
        tracker = history.materialize_tracker()
        valid = sum(1 for frame in history if frame is not None)
        logger.info(f"Recorded stream {history.name}: {valid}/{len(history)} frames, "
                    f"role={tracker.role.name if tracker.role else None}, "
                    f"position={tracker.has_position}, rotation={tracker.has_rotation}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.config)
    configure_logging(config_manager.get('performance.log_level'))

    errors = config_manager.validate_config()
    if errors:
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        return 1

    performance_monitor.interval = float(config_manager.get('performance.monitor_interval'))

    try:
        if args.inspect:
            return inspect_recording(args.inspect)

        server = TrackingServer(config_manager)
        return run_session(server, args.ticks, args.record)

    except (OSError, RecordingFormatError) as e:
        logger.error(f"TrackFuse failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
