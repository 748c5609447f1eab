"""Tests for the headless entry point and performance counters."""

import json
import logging
import time

import pytest

from trackfuse import main as trackfuse_main
from trackfuse.bin.core.performance_monitor import PerformanceMonitor
from trackfuse.bin.core.trackers import TrackerRole


@pytest.fixture(autouse=True)
def keep_pytest_logging(monkeypatch):
    """main() replaces the root handlers, which would fight pytest's capture."""
    monkeypatch.setattr(trackfuse_main, "configure_logging", lambda level: None)


def write_config(tmp_path, **performance):
    path = tmp_path / "trackfuse_config.json"
    settings = {"tick_rate": 10000, "monitor_interval": 0.05}
    settings.update(performance)
    path.write_text(json.dumps({"performance": settings}), encoding="utf-8")
    return str(path)


def test_simulated_session_records_and_inspects(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(trackfuse_main.time, "sleep", lambda seconds: None)
    config = write_config(tmp_path)
    recording = tmp_path / "session.json"

    assert trackfuse_main.main(["--config", config, "--ticks", "5", "--record", str(recording)]) == 0

    document = json.loads(recording.read_text(encoding="utf-8"))
    names = {entry["name"] for entry in document["trackers"]}
    assert document["frame_count"] == 5
    assert {"left_controller", "left_hand", "left_index_proximal"} <= names

    assert trackfuse_main.main(["--config", config, "--inspect", str(recording)]) == 0


def test_inspect_reports_bad_recording(tmp_path) -> None:
    config = write_config(tmp_path)
    broken = tmp_path / "broken.json"
    broken.write_text("{}", encoding="utf-8")

    assert trackfuse_main.main(["--config", config, "--inspect", str(broken)]) == 1
    assert trackfuse_main.main(["--config", config, "--inspect", str(tmp_path / "missing.json")]) == 1


@pytest.mark.parametrize("performance", [{"tick_rate": 0}, {"monitor_interval": -1}])
def test_invalid_config_exits_with_error(tmp_path, monkeypatch, performance) -> None:
    monkeypatch.setattr(trackfuse_main.time, "sleep", lambda seconds: None)
    config = write_config(tmp_path, **performance)

    assert trackfuse_main.main(["--config", config, "--ticks", "1"]) == 1


def test_inspect_reports_unreadable_vectors(tmp_path) -> None:
    config = write_config(tmp_path)
    broken = tmp_path / "strings.json"
    broken.write_text(json.dumps({
        "version": 1,
        "trackers": [{"name": "x", "frames": [{"position": ["a", "b", "c"]}]}],
    }), encoding="utf-8")

    assert trackfuse_main.main(["--config", config, "--inspect", str(broken)]) == 1


def test_simulated_session_prefers_hand_tracking(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(trackfuse_main.time, "sleep", lambda seconds: None)
    config = trackfuse_main.ConfigManager(write_config(tmp_path))
    config.set("hand_sources.substitute_inside_out_tracking", True)
    server = trackfuse_main.TrackingServer(config)

    trackfuse_main.run_session(server, 3, None)

    assert server.skeleton.computed_left_hand_tracker.role is TrackerRole.LEFT_HAND
    assert server.skeleton.computed_right_hand_tracker.role is TrackerRole.RIGHT_HAND


def test_less_spammy_filter(monkeypatch) -> None:
    monkeypatch.delenv("TRACKFUSE_DEBUG", raising=False)
    log_filter = trackfuse_main.LessSpammyFilter()

    def record(level, message):
        return logging.LogRecord("trackfuse", level, __file__, 1, message, None, None)

    assert log_filter.filter(record(logging.WARNING, "anything"))
    assert log_filter.filter(record(logging.INFO, "Tracking server initialized"))
    assert not log_filter.filter(record(logging.INFO, "Tracker registered: head"))

    monkeypatch.setenv("TRACKFUSE_DEBUG", "1")
    assert log_filter.filter(record(logging.DEBUG, "Tracker registered: head"))


def test_performance_monitor_counters() -> None:
    monitor = PerformanceMonitor()
    start = time.time()
    monitor.record_tick(start)
    monitor.record_frames(4)
    monitor.record_flex_reading()

    metrics = monitor.collect_metrics()

    assert metrics.tick_rate > 0
    assert metrics.recorded_frame_rate >= metrics.tick_rate
    assert metrics.memory_mb > 0
    assert monitor.get_performance_summary() == "No performance data available"

    monitor.metrics_history.append(metrics)
    assert "Ticks/s" in monitor.get_performance_summary()
    assert monitor.get_average_metrics(30)["avg_tick_rate"] == metrics.tick_rate

    monitor.reset_counters()
    assert monitor.tick_count == 0 and monitor.recorded_frame_count == 0


def test_performance_monitor_thread_lifecycle() -> None:
    monitor = PerformanceMonitor(interval=0.01)
    monitor.start_monitoring()
    monitor.start_monitoring()
    time.sleep(0.05)
    monitor.stop_monitoring()

    assert not monitor.monitoring_active
    assert not monitor.monitor_thread.is_alive()
