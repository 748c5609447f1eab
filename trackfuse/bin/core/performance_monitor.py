"""
TrackFuse Performance Monitor - Tick timing and process metrics
Lightweight counters for the tracker pipeline, sampled on a background thread
"""

import time
import psutil
import threading
from typing import Dict, Optional
from dataclasses import dataclass
from collections import deque
import logging


@dataclass
class PerformanceMetrics:
    """Performance metrics data structure"""
    timestamp: float
    cpu_percent: float
    memory_mb: float
    tick_rate: float
    tick_latency_ms: float
    recorded_frame_rate: float
    flex_reading_rate: float


class PerformanceMonitor:
    """Lightweight performance monitoring system"""

    def __init__(self, max_history: int = 100, interval: float = 1.0):
        self.max_history = max_history
        self.interval = interval
        self.metrics_history: deque = deque(maxlen=max_history)
        self.logger = logging.getLogger(__name__)

        # Performance counters
        self.tick_count = 0
        self.recorded_frame_count = 0
        self.flex_reading_count = 0
        self.last_reset_time = time.time()

        # Timing measurements
        self.tick_times = deque(maxlen=50)

        # System monitoring
        self.process = psutil.Process()
        self.monitoring_active = False
        self.monitor_thread = None
        self._stop_event = threading.Event()

        # Performance thresholds
        self.thresholds = {
            'min_tick_rate': 30.0,
            'max_cpu_percent': 80.0,
            'max_memory_mb': 1024.0,
            'max_latency_ms': 5.0
        }
        self._alert_counter = 0

    def start_monitoring(self):
        """Start performance monitoring in background thread"""
        if self.monitoring_active:
            return

        self.monitoring_active = True
        self._stop_event.clear()
        self.monitor_thread = threading.Thread(target=self._monitor_loop, daemon=True)
        self.monitor_thread.start()
        self.logger.info("Performance monitoring started")

    def stop_monitoring(self):
        """Stop performance monitoring"""
        if not self.monitoring_active:
            return
        self.monitoring_active = False
        self._stop_event.set()
        if self.monitor_thread and self.monitor_thread.is_alive():
            self.monitor_thread.join(timeout=2.0)
        self.logger.info("Performance monitoring stopped")

    def _monitor_loop(self):
        while not self._stop_event.wait(self.interval):
            try:
                metrics = self.collect_metrics()
                self.metrics_history.append(metrics)
                self._check_performance_alerts(metrics)
            except psutil.Error as e:
                self.logger.debug(f"Performance monitoring error: {e}")

    def collect_metrics(self) -> PerformanceMetrics:
        """Collect current performance metrics"""
        current_time = time.time()
        time_delta = current_time - self.last_reset_time

        cpu_percent = self.process.cpu_percent()
        memory_mb = self.process.memory_info().rss / 1024 / 1024

        avg_latency = sum(self.tick_times) / len(self.tick_times) if self.tick_times else 0

        def rate(count: int) -> float:
            return count / time_delta if time_delta > 0 else 0.0

        return PerformanceMetrics(
            timestamp=current_time,
            cpu_percent=cpu_percent,
            memory_mb=memory_mb,
            tick_rate=rate(self.tick_count),
            tick_latency_ms=avg_latency * 1000,  # Convert to ms
            recorded_frame_rate=rate(self.recorded_frame_count),
            flex_reading_rate=rate(self.flex_reading_count)
        )

    def _check_performance_alerts(self, metrics: PerformanceMetrics):
        """Check for performance issues and log warnings"""
        alerts = []

        if self.tick_count and metrics.tick_rate < self.thresholds['min_tick_rate']:
            alerts.append(f"Low tick rate: {metrics.tick_rate:.1f}")

        if metrics.cpu_percent > self.thresholds['max_cpu_percent']:
            alerts.append(f"High CPU: {metrics.cpu_percent:.1f}%")

        if metrics.memory_mb > self.thresholds['max_memory_mb']:
            alerts.append(f"High Memory: {metrics.memory_mb:.1f}MB")

        if metrics.tick_latency_ms > self.thresholds['max_latency_ms']:
            alerts.append(f"High Latency: {metrics.tick_latency_ms:.2f}ms")

        if alerts:
            self._alert_counter += 1
            if self._alert_counter % 60 == 1:  # Every 60 samples
                self.logger.warning(f"Performance alerts: {', '.join(alerts)}")

    def record_tick(self, start_time: float):
        """Record a completed tick and its duration"""
        self.tick_count += 1
        self.tick_times.append(time.time() - start_time)

    def record_frames(self, count: int):
        self.recorded_frame_count += count

    def record_flex_reading(self):
        self.flex_reading_count += 1

    def reset_counters(self):
        """Reset performance counters"""
        self.tick_count = 0
        self.recorded_frame_count = 0
        self.flex_reading_count = 0
        self.tick_times.clear()
        self.last_reset_time = time.time()

    def get_current_metrics(self) -> Optional[PerformanceMetrics]:
        """Get the most recent performance metrics"""
        return self.metrics_history[-1] if self.metrics_history else None

    def get_average_metrics(self, seconds: int = 30) -> Dict:
        """Get average metrics over the last N seconds"""
        cutoff_time = time.time() - seconds
        recent_metrics = [m for m in self.metrics_history if m.timestamp >= cutoff_time]

        if not recent_metrics:
            return {}

        count = len(recent_metrics)
        return {
            'avg_cpu_percent': sum(m.cpu_percent for m in recent_metrics) / count,
            'avg_memory_mb': sum(m.memory_mb for m in recent_metrics) / count,
            'avg_tick_rate': sum(m.tick_rate for m in recent_metrics) / count,
            'avg_latency_ms': sum(m.tick_latency_ms for m in recent_metrics) / count,
            'avg_recorded_frame_rate': sum(m.recorded_frame_rate for m in recent_metrics) / count,
        }

    def get_performance_summary(self) -> str:
        """Get a human-readable performance summary"""
        current = self.get_current_metrics()
        if not current:
            return "No performance data available"

        summary = [
            f"Ticks/s: {current.tick_rate:.1f}",
            f"CPU: {current.cpu_percent:.1f}%",
            f"RAM: {current.memory_mb:.1f}MB",
            f"Latency: {current.tick_latency_ms:.2f}ms",
            f"Frames/s: {current.recorded_frame_rate:.1f}",
            f"Flex/s: {current.flex_reading_rate:.1f}"
        ]

        avg_30s = self.get_average_metrics(30)
        if avg_30s:
            summary.append(f"30s Avg: {avg_30s['avg_tick_rate']:.1f} ticks/s, {avg_30s['avg_cpu_percent']:.1f}% CPU")

        return " | ".join(summary)


# Global performance monitor instance
performance_monitor = PerformanceMonitor()
