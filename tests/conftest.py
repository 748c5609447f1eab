"""Shared fixtures for the TrackFuse test-suite."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import pytest

from trackfuse.bin.core.config_manager import ConfigManager
from trackfuse.bin.core.skeleton import SkeletonModel
from trackfuse.bin.core.trackers import (
    Tracker,
    TrackerRegistry,
    TrackerRole,
    TrackerStatus,
    next_local_tracker_id,
)


@pytest.fixture
def make_tracker() -> Callable[..., Tracker]:
    """Factory for live trackers with an OK status."""

    def factory(
        role: Optional[TrackerRole] = None,
        position: Optional[Sequence[float]] = None,
        *,
        name: str = "",
        has_position: bool = True,
        has_rotation: bool = True,
        has_acceleration: bool = False,
    ) -> Tracker:
        tracker = Tracker(
            next_local_tracker_id(),
            name=name,
            role=role,
            has_position=has_position,
            has_rotation=has_rotation,
            has_acceleration=has_acceleration,
        )
        if position is not None:
            tracker.set_position(position)
        tracker.status = TrackerStatus.OK
        return tracker

    return factory


@pytest.fixture
def registry() -> TrackerRegistry:
    return TrackerRegistry()


@pytest.fixture
def skeleton(registry: TrackerRegistry) -> SkeletonModel:
    return SkeletonModel(registry)


@pytest.fixture
def config_manager(tmp_path) -> ConfigManager:
    return ConfigManager(str(tmp_path / "config" / "trackfuse_config.json"))
