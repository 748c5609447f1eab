"""
Pose Recorder - Samples every live tracker into per-tracker frame histories
"""

import logging
from typing import Dict, Iterable, List, Optional

from .frame_history import FrameHistory
from .trackers import Tracker, TrackerStatus


class PoseRecorder:
    """Records one frame per tracker per tick, keeping all streams index-aligned"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.histories: Dict[str, FrameHistory] = {}
        self.frame_count = 0

    def record(self, trackers: Iterable[Tracker]) -> int:
        """
        Record one frame for every tracker.

        Trackers that are not reporting OK get a dropped sample. Streams seen
        for the first time are back-filled so every stream has frame_count entries.

        Returns:
            Number of frames that captured real data
        """
        captured = 0
        seen = set()

        for tracker in trackers:
            history = self.histories.get(tracker.name)
            if history is None:
                history = FrameHistory.from_tracker(tracker, [None] * self.frame_count)
                self.histories[tracker.name] = history
                self.logger.debug(f"New recording stream: {tracker.name}")

            if tracker.name in seen:
                self.logger.warning(f"Duplicate tracker name in recording: {tracker.name}")
                continue
            seen.add(tracker.name)

            if tracker.status == TrackerStatus.OK:
                history.append_frame(tracker)
                captured += 1
            else:
                history.append_empty()

        # Trackers that vanished this tick still need a slot
        for name, history in self.histories.items():
            if name not in seen:
                history.append_empty()

        self.frame_count += 1
        return captured

    def history(self, name: str) -> Optional[FrameHistory]:
        return self.histories.get(name)

    def add_history(self, history: FrameHistory) -> None:
        """Add an existing stream, padding shorter streams so indices stay aligned"""
        self.histories[history.name] = history
        self.pad_to(len(history))

    def pad_to(self, frame_count: int) -> None:
        """Extend every stream with dropped samples up to frame_count"""
        self.frame_count = max(self.frame_count, frame_count)
        for history in self.histories.values():
            while len(history) < self.frame_count:
                history.append_empty()

    def to_trackers(self) -> List[Tracker]:
        return [history.materialize_tracker() for history in self.histories.values()]

    def clear(self) -> None:
        self.histories.clear()
        self.frame_count = 0

    def __repr__(self) -> str:
        return f"PoseRecorder(streams={len(self.histories)}, frames={self.frame_count})"
