"""
Frame History - Ordered per-tracker recording of tracker snapshots
Tolerates dropped samples and can rebuild a synthetic tracker from recorded data
"""

from typing import Iterator, List, NamedTuple, Optional
import numpy as np

from .trackers import Tracker, TrackerRole, TrackerStatus, next_local_tracker_id


class TrackerFrame(NamedTuple):
    """Immutable snapshot of one tracker's observable state"""
    role: Optional[TrackerRole] = None
    position: Optional[np.ndarray] = None      # [x, y, z]
    rotation: Optional[np.ndarray] = None      # Quaternion [w, x, y, z]
    acceleration: Optional[np.ndarray] = None  # [x, y, z]

    def has_position(self) -> bool:
        return self.position is not None

    def has_rotation(self) -> bool:
        return self.rotation is not None

    def has_acceleration(self) -> bool:
        return self.acceleration is not None

    @classmethod
    def from_tracker(cls, tracker: Tracker) -> "TrackerFrame":
        return cls(
            role=tracker.role,
            position=_frozen(tracker.position) if tracker.has_position else None,
            rotation=_frozen(tracker.rotation) if tracker.has_rotation else None,
            acceleration=_frozen(tracker.acceleration) if tracker.has_acceleration else None,
        )


def _frozen(values: np.ndarray) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.flags.writeable = False
    return array


EMPTY_FRAME = TrackerFrame()


class FrameHistory:
    """Frames recorded for a single named tracker stream, in time order"""

    def __init__(self, name: str = "", frames: Optional[List[Optional[TrackerFrame]]] = None):
        self.name = name
        self.frames: List[Optional[TrackerFrame]] = frames if frames is not None else []

    @classmethod
    def from_tracker(cls, tracker: Tracker,
                     frames: Optional[List[Optional[TrackerFrame]]] = None) -> "FrameHistory":
        return cls(tracker.name, frames)

    def append_frame(self, tracker: Tracker) -> TrackerFrame:
        frame = TrackerFrame.from_tracker(tracker)
        self.frames.append(frame)
        return frame

    def insert_frame(self, index: int, tracker: Tracker) -> TrackerFrame:
        """Insert a snapshot at index, shifting later frames back by one"""
        if index < 0 or index > len(self.frames):
            raise IndexError(f"Frame index {index} out of range for {len(self.frames)} frames")

        frame = TrackerFrame.from_tracker(tracker)
        self.frames.insert(index, frame)
        return frame

    def append_empty(self) -> None:
        """Record a dropped sample"""
        self.frames.append(None)

    def frame_at(self, index: int) -> Optional[TrackerFrame]:
        if index < 0 or index >= len(self.frames):
            return None
        return self.frames[index]

    def first_valid_frame(self) -> Optional[TrackerFrame]:
        return next((frame for frame in self.frames if frame is not None), None)

    def materialize_tracker(self) -> Tracker:
        """
        Build a synthetic tracker shaped like this stream.

        Role and capability flags come from the first recorded frame. The
        tracker carries no pose data of its own; playback fills it in later.
        """
        first_frame = self.first_valid_frame() or EMPTY_FRAME
        tracker = Tracker(
            tracker_id=next_local_tracker_id(),
            name=self.name,
            role=first_frame.role,
            has_position=first_frame.has_position(),
            has_rotation=first_frame.has_rotation(),
            has_acceleration=first_frame.has_acceleration(),
            is_internal=True,
            is_computed=True,
        )
        tracker.status = TrackerStatus.OK
        return tracker

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Optional[TrackerFrame]]:
        return iter(self.frames)

    def __repr__(self) -> str:
        return f"FrameHistory(name={self.name!r}, frames={len(self.frames)})"
