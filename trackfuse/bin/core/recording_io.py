"""
Recording IO - JSON export and import of pose recordings
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union
import numpy as np

from .frame_history import FrameHistory, TrackerFrame
from .pose_recorder import PoseRecorder
from .trackers import TrackerRole

RECORDING_FORMAT_VERSION = 1

logger = logging.getLogger(__name__)


class RecordingFormatError(ValueError):
    """Raised when a recording file cannot be understood"""


def _vector_to_json(values: Optional[np.ndarray]):
    return None if values is None else [float(v) for v in values]


def _vector_from_json(values, size: int, field: str) -> Optional[np.ndarray]:
    if values is None:
        return None
    if not isinstance(values, list) or len(values) != size:
        raise RecordingFormatError(f"{field} must be a list of {size} numbers")
    try:
        array = np.array(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise RecordingFormatError(f"{field} must contain numbers: {e}") from e
    if array.shape != (size,):
        raise RecordingFormatError(f"{field} must be a flat list of {size} numbers")
    array.flags.writeable = False
    return array


def frame_to_dict(frame: Optional[TrackerFrame]) -> Optional[Dict[str, Any]]:
    if frame is None:
        return None
    return {
        "role": frame.role.name if frame.role else None,
        "position": _vector_to_json(frame.position),
        "rotation": _vector_to_json(frame.rotation),
        "acceleration": _vector_to_json(frame.acceleration),
    }


def frame_from_dict(data: Optional[Dict[str, Any]]) -> Optional[TrackerFrame]:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise RecordingFormatError(f"Frame must be an object or null, got {type(data).__name__}")

    role_name = data.get("role")
    try:
        role = TrackerRole[role_name] if role_name is not None else None
    except (KeyError, TypeError):
        raise RecordingFormatError(f"Unknown tracker role: {role_name}") from None

    return TrackerFrame(
        role=role,
        position=_vector_from_json(data.get("position"), 3, "position"),
        rotation=_vector_from_json(data.get("rotation"), 4, "rotation"),
        acceleration=_vector_from_json(data.get("acceleration"), 3, "acceleration"),
    )


def recording_to_dict(recorder: PoseRecorder) -> Dict[str, Any]:
    return {
        "version": RECORDING_FORMAT_VERSION,
        "frame_count": recorder.frame_count,
        "trackers": [
            {"name": history.name, "frames": [frame_to_dict(frame) for frame in history]}
            for history in recorder.histories.values()
        ],
    }


def recording_from_dict(data: Dict[str, Any]) -> PoseRecorder:
    if not isinstance(data, dict):
        raise RecordingFormatError("Recording must be a JSON object")

    version = data.get("version")
    if version != RECORDING_FORMAT_VERSION:
        raise RecordingFormatError(f"Unsupported recording version: {version}")

    entries = data.get("trackers", [])
    if not isinstance(entries, list):
        raise RecordingFormatError("trackers must be a list")

    frame_count = data.get("frame_count", 0)
    if not isinstance(frame_count, int) or isinstance(frame_count, bool):
        raise RecordingFormatError(f"frame_count must be an integer, got {frame_count!r}")

    recorder = PoseRecorder()
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise RecordingFormatError("Tracker entry must be an object with a name")
        frames = entry.get("frames", [])
        if not isinstance(frames, list):
            raise RecordingFormatError(f"frames of {entry['name']} must be a list")
        recorder.add_history(FrameHistory(entry["name"], [frame_from_dict(frame) for frame in frames]))

    recorder.pad_to(frame_count)
    return recorder


def save_recording(recorder: PoseRecorder, file_path: Union[str, Path]) -> Path:
    """Write a recording atomically as JSON"""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = recording_to_dict(recorder)
    with tempfile.NamedTemporaryFile('w', dir=path.parent, delete=False, encoding='utf-8') as tf:
        json.dump(payload, tf, indent=2)
        tempname = tf.name
    os.replace(tempname, path)

    logger.info(f"Recording saved to: {path} ({recorder.frame_count} frames, "
                f"{len(recorder.histories)} trackers)")
    return path


def load_recording(file_path: Union[str, Path]) -> PoseRecorder:
    path = Path(file_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RecordingFormatError(f"Invalid JSON in recording {path}: {e}") from e

    recorder = recording_from_dict(data)
    logger.info(f"Recording loaded from: {path} ({recorder.frame_count} frames)")
    return recorder
