"""
Frame sources for flowcast.

Frames come either from a directory of still images (e.g. a radar or
satellite image sequence, sorted by filename) or from a video file.
Every frame is paired with a timestamp in seconds.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import cv2
import numpy as np

from flowcast.core.errors import FrameSourceError

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


@dataclass
class FrameSize:
    """Dimensions of the frames in a source."""
    width: int
    height: int


def list_images(directory: str | Path) -> list[Path]:
    """Return the image files in a directory, sorted by name."""
    directory = Path(directory)
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def _iter_image_dir(
    directory: Path,
    num_frames: int | None,
    frame_interval: float,
) -> Iterator[tuple[float, np.ndarray]]:
    paths = list_images(directory)
    if num_frames is not None:
        if len(paths) < num_frames:
            raise FrameSourceError(
                f"Not enough images in {directory}. Found {len(paths)}, but need {num_frames}."
            )
        paths = paths[:num_frames]

    for i, path in enumerate(paths):
        frame = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if frame is None:
            raise FrameSourceError(f"Failed to load image: {path}")
        yield i * frame_interval, frame


def _iter_video(
    path: Path,
    num_frames: int | None,
    frame_interval: float,
) -> Iterator[tuple[float, np.ndarray]]:
    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        raise FrameSourceError(f"Failed to open video: {path}")

    fps = cap.get(cv2.CAP_PROP_FPS)
    step = 1.0 / fps if fps and fps > 0 else frame_interval

    try:
        index = 0
        while num_frames is None or index < num_frames:
            ret, frame = cap.read()
            if not ret:
                break
            yield index * step, frame
            index += 1
    finally:
        cap.release()


def iter_frames(
    path: str | Path,
    num_frames: int | None = None,
    frame_interval: float = 1.0,
) -> Iterator[tuple[float, np.ndarray]]:
    """
    Iterate over (timestamp, BGR frame) pairs.

    Args:
        path: Directory of images or a video file
        num_frames: Maximum number of frames (None = all)
        frame_interval: Seconds between images; for video the file's fps
            is used when available

    Raises:
        FileNotFoundError: If the path doesn't exist
        FrameSourceError: If a frame cannot be decoded
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input not found: {path}")

    if path.is_dir():
        return _iter_image_dir(path, num_frames, frame_interval)
    return _iter_video(path, num_frames, frame_interval)
