"""
Track rendering.

Draws tracks, extrapolated paths and velocity vectors on a black BGR
canvas with OpenCV.
"""

from typing import Sequence

import cv2
import numpy as np

from flowcast.tracking.extrapolate import extrapolate
from flowcast.tracking.models import Track

EXTRAPOLATION_COLOR = (0, 0, 255)  # Red - BGR
VECTOR_COLOR = (0, 255, 0)         # Green - BGR


def track_color(index: int) -> tuple[int, int, int]:
    """Colour for the index-th track in a list (BGR)."""
    n = index + 1
    return ((n * 80) % 255, (n * 60) % 255, (n * 40) % 255)


def blank_canvas(width: int, height: int) -> np.ndarray:
    """Black BGR image of the given size."""
    return np.zeros((height, width, 3), dtype=np.uint8)


def _pixel(position: tuple[float, float]) -> tuple[int, int]:
    return (int(position[0]), int(position[1]))


def _draw_path(canvas: np.ndarray, track: Track, color: tuple[int, int, int]) -> None:
    for p1, p2 in zip(track.points, track.points[1:]):
        cv2.line(canvas, _pixel(p1.position), _pixel(p2.position), color, 2)


def draw_tracks(tracks: Sequence[Track], width: int, height: int) -> np.ndarray:
    """Draw the path of every track with at least two points."""
    canvas = blank_canvas(width, height)
    for i, track in enumerate(tracks):
        if len(track.points) < 2:
            continue
        _draw_path(canvas, track, track_color(i))
    return canvas


def draw_extrapolated_tracks(
    tracks: Sequence[Track],
    width: int,
    height: int,
    num_future_points: int,
) -> np.ndarray:
    """Draw tracks and, for fitted tracks, their extrapolated future path."""
    canvas = blank_canvas(width, height)
    for i, track in enumerate(tracks):
        if len(track.points) < 2:
            continue
        _draw_path(canvas, track, track_color(i))

        prev = _pixel(track.last.position)
        for future in extrapolate(track, num_future_points):
            nxt = _pixel(future)
            cv2.line(canvas, prev, nxt, EXTRAPOLATION_COLOR, 1)
            prev = nxt
    return canvas


def draw_vectors(
    tracks: Sequence[Track],
    width: int,
    height: int,
    scale: float,
) -> np.ndarray:
    """Draw the latest velocity of every track as an arrow from its last point."""
    canvas = blank_canvas(width, height)
    for track in tracks:
        if not track.points:
            continue
        x, y = track.last.position
        vx, vy = track.velocity
        cv2.arrowedLine(
            canvas,
            _pixel((x, y)),
            _pixel((x + vx * scale, y + vy * scale)),
            VECTOR_COLOR,
            2,
        )
    return canvas
