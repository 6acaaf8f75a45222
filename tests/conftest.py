"""
Shared fixtures for flowcast tests.
"""

import cv2
import numpy as np
import pytest

from flowcast.tracking.models import Point, Track


@pytest.fixture
def make_track():
    """Factory building a Track from (x, y) positions sampled every dt seconds."""
    def _make(positions, track_id=0, dt=1.0, t0=0.0):
        points = [
            Point(t0 + i * dt, (float(x), float(y)))
            for i, (x, y) in enumerate(positions)
        ]
        return Track(id=track_id, points=points)
    return _make


@pytest.fixture
def textured_frame():
    """Smooth random texture, BGR, with plenty of trackable corners."""
    rng = np.random.default_rng(42)
    noise = rng.integers(0, 256, size=(160, 160), dtype=np.uint8)
    gray = cv2.GaussianBlur(noise, (0, 0), 2.0)
    gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)


def shift_frame(frame: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """Translate an image by whole pixels (content wraps around the edges)."""
    return np.roll(np.roll(frame, dy, axis=0), dx, axis=1)
