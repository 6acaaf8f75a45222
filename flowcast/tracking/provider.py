"""
Optical-flow provider built on OpenCV.

LucasKanadeProvider detects Shi-Tomasi corners and follows them with
pyramidal Lucas-Kanade flow. FlowTracker drives a TrackStore from a
sequence of frames, reseeding the provider from the store's surviving
tracks after every frame.

Example:
    >>> from flowcast.tracking import FlowTracker, LucasKanadeProvider
    >>> tracker = FlowTracker(LucasKanadeProvider(max_features=200))
    >>> for timestamp, frame in frames:
    ...     stats = tracker.add_frame(frame, timestamp)
    ...     print(f"Frame {stats.frame}: {stats.tracked} tracked, {stats.lost} lost")
"""

import logging
from dataclasses import dataclass
from datetime import datetime

import cv2
import numpy as np

from flowcast.core.errors import NoFeaturesError
from flowcast.tracking.models import Correspondence
from flowcast.tracking.store import TrackStore

logger = logging.getLogger(__name__)


@dataclass
class TrackingStats:
    """Statistics from one frame update."""
    frame: int
    tracked: int
    lost: int
    total: int


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Convert a BGR or BGRA frame to grayscale; gray frames pass through."""
    if frame.ndim == 2:
        return frame
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


class LucasKanadeProvider:
    """
    Corner detection and sparse optical flow.

    Attributes:
        feature_params: Arguments for cv2.goodFeaturesToTrack
        lk_params: Arguments for cv2.calcOpticalFlowPyrLK
        fb_threshold: Maximum forward-backward error in pixels, or None to
            skip the consistency check
    """

    def __init__(
        self,
        max_features: int = 200,
        quality_level: float = 0.01,
        min_distance: int = 10,
        block_size: int = 7,
        win_size: int = 21,
        max_level: int = 3,
        fb_threshold: float | None = None,
    ):
        if max_features <= 0:
            raise ValueError("max_features must be positive")

        self.max_features = max_features
        self.fb_threshold = fb_threshold

        # Shi-Tomasi corner detection parameters
        self.feature_params = {
            "maxCorners": max_features,
            "qualityLevel": quality_level,
            "minDistance": min_distance,
            "blockSize": block_size,
        }

        # Lucas-Kanade optical flow parameters
        self.lk_params = {
            "winSize": (win_size, win_size),
            "maxLevel": max_level,
            "criteria": (
                cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT,
                30,
                0.01,
            ),
        }

    def detect(self, gray: np.ndarray) -> np.ndarray:
        """
        Detect features to track.

        Returns:
            float32 array of shape (N, 1, 2); N may be 0
        """
        points = cv2.goodFeaturesToTrack(gray, mask=None, **self.feature_params)
        if points is None:
            return np.empty((0, 1, 2), dtype=np.float32)
        return points.astype(np.float32).reshape(-1, 1, 2)

    def track(
        self,
        prev_gray: np.ndarray,
        gray: np.ndarray,
        prev_points: np.ndarray,
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Follow points from the previous frame into the current one.

        Args:
            prev_gray: Previous grayscale frame
            gray: Current grayscale frame
            prev_points: (N, 1, 2) float32 positions in the previous frame

        Returns:
            Tuple of ((N, 1, 2) next positions, (N,) boolean tracked status),
            row-aligned with prev_points
        """
        if len(prev_points) == 0:
            return np.empty((0, 1, 2), dtype=np.float32), np.zeros(0, dtype=bool)

        next_points, status, _ = cv2.calcOpticalFlowPyrLK(
            prev_gray, gray, prev_points, None, **self.lk_params
        )
        valid = status.ravel() == 1

        if self.fb_threshold is not None and np.any(valid):
            back_points, back_status, _ = cv2.calcOpticalFlowPyrLK(
                gray, prev_gray, next_points, None, **self.lk_params
            )
            fb_error = np.linalg.norm(
                prev_points.reshape(-1, 2) - back_points.reshape(-1, 2), axis=1
            )
            valid = valid & (back_status.ravel() == 1) & (fb_error < self.fb_threshold)

        # Points that left the frame are lost
        h, w = gray.shape[:2]
        pts = next_points.reshape(-1, 2)
        in_bounds = (
            (pts[:, 0] >= 0) & (pts[:, 0] < w) &
            (pts[:, 1] >= 0) & (pts[:, 1] < h)
        )
        return next_points.reshape(-1, 1, 2), valid & in_bounds


class FlowTracker:
    """
    Feeds a TrackStore from a frame sequence.

    The first frame seeds the store with detected corners; every later
    frame runs the provider from the store's latest positions and ingests
    the result as explicit (track_id, position, tracked) correspondences.
    """

    def __init__(self, provider: LucasKanadeProvider, store: TrackStore | None = None):
        self.provider = provider
        self.store = store if store is not None else TrackStore()
        self.prev_gray: np.ndarray | None = None

    def add_frame(self, frame: np.ndarray, timestamp: float | datetime) -> TrackingStats:
        """
        Process the next frame of the sequence.

        Args:
            frame: BGR, BGRA or grayscale image
            timestamp: Capture time of the frame

        Returns:
            TrackingStats for this frame

        Raises:
            ValueError: If the frame is empty
            NoFeaturesError: If no features are found in the first frame
        """
        if frame is None or frame.size == 0:
            raise ValueError("Input image is empty")

        gray = to_gray(frame)

        if self.prev_gray is None:
            points = self.provider.detect(gray)
            if len(points) == 0:
                raise NoFeaturesError("No features found in the first image")
            self.store.initialize(points, timestamp)
            self.prev_gray = gray
            return TrackingStats(
                frame=self.store.frame_count,
                tracked=len(points),
                lost=0,
                total=len(self.store),
            )

        ids = self.store.active_ids()
        next_points, status = self.provider.track(
            self.prev_gray, gray, self.store.previous_points()
        )
        correspondences = [
            Correspondence(track_id, (float(p[0][0]), float(p[0][1])), bool(ok))
            for track_id, p, ok in zip(ids, next_points, status)
        ]
        self.store.ingest(correspondences, timestamp)
        self.prev_gray = gray

        tracked = int(np.count_nonzero(status))
        return TrackingStats(
            frame=self.store.frame_count,
            tracked=tracked,
            lost=len(ids) - tracked,
            total=len(self.store),
        )

    def reset(self) -> None:
        """Forget the previous frame and all tracks."""
        self.prev_gray = None
        self.store.reset()
