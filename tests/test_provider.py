"""
Tests for the OpenCV optical-flow front end.
"""

import numpy as np
import pytest

from conftest import shift_frame
from flowcast.core.errors import NoFeaturesError
from flowcast.tracking import FlowTracker, LucasKanadeProvider, TrackStore
from flowcast.tracking.provider import to_gray


class TestLucasKanadeProvider:
    """Tests for LucasKanadeProvider."""

    def test_initialization(self):
        provider = LucasKanadeProvider(max_features=50, min_distance=5)
        assert provider.feature_params["maxCorners"] == 50
        assert provider.feature_params["minDistance"] == 5
        assert provider.fb_threshold is None

    def test_invalid_max_features(self):
        with pytest.raises(ValueError):
            LucasKanadeProvider(max_features=0)

    def test_detect_layout(self, textured_frame):
        points = LucasKanadeProvider(max_features=40).detect(to_gray(textured_frame))
        assert points.dtype == np.float32
        assert points.ndim == 3 and points.shape[1:] == (1, 2)
        assert 0 < len(points) <= 40

    def test_detect_blank_image(self):
        points = LucasKanadeProvider().detect(np.zeros((64, 64), dtype=np.uint8))
        assert points.shape == (0, 1, 2)

    def test_track_follows_shift(self, textured_frame):
        """Median flow matches a known whole-pixel translation."""
        provider = LucasKanadeProvider(max_features=100, fb_threshold=1.0)
        prev_gray = to_gray(textured_frame)
        gray = to_gray(shift_frame(textured_frame, 3, 2))
        prev_points = provider.detect(prev_gray)

        next_points, status = provider.track(prev_gray, gray, prev_points)

        assert next_points.shape == prev_points.shape
        assert status.dtype == bool
        assert status.sum() > len(status) // 2
        motion = (next_points - prev_points).reshape(-1, 2)[status]
        np.testing.assert_allclose(np.median(motion, axis=0), [3.0, 2.0], atol=0.5)

    def test_track_no_points(self, textured_frame):
        gray = to_gray(textured_frame)
        next_points, status = LucasKanadeProvider().track(gray, gray, np.empty((0, 1, 2), np.float32))
        assert next_points.shape == (0, 1, 2)
        assert len(status) == 0


class TestFlowTracker:
    """Tests for FlowTracker."""

    def test_first_frame_seeds_store(self, textured_frame):
        tracker = FlowTracker(LucasKanadeProvider(max_features=60))
        stats = tracker.add_frame(textured_frame, 0.0)

        assert stats.frame == 1
        assert stats.lost == 0
        assert stats.total == len(tracker.store) > 10
        assert all(len(t.points) == 1 for t in tracker.store.get_active())

    def test_tracks_grow_with_frames(self, textured_frame):
        """Surviving tracks gain one point per frame and pick up velocity."""
        tracker = FlowTracker(LucasKanadeProvider(max_features=60))
        for i in range(4):
            stats = tracker.add_frame(shift_frame(textured_frame, i, i), float(i))

        assert stats.frame == 4
        assert stats.tracked + stats.lost >= stats.total
        survivors = list(tracker.store.get_active())
        assert survivors
        assert all(len(t.points) == 4 for t in survivors)
        velocities = np.array([t.velocity for t in survivors])
        np.testing.assert_allclose(np.median(velocities, axis=0), [1.0, 1.0], atol=0.5)

    def test_uses_supplied_store(self, textured_frame):
        store = TrackStore()
        tracker = FlowTracker(LucasKanadeProvider(max_features=20), store=store)
        tracker.add_frame(textured_frame, 0.0)
        assert tracker.store is store
        assert len(store) > 0

    def test_blank_first_frame(self):
        tracker = FlowTracker(LucasKanadeProvider())
        with pytest.raises(NoFeaturesError):
            tracker.add_frame(np.zeros((64, 64, 3), dtype=np.uint8), 0.0)

    def test_empty_frame(self):
        tracker = FlowTracker(LucasKanadeProvider())
        with pytest.raises(ValueError):
            tracker.add_frame(np.zeros((0, 0, 3), dtype=np.uint8), 0.0)

    def test_reset(self, textured_frame):
        """Reset reseeds on the next frame without reusing ids."""
        tracker = FlowTracker(LucasKanadeProvider(max_features=20))
        tracker.add_frame(textured_frame, 0.0)
        first_ids = tracker.store.active_ids()

        tracker.reset()
        tracker.add_frame(textured_frame, 10.0)

        assert tracker.prev_gray is not None
        assert set(first_ids).isdisjoint(tracker.store.active_ids())


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
