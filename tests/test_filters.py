"""
Tests for track quality filters.
"""

import math

import pytest

from flowcast.core.config import FilterConfig, FilterPolicy
from flowcast.tracking.filters import (
    DEFAULT_CELL_SIZE,
    apply_filter,
    filter_by_density_and_smoothness,
    filter_by_max_angle_change,
    filter_by_min_length,
    filter_by_smoothness,
    grid_cell,
    smoothness_metric,
    turning_angles,
)

STRAIGHT = [(0, 0), (1, 0), (2, 0), (3, 0)]
RIGHT_TURN = [(0, 0), (1, 0), (1, 1)]
ZIGZAG = [(0, 0), (1, 0), (2, 0.1), (3, 0), (3.2, 3)]


class TestSmoothnessMetric:
    """Tests for the mean turning angle metric."""

    def test_straight_line_is_perfectly_smooth(self, make_track):
        assert smoothness_metric(make_track(STRAIGHT)) == pytest.approx(0.0)

    def test_short_track_is_smooth(self, make_track):
        assert smoothness_metric(make_track([(0, 0), (5, 5)])) == 0.0

    def test_right_angle(self, make_track):
        assert smoothness_metric(make_track(RIGHT_TURN)) == pytest.approx(math.pi / 2)

    def test_turn_sign(self, make_track):
        left = turning_angles(make_track([(0, 0), (1, 0), (1, 1)]))
        right = turning_angles(make_track([(0, 0), (1, 0), (1, -1)]))
        assert left[0] > 0 > right[0]

    def test_stationary_track_is_infinitely_noisy(self, make_track):
        assert smoothness_metric(make_track([(5, 5)] * 4)) == math.inf

    def test_zero_length_segments_are_skipped(self, make_track):
        track = make_track([(0, 0), (1, 0), (1, 0), (2, 0), (2, 1)])
        # (1,0)->(1,0) is skipped; only (1,0),(2,0),(2,1) yields a turn
        assert turning_angles(track) == pytest.approx([math.pi / 2])


class TestSmoothnessFilters:
    """Tests for the average and per-segment angle filters."""

    def test_filter_by_smoothness(self, make_track):
        straight = make_track(STRAIGHT, track_id=1)
        turn = make_track(RIGHT_TURN, track_id=2)
        short = make_track([(0, 0), (1, 1)], track_id=3)

        kept = filter_by_smoothness([straight, turn, short], max_avg_angle=0.5)
        assert [t.id for t in kept] == [1, 3]

    def test_filter_by_smoothness_threshold_inclusive(self, make_track):
        turn = make_track(RIGHT_TURN)
        assert filter_by_smoothness([turn], max_avg_angle=math.pi / 2) == [turn]

    def test_average_passes_where_max_angle_rejects(self, make_track):
        """One sharp turn among gentle ones passes on average but not per segment."""
        track = make_track(ZIGZAG)
        angles = [abs(a) for a in turning_angles(track)]
        threshold = (max(angles) + sum(angles) / len(angles)) / 2

        assert filter_by_smoothness([track], threshold) == [track]
        assert filter_by_max_angle_change([track], threshold) == []

    def test_max_angle_short_tracks_pass(self, make_track):
        short = make_track([(0, 0), (1, 1)])
        assert filter_by_max_angle_change([short], max_angle=0.0) == [short]

    def test_max_angle_keeps_gentle(self, make_track):
        gentle = make_track([(0, 0), (1, 0), (2, 0.05), (3, 0.15)])
        assert filter_by_max_angle_change([gentle], max_angle=0.2) == [gentle]

    def test_min_length(self, make_track):
        tracks = [make_track([(0, 0)] * n, track_id=n) for n in (1, 3, 6, 8)]
        assert [t.id for t in filter_by_min_length(tracks, 6)] == [6, 8]


class TestDensityFilter:
    """Tests for the grid density filter."""

    def _cell_tracks(self, make_track):
        # Four tracks starting in cell (0, 0), one alone in cell (3, 3)
        return [
            make_track([(1, 1), (2, 1), (3, 1)], track_id=0),
            make_track([(2, 2), (3, 2), (4, 2), (5, 2), (6, 2)], track_id=1),
            make_track([(3, 3), (4, 3), (5, 3), (6, 3)], track_id=2),
            make_track([(4, 4), (5, 4), (5, 5), (4, 5)], track_id=3),
            make_track([(100, 100), (101, 100), (102, 100)], track_id=4),
        ]

    def test_keeps_longest_then_smoothest(self, make_track):
        tracks = self._cell_tracks(make_track)
        kept = filter_by_density_and_smoothness(tracks, cell_size=32, min_per_cell=2, max_per_cell=2)

        # Track 1 is longest; tracks 2 and 3 tie on length and 2 is straighter
        assert [t.id for t in kept] == [1, 2]

    def test_sparse_cells_discarded(self, make_track):
        tracks = self._cell_tracks(make_track)
        kept = filter_by_density_and_smoothness(tracks, cell_size=32, min_per_cell=2, max_per_cell=10)

        assert 4 not in [t.id for t in kept]
        assert len(kept) == 4

    def test_min_one_keeps_isolated_tracks(self, make_track):
        tracks = self._cell_tracks(make_track)
        kept = filter_by_density_and_smoothness(tracks, cell_size=32, min_per_cell=1, max_per_cell=1)

        assert [t.id for t in kept] == [1, 4]

    def test_idempotent(self, make_track):
        tracks = self._cell_tracks(make_track)
        once = filter_by_density_and_smoothness(tracks, 32, 2, 3)
        twice = filter_by_density_and_smoothness(once, 32, 2, 3)

        assert [t.id for t in twice] == [t.id for t in once]

    def test_negative_coordinates_use_floor(self, make_track):
        assert grid_cell(make_track([(-1.0, -1.0)]), 32) == (-1, -1)
        assert grid_cell(make_track([(1.0, 1.0)]), 32) == (0, 0)

        tracks = [make_track([(-1, -1), (-2, -1)], track_id=0), make_track([(1, 1), (2, 1)], track_id=1)]
        assert filter_by_density_and_smoothness(tracks, 32, 2, 5) == []

    def test_invalid_cell_size_uses_default(self, make_track):
        tracks = [
            make_track([(1, 1), (2, 1)], track_id=0),
            make_track([(DEFAULT_CELL_SIZE - 1, 1), (DEFAULT_CELL_SIZE, 1)], track_id=1),
        ]
        kept = filter_by_density_and_smoothness(tracks, cell_size=0, min_per_cell=2, max_per_cell=5)
        assert [t.id for t in kept] == [0, 1]

    def test_max_below_min_rejected(self, make_track):
        with pytest.raises(ValueError):
            filter_by_density_and_smoothness([make_track(STRAIGHT)], 32, 3, 2)

    def test_does_not_mutate_tracks(self, make_track):
        tracks = self._cell_tracks(make_track)
        before = [list(t.points) for t in tracks]
        filter_by_density_and_smoothness(tracks, 32, 2, 2)
        assert [list(t.points) for t in tracks] == before


class TestApplyFilter:
    """Tests for policy dispatch."""

    def test_smoothness_policy(self, make_track):
        tracks = [make_track(STRAIGHT, track_id=0), make_track(RIGHT_TURN + [(1, 2)], track_id=1)]
        config = FilterConfig(policy="smoothness", min_track_length=4, smoothness=0.5)

        assert [t.id for t in apply_filter(tracks, config)] == [0]

    def test_min_length_applied_first(self, make_track):
        tracks = [make_track(STRAIGHT, track_id=0), make_track(STRAIGHT[:2], track_id=1)]
        config = FilterConfig(policy=FilterPolicy.MAX_ANGLE.value, min_track_length=3)

        assert [t.id for t in apply_filter(tracks, config)] == [0]

    def test_density_policy(self, make_track):
        tracks = [make_track(STRAIGHT, track_id=i) for i in range(4)]
        config = FilterConfig(
            policy="density",
            min_track_length=1,
            grid_cell_size=64,
            min_tracks_per_cell=2,
            max_tracks_per_cell=3,
        )

        assert [t.id for t in apply_filter(tracks, config)] == [0, 1, 2]

    def test_unknown_policy(self, make_track):
        with pytest.raises(ValueError):
            apply_filter([make_track(STRAIGHT)], FilterConfig(policy="bogus"))


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
