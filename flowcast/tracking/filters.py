"""
Track quality filters.

All filters are pure functions over a sequence of tracks: they never
modify a track and return the kept tracks in their input order.

Policies:
- SMOOTHNESS: mean absolute turning angle below a threshold
- MAX_ANGLE: every single turning angle below a threshold
- DENSITY: per grid cell, keep only the longest and smoothest tracks
"""

import logging
import math
from typing import Sequence

from flowcast.core.config import FilterConfig, FilterPolicy
from flowcast.tracking.models import Track

logger = logging.getLogger(__name__)

DEFAULT_CELL_SIZE = 32


def angle_between(v1: tuple[float, float], v2: tuple[float, float]) -> float:
    """Signed angle in radians turning from v1 to v2."""
    dot = v1[0] * v2[0] + v1[1] * v2[1]
    cross = v1[0] * v2[1] - v1[1] * v2[0]
    return math.atan2(cross, dot)


def turning_angles(track: Track) -> list[float]:
    """
    Signed turning angle at every interior point of a track.

    Triples with a zero-length direction vector are skipped.
    """
    angles = []
    points = track.points
    for p1, p2, p3 in zip(points, points[1:], points[2:]):
        v1 = (p2.x - p1.x, p2.y - p1.y)
        v2 = (p3.x - p2.x, p3.y - p2.y)
        if v1 == (0.0, 0.0) or v2 == (0.0, 0.0):
            continue
        angles.append(angle_between(v1, v2))
    return angles


def smoothness_metric(track: Track) -> float:
    """
    Mean absolute turning angle of a track (lower is smoother).

    Tracks with fewer than 3 points are perfectly smooth (0.0). Tracks with
    3 or more points but no measurable turn are treated as infinitely noisy.
    """
    if len(track.points) < 3:
        return 0.0

    angles = turning_angles(track)
    if not angles:
        return math.inf
    return sum(abs(a) for a in angles) / len(angles)


def filter_by_min_length(tracks: Sequence[Track], min_length: int) -> list[Track]:
    """Keep tracks with at least ``min_length`` points."""
    return [t for t in tracks if len(t.points) >= min_length]


def filter_by_smoothness(tracks: Sequence[Track], max_avg_angle: float) -> list[Track]:
    """Keep tracks whose mean absolute turning angle is <= max_avg_angle."""
    return [t for t in tracks if smoothness_metric(t) <= max_avg_angle]


def filter_by_max_angle_change(tracks: Sequence[Track], max_angle: float) -> list[Track]:
    """Reject tracks where any single turn is sharper than max_angle."""
    kept = []
    for track in tracks:
        if len(track.points) < 3:
            kept.append(track)
            continue
        if all(abs(a) <= max_angle for a in turning_angles(track)):
            kept.append(track)
    return kept


def grid_cell(track: Track, cell_size: int) -> tuple[int, int]:
    """Grid cell of a track's first point."""
    x, y = track.first.position
    return (math.floor(x / cell_size), math.floor(y / cell_size))


def filter_by_density_and_smoothness(
    tracks: Sequence[Track],
    cell_size: int,
    min_per_cell: int,
    max_per_cell: int,
) -> list[Track]:
    """
    Cap the local density of tracks, preferring long and smooth ones.

    Tracks are binned by the grid cell of their first point. Cells with
    fewer than ``min_per_cell`` tracks are dropped. In the remaining cells
    tracks are ranked by length (descending) then smoothness (ascending)
    and the top ``max_per_cell`` are kept.

    Args:
        tracks: Candidate tracks
        cell_size: Grid cell size in pixels (<= 0 uses DEFAULT_CELL_SIZE)
        min_per_cell: Minimum tracks for a cell to be kept
        max_per_cell: Maximum tracks kept per cell

    Returns:
        Kept tracks, in input order

    Raises:
        ValueError: If max_per_cell is smaller than min_per_cell
    """
    if max_per_cell < min_per_cell:
        raise ValueError(
            f"max_per_cell ({max_per_cell}) must be >= min_per_cell ({min_per_cell})"
        )
    if cell_size <= 0:
        logger.warning("Invalid grid cell size %s, using %d", cell_size, DEFAULT_CELL_SIZE)
        cell_size = DEFAULT_CELL_SIZE

    grid: dict[tuple[int, int], list[int]] = {}
    for index, track in enumerate(tracks):
        if not track.points:
            continue
        grid.setdefault(grid_cell(track, cell_size), []).append(index)

    keep: set[int] = set()
    for indices in grid.values():
        if len(indices) < min_per_cell:
            continue
        ranked = sorted(
            indices,
            key=lambda i: (-len(tracks[i].points), smoothness_metric(tracks[i]), tracks[i].id),
        )
        keep.update(ranked[:max_per_cell])

    return [t for i, t in enumerate(tracks) if i in keep]


def apply_filter(tracks: Sequence[Track], config: FilterConfig) -> list[Track]:
    """
    Apply the filter policy selected by a FilterConfig.

    Tracks shorter than ``config.min_track_length`` are removed first.
    """
    policy = FilterPolicy(config.policy)
    candidates = filter_by_min_length(tracks, config.min_track_length)

    if policy is FilterPolicy.SMOOTHNESS:
        result = filter_by_smoothness(candidates, config.smoothness)
    elif policy is FilterPolicy.MAX_ANGLE:
        result = filter_by_max_angle_change(candidates, config.max_angle)
    else:
        result = filter_by_density_and_smoothness(
            candidates,
            config.grid_cell_size,
            config.min_tracks_per_cell,
            config.max_tracks_per_cell,
        )

    logger.info(
        "Filter %s kept %d of %d tracks (%d after length pre-filter)",
        policy.value, len(result), len(tracks), len(candidates),
    )
    return result
