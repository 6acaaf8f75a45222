"""
Project fitted tracks forward in time.
"""

from typing import Iterable, Iterator

from flowcast.tracking.models import Track


def extrapolate(track: Track, num_future_points: int) -> Iterator[tuple[float, float]]:
    """
    Yield future positions of a track from its fitted polynomials.

    Future samples are spaced by the track's average sampling interval,
    starting one interval after the last observed point.

    Args:
        track: Track with a quadratic fit
        num_future_points: Number of future positions to produce

    Yields:
        (x, y) positions in chronological order. Nothing is yielded for a
        track with fewer than 2 points or without a fitted polynomial.
    """
    n = len(track.points)
    if n < 2 or num_future_points <= 0 or not track.poly_x.is_fitted:
        return

    t_last = track.elapsed(track.last)
    avg_dt = t_last / (n - 1)

    for j in range(1, num_future_points + 1):
        t = t_last + j * avg_dt
        yield (track.poly_x.eval(t), track.poly_y.eval(t))


def extrapolate_tracks(
    tracks: Iterable[Track],
    num_future_points: int,
) -> dict[int, list[tuple[float, float]]]:
    """Extrapolate several tracks, keyed by track id."""
    return {t.id: list(extrapolate(t, num_future_points)) for t in tracks}
