"""
Per-track velocity and acceleration estimation.

Tracks with enough history are described by a quadratic fit; shorter
tracks, or tracks whose fit fails, fall back to finite differences of the
most recent points.
"""

import logging
from dataclasses import dataclass

from flowcast.core.errors import CurveFitError
from flowcast.tracking.curvefit import fit_quadratic
from flowcast.tracking.models import Polynomial, Track

logger = logging.getLogger(__name__)

# Minimum number of points before a quadratic fit is attempted.
MIN_FIT_POINTS = 4


@dataclass(frozen=True)
class MotionEstimate:
    """Result of a motion estimate, applied to the track by the store."""
    velocity: tuple[float, float]
    acceleration: tuple[float, float]
    poly_x: Polynomial | None = None
    poly_y: Polynomial | None = None

    @property
    def fitted(self) -> bool:
        return self.poly_x is not None


def _fit_estimate(track: Track) -> MotionEstimate | None:
    try:
        poly_x, poly_y = fit_quadratic(track.points)
    except CurveFitError as e:
        logger.debug("Track %d: quadratic fit failed (%s), using finite differences", track.id, e)
        return None

    t_last = track.elapsed(track.last)
    return MotionEstimate(
        velocity=(poly_x.velocity(t_last), poly_y.velocity(t_last)),
        acceleration=(poly_x.acceleration(), poly_y.acceleration()),
        poly_x=poly_x,
        poly_y=poly_y,
    )


def _finite_difference_estimate(track: Track) -> MotionEstimate:
    """
    Estimate motion from the last two or three points.

    A non-positive time step leaves the corresponding previous estimate in
    place instead of dividing by zero.
    """
    velocity = track.velocity
    acceleration = track.acceleration
    points = track.points

    p1, p0 = points[-1], points[-2]
    dt = p1.time - p0.time
    if dt <= 0:
        logger.debug("Track %d: non-positive time step %.6f, keeping velocity", track.id, dt)
        return MotionEstimate(velocity=velocity, acceleration=acceleration)

    velocity = ((p1.x - p0.x) / dt, (p1.y - p0.y) / dt)

    if len(points) >= 3:
        pm = points[-3]
        dt_prev = p0.time - pm.time
        avg_dt = (dt + dt_prev) / 2.0
        if dt_prev > 0 and avg_dt > 0:
            prev_velocity = ((p0.x - pm.x) / dt_prev, (p0.y - pm.y) / dt_prev)
            acceleration = (
                (velocity[0] - prev_velocity[0]) / avg_dt,
                (velocity[1] - prev_velocity[1]) / avg_dt,
            )

    return MotionEstimate(velocity=velocity, acceleration=acceleration)


def estimate_motion(track: Track) -> MotionEstimate | None:
    """
    Estimate the latest velocity and acceleration of a track.

    Args:
        track: Track whose newest point has just been appended

    Returns:
        MotionEstimate, or None if the track has fewer than 2 points
    """
    if len(track.points) < 2:
        return None

    if len(track.points) >= MIN_FIT_POINTS:
        estimate = _fit_estimate(track)
        if estimate is not None:
            return estimate

    return _finite_difference_estimate(track)


def apply_estimate(track: Track, estimate: MotionEstimate | None) -> None:
    """Write an estimate back into a track. Polynomials are only replaced on a fit."""
    if estimate is None:
        return
    track.velocity = estimate.velocity
    track.acceleration = estimate.acceleration
    if estimate.fitted:
        track.poly_x = estimate.poly_x
        track.poly_y = estimate.poly_y
