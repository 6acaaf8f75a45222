"""
Tracking module - Trajectory management and motion extrapolation.

This module provides:
- TrackStore: Owns tracks and their lifecycle across frames
- fit_quadratic: Least-squares quadratic fit per axis
- estimate_motion: Fit-or-finite-difference velocity/acceleration
- Quality filters: smoothness, max turning angle, grid density
- extrapolate: Future positions from fitted polynomials
- FlowTracker / LucasKanadeProvider: OpenCV optical-flow front end

Example:
    >>> from flowcast.tracking import TrackStore, Correspondence, extrapolate
    >>> store = TrackStore()
    >>> _ = store.initialize([(0.0, 0.0)], timestamp=0.0)
    >>> for t in (1.0, 2.0, 3.0):
    ...     _ = store.ingest([Correspondence(0, (t * t, t * t))], timestamp=t)
    >>> track = next(store.get_active())
    >>> [round(v, 3) for v in next(extrapolate(track, 1))]
    [16.0, 16.0]
"""

from flowcast.tracking.models import Correspondence, Point, Polynomial, Track
from flowcast.tracking.curvefit import fit_quadratic
from flowcast.tracking.motion import MotionEstimate, estimate_motion
from flowcast.tracking.store import TrackStore
from flowcast.tracking.filters import (
    FilterPolicy,
    apply_filter,
    filter_by_density_and_smoothness,
    filter_by_max_angle_change,
    filter_by_min_length,
    filter_by_smoothness,
    smoothness_metric,
)
from flowcast.tracking.extrapolate import extrapolate, extrapolate_tracks
from flowcast.tracking.provider import FlowTracker, LucasKanadeProvider, TrackingStats

__all__ = [
    "Correspondence",
    "Point",
    "Polynomial",
    "Track",
    "fit_quadratic",
    "MotionEstimate",
    "estimate_motion",
    "TrackStore",
    "FilterPolicy",
    "apply_filter",
    "filter_by_density_and_smoothness",
    "filter_by_max_angle_change",
    "filter_by_min_length",
    "filter_by_smoothness",
    "smoothness_metric",
    "extrapolate",
    "extrapolate_tracks",
    "FlowTracker",
    "LucasKanadeProvider",
    "TrackingStats",
]
