"""
flowcast - Feature Track Nowcasting Toolkit
===========================================

Tracks point features across an image sequence and extrapolates their
motion.

Main modules:
- flowcast.tracking: Track store, curve fitting, motion, filters, extrapolation
- flowcast.outputs: Track images and CSV files
- flowcast.core: Configuration, errors and frame sources

Quick start:
    >>> from flowcast.tracking import FlowTracker, LucasKanadeProvider
    >>> tracker = FlowTracker(LucasKanadeProvider(max_features=200))
    >>> for timestamp, frame in iter_frames("rainfall_data", frame_interval=60):
    ...     tracker.add_frame(frame, timestamp)
    >>> tracks = list(tracker.store.get_active())
"""

__version__ = "0.1.0"

# Convenience imports
from flowcast.tracking import (
    FlowTracker,
    LucasKanadeProvider,
    Track,
    TrackStore,
    extrapolate,
    fit_quadratic,
)
from flowcast.core.config import Config, load_config
from flowcast.core.video import iter_frames

__all__ = [
    "__version__",
    "FlowTracker",
    "LucasKanadeProvider",
    "Track",
    "TrackStore",
    "extrapolate",
    "fit_quadratic",
    "Config",
    "load_config",
    "iter_frames",
]
