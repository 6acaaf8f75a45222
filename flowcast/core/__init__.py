"""
Core module - Configuration, errors and frame sources.
"""

from flowcast.core.errors import (
    FlowcastError,
    TrackStoreError,
    NoFeaturesError,
    CorrespondenceError,
    CurveFitError,
    InsufficientPointsError,
    SingularSystemError,
    ConfigError,
    FrameSourceError,
)
from flowcast.core.config import (
    Config,
    FilterConfig,
    FilterPolicy,
    OutputSettings,
    TrackerSettings,
    load_config,
    save_config,
)
from flowcast.core.video import FrameSize, iter_frames, list_images

__all__ = [
    "FlowcastError",
    "TrackStoreError",
    "NoFeaturesError",
    "CorrespondenceError",
    "CurveFitError",
    "InsufficientPointsError",
    "SingularSystemError",
    "ConfigError",
    "FrameSourceError",
    "Config",
    "FilterConfig",
    "FilterPolicy",
    "OutputSettings",
    "TrackerSettings",
    "load_config",
    "save_config",
    "FrameSize",
    "iter_frames",
    "list_images",
]
