"""Exception classes for flowcast."""


class FlowcastError(Exception):
    """Base exception for all flowcast errors."""

    pass


class TrackStoreError(FlowcastError):
    """Raised when the track store is used in an invalid state."""

    pass


class NoFeaturesError(TrackStoreError):
    """Raised when a store is seeded with no feature positions."""

    pass


class CorrespondenceError(TrackStoreError):
    """Raised when frame correspondences do not match the active tracks."""

    def __init__(self, message: str, track_id: int | None = None):
        self.track_id = track_id
        super().__init__(message)


class CurveFitError(FlowcastError):
    """Base exception for curve fitting failures."""

    pass


class InsufficientPointsError(CurveFitError):
    """Raised when too few points are available for a quadratic fit."""

    def __init__(self, message: str, num_points: int = 0):
        self.num_points = num_points
        super().__init__(message)


class SingularSystemError(CurveFitError):
    """Raised when the normal equations have no unique solution."""

    pass


class ConfigError(FlowcastError):
    """Raised when a configuration file holds invalid values."""

    pass


class FrameSourceError(FlowcastError):
    """Raised when a frame cannot be read from its source."""

    pass
