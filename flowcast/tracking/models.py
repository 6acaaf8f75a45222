"""
Data model for feature trajectories.

A Track is the path of a single feature across frames. Its points are
timestamped positions in image coordinates, and its motion is summarised
by the latest velocity/acceleration and by one quadratic per axis.
"""

from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True)
class Point:
    """A position observed at a point in time (seconds)."""
    time: float
    position: tuple[float, float]

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]


@dataclass(frozen=True)
class Polynomial:
    """
    Quadratic ``a*t**2 + b*t + c`` in seconds since a track's first point.

    The all-zero polynomial is the "never fitted" value.
    """
    a: float = 0.0
    b: float = 0.0
    c: float = 0.0

    def eval(self, t: float) -> float:
        """Evaluate the polynomial at time t."""
        return self.a * t * t + self.b * t + self.c

    def velocity(self, t: float) -> float:
        """First derivative at time t."""
        return 2.0 * self.a * t + self.b

    def acceleration(self) -> float:
        """Second derivative (constant for a quadratic)."""
        return 2.0 * self.a

    @property
    def is_fitted(self) -> bool:
        return self.a != 0.0


@dataclass
class Track:
    """
    Trajectory of one feature.

    Tracks are owned and mutated by a TrackStore only. Once ``lost`` is set
    the track is frozen and kept for history.

    Attributes:
        id: Stable identifier, never reused within a store
        points: Time-ordered observations (append-only)
        velocity: Latest velocity estimate in pixels per second
        acceleration: Latest acceleration estimate in pixels per second^2
        poly_x: Latest quadratic fitted to the X coordinate
        poly_y: Latest quadratic fitted to the Y coordinate
        lost: True once the provider stopped tracking the feature
    """
    id: int
    points: list[Point] = field(default_factory=list)
    velocity: tuple[float, float] = (0.0, 0.0)
    acceleration: tuple[float, float] = (0.0, 0.0)
    poly_x: Polynomial = field(default_factory=Polynomial)
    poly_y: Polynomial = field(default_factory=Polynomial)
    lost: bool = False

    def __len__(self) -> int:
        return len(self.points)

    @property
    def first(self) -> Point:
        return self.points[0]

    @property
    def last(self) -> Point:
        return self.points[-1]

    @property
    def start_time(self) -> float:
        return self.points[0].time

    def elapsed(self, point: Point) -> float:
        """Seconds between the track's first point and ``point``."""
        return point.time - self.start_time

    def positions(self) -> np.ndarray:
        """Return the point positions as an Nx2 array."""
        if not self.points:
            return np.empty((0, 2), dtype=np.float64)
        return np.array([p.position for p in self.points], dtype=np.float64)


@dataclass(frozen=True)
class Correspondence:
    """Provider result for one track between two consecutive frames."""
    track_id: int
    next_position: tuple[float, float]
    tracked: bool = True
