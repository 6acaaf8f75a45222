"""
Track store: owns every trajectory and its lifecycle.

Tracks live in an arena keyed by a stable integer id. A separate ordered
list of active ids is the view the optical-flow provider iterates over, so
identity across frames is carried by id rather than by array position.
"""

import logging
from datetime import datetime
from typing import Iterable, Iterator, Sequence

import numpy as np

from flowcast.core.errors import CorrespondenceError, NoFeaturesError, TrackStoreError
from flowcast.tracking.models import Correspondence, Point, Track
from flowcast.tracking.motion import apply_estimate, estimate_motion

logger = logging.getLogger(__name__)


def to_seconds(timestamp: float | datetime) -> float:
    """Convert a timestamp (seconds or datetime) to float seconds."""
    if isinstance(timestamp, datetime):
        return timestamp.timestamp()
    return float(timestamp)


def _as_positions(points) -> np.ndarray:
    """Normalise Nx2 or OpenCV-style Nx1x2 input to an Nx2 float array."""
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return arr.reshape(0, 2)
    return arr.reshape(-1, 2)


class TrackStore:
    """
    Owns feature tracks across a frame sequence.

    The store is single threaded: calls to initialize/ingest must be
    serialised by the caller. Independent stores share no state.

    Attributes:
        next_id: Id that the next created track will receive
        frame_count: Number of frames seen (initialize counts as one)

    Example:
        >>> store = TrackStore()
        >>> _ = store.initialize([(0.0, 0.0)], timestamp=0.0)
        >>> for t in (1.0, 2.0, 3.0):
        ...     _ = store.ingest([Correspondence(0, (t * t, t * t))], timestamp=t)
        >>> track = next(store.get_active())
        >>> len(track.points)
        4
    """

    def __init__(self):
        self.next_id = 0
        self.frame_count = 0
        self._tracks: dict[int, Track] = {}
        self._active_ids: list[int] = []

    @property
    def is_initialized(self) -> bool:
        return self.frame_count > 0

    def initialize(self, positions, timestamp: float | datetime) -> list[Track]:
        """
        Seed the store with one track per detected feature.

        Args:
            positions: Feature positions, shape (N, 2) or (N, 1, 2)
            timestamp: Capture time of the first frame

        Returns:
            The newly created tracks in id order

        Raises:
            NoFeaturesError: If no positions are given
            TrackStoreError: If the store was already initialized
        """
        if self.is_initialized:
            raise TrackStoreError("Track store already initialized; call reset() first")

        pts = _as_positions(positions)
        if len(pts) == 0:
            raise NoFeaturesError("No features found in the first image")

        t = to_seconds(timestamp)
        created = []
        for x, y in pts:
            track = Track(id=self.next_id, points=[Point(t, (float(x), float(y)))])
            self._tracks[track.id] = track
            self._active_ids.append(track.id)
            created.append(track)
            self.next_id += 1

        self.frame_count = 1
        logger.info("Initialized %d tracks at t=%.3f", len(created), t)
        return created

    def ingest(
        self,
        correspondences: Iterable[Correspondence | tuple],
        timestamp: float | datetime,
    ) -> list[Track]:
        """
        Update the active tracks with one frame of correspondences.

        Every active track must be named exactly once. Tracked features get
        a new point and a fresh motion estimate; untracked ones are marked
        lost and leave the active view.

        Args:
            correspondences: Correspondence objects or
                (track_id, next_position, tracked) tuples
            timestamp: Capture time of the new frame

        Returns:
            The active tracks after the update, in id order

        Raises:
            CorrespondenceError: If the correspondences do not cover the
                active tracks exactly
        """
        items = [
            c if isinstance(c, Correspondence) else Correspondence(*c)
            for c in correspondences
        ]

        if not self._active_ids:
            if items:
                raise CorrespondenceError(
                    f"Got {len(items)} correspondences but no tracks are active"
                )
            return []

        by_id = self._validate(items)
        t = to_seconds(timestamp)
        self.frame_count += 1

        surviving = []
        num_lost = 0
        for track_id in self._active_ids:
            track = self._tracks[track_id]
            corr = by_id[track_id]
            if not corr.tracked:
                track.lost = True
                num_lost += 1
                continue

            if t <= track.last.time:
                logger.warning(
                    "Track %d: timestamp %.6f does not advance past %.6f",
                    track_id, t, track.last.time,
                )
            x, y = corr.next_position
            track.points.append(Point(t, (float(x), float(y))))
            apply_estimate(track, estimate_motion(track))
            surviving.append(track_id)

        self._active_ids = surviving
        logger.debug(
            "Frame %d: %d tracked, %d lost, %d active",
            self.frame_count, len(surviving), num_lost, len(surviving),
        )
        return [self._tracks[i] for i in self._active_ids]

    def _validate(self, items: list[Correspondence]) -> dict[int, Correspondence]:
        if len(items) != len(self._active_ids):
            raise CorrespondenceError(
                f"Expected {len(self._active_ids)} correspondences, got {len(items)}"
            )

        by_id: dict[int, Correspondence] = {}
        for corr in items:
            if corr.track_id in by_id:
                raise CorrespondenceError(
                    f"Duplicate correspondence for track {corr.track_id}",
                    track_id=corr.track_id,
                )
            track = self._tracks.get(corr.track_id)
            if track is None or track.lost:
                raise CorrespondenceError(
                    f"Track {corr.track_id} is not active", track_id=corr.track_id
                )
            by_id[corr.track_id] = corr
        return by_id

    def ingest_arrays(
        self,
        next_points,
        status: Sequence,
        timestamp: float | datetime,
    ) -> list[Track]:
        """
        Positional form of ingest for optical-flow output.

        Row i of ``next_points``/``status`` belongs to ``active_ids()[i]``,
        the same order ``previous_points()`` produced for the provider.

        Raises:
            CorrespondenceError: If the array lengths differ from the number
                of active tracks
        """
        pts = _as_positions(next_points)
        flags = np.asarray(status).ravel()
        if len(pts) != len(self._active_ids) or len(flags) != len(self._active_ids):
            raise CorrespondenceError(
                f"Expected {len(self._active_ids)} points and status flags, "
                f"got {len(pts)} and {len(flags)}"
            )

        correspondences = [
            Correspondence(track_id, (float(p[0]), float(p[1])), bool(ok))
            for track_id, p, ok in zip(self._active_ids, pts, flags)
        ]
        return self.ingest(correspondences, timestamp)

    def get_active(self) -> Iterator[Track]:
        """Yield live tracks in ascending id order."""
        for track_id in sorted(self._active_ids):
            yield self._tracks[track_id]

    def active_ids(self) -> list[int]:
        """Return the ids of the live tracks in provider order."""
        return list(self._active_ids)

    def previous_points(self) -> np.ndarray:
        """
        Latest position of every live track, in ``active_ids()`` order.

        Returns:
            float32 array of shape (N, 1, 2), the layout OpenCV's
            optical-flow functions expect
        """
        if not self._active_ids:
            return np.empty((0, 1, 2), dtype=np.float32)
        pts = [self._tracks[i].last.position for i in self._active_ids]
        return np.array(pts, dtype=np.float32).reshape(-1, 1, 2)

    def get_track(self, track_id: int) -> Track:
        """Return a track by id, whether live or lost."""
        return self._tracks[track_id]

    def history(self) -> list[Track]:
        """Return every track ever created, in id order."""
        return [self._tracks[i] for i in sorted(self._tracks)]

    def reset(self) -> None:
        """Discard all tracks. Ids keep counting up and are never reused."""
        self._tracks.clear()
        self._active_ids.clear()
        self.frame_count = 0

    def __len__(self) -> int:
        return len(self._active_ids)
