"""
Data output handlers.

Writes tracks and extrapolations as CSV files and reads tracks back:
- tracks CSV columns: track_id, time, x, y, lost
- extrapolation CSV columns: track_id, step, x, y
"""

import csv
from pathlib import Path
from typing import Sequence

from flowcast.tracking.extrapolate import extrapolate
from flowcast.tracking.models import Point, Track
from flowcast.tracking.motion import apply_estimate, estimate_motion

TRACK_COLUMNS = ["track_id", "time", "x", "y", "lost"]
EXTRAPOLATION_COLUMNS = ["track_id", "step", "x", "y"]


def write_tracks_csv(path: str | Path, tracks: Sequence[Track]) -> None:
    """
    Write every point of every track, one row per point.

    Args:
        path: Output CSV path
        tracks: Tracks to write
    """
    path = Path(path)
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(TRACK_COLUMNS)
        for track in tracks:
            for point in track.points:
                writer.writerow([track.id, point.time, point.x, point.y, int(track.lost)])


def read_tracks_csv(path: str | Path) -> list[Track]:
    """
    Read tracks written by write_tracks_csv.

    Motion is re-estimated from the stored points so velocity, acceleration
    and polynomials reflect the last point of each track.

    Returns:
        Tracks in order of first appearance in the file

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a row is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Track file not found: {path}")

    tracks: dict[int, Track] = {}
    with open(path, "r", newline="") as f:
        for row in csv.DictReader(f):
            track_id = int(row["track_id"])
            track = tracks.get(track_id)
            if track is None:
                track = tracks[track_id] = Track(id=track_id)
            track.points.append(Point(float(row["time"]), (float(row["x"]), float(row["y"]))))
            track.lost = row.get("lost", "0") == "1"

    for track in tracks.values():
        apply_estimate(track, estimate_motion(track))
    return list(tracks.values())


def write_extrapolation_csv(
    path: str | Path,
    tracks: Sequence[Track],
    num_future_points: int,
) -> int:
    """
    Write extrapolated future positions for every fitted track.

    Returns:
        Number of rows written
    """
    path = Path(path)
    rows = 0
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(EXTRAPOLATION_COLUMNS)
        for track in tracks:
            for step, (x, y) in enumerate(extrapolate(track, num_future_points), start=1):
                writer.writerow([track.id, step, x, y])
                rows += 1
    return rows
