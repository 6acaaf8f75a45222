"""
Output handlers module.

- visualize: Track, extrapolation and velocity images
- data: Track and extrapolation CSV files

Example:
    >>> from flowcast.outputs import draw_tracks, write_tracks_csv
    >>> cv2.imwrite("tracks.png", draw_tracks(tracks, width, height))
    >>> write_tracks_csv("tracks.csv", tracks)
"""

from flowcast.outputs.visualize import (
    draw_tracks,
    draw_extrapolated_tracks,
    draw_vectors,
)
from flowcast.outputs.data import (
    write_tracks_csv,
    read_tracks_csv,
    write_extrapolation_csv,
)

__all__ = [
    "draw_tracks",
    "draw_extrapolated_tracks",
    "draw_vectors",
    "write_tracks_csv",
    "read_tracks_csv",
    "write_extrapolation_csv",
]
