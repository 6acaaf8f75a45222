#!/usr/bin/env python3
"""
Minimal Example: flowcast API Usage
===================================

Shows the essential API calls without extra boilerplate.
This is the "quick reference" version.
"""

import cv2
from pathlib import Path

from flowcast.core.config import FilterConfig, FilterPolicy
from flowcast.core.video import iter_frames
from flowcast.outputs import draw_extrapolated_tracks, write_tracks_csv
from flowcast.tracking import (
    FlowTracker,
    LucasKanadeProvider,
    apply_filter,
    extrapolate,
)


# =============================================================================
# STEP 1: TRACKING
# Equivalent to: flowcast track rainfall_data -n 6 --max-features 200
# =============================================================================

input_dir = "rainfall_data"
num_images = 6

tracker = FlowTracker(LucasKanadeProvider(max_features=200))

size = None
for timestamp, frame in iter_frames(input_dir, num_images, frame_interval=60.0):
    size = frame.shape[1], frame.shape[0]
    stats = tracker.add_frame(frame, timestamp)
    print(f"Frame {stats.frame}: {stats.tracked} tracked, {stats.lost} lost")

tracks = list(tracker.store.get_active())
print(f"{len(tracks)} tracks survived all frames")


# =============================================================================
# STEP 2: FILTERING
# Equivalent to: --filter-type density --grid-cell-size 64
#                --min-tracks-per-cell 2 --max-tracks-per-cell 5
# =============================================================================

filter_config = FilterConfig(
    policy=FilterPolicy.DENSITY.value,
    min_track_length=num_images,
    grid_cell_size=64,
    min_tracks_per_cell=2,
    max_tracks_per_cell=5,
)
tracks = apply_filter(tracks, filter_config)


# =============================================================================
# STEP 3: NOWCAST
# Equivalent to: --extrapolate 5 -o out
# =============================================================================

output_dir = Path("out")
output_dir.mkdir(exist_ok=True)

for track in tracks:
    future = list(extrapolate(track, 5))
    if future:
        print(f"Track {track.id}: next position {future[0]}")

width, height = size
cv2.imwrite(str(output_dir / "extrapolated.png"),
            draw_extrapolated_tracks(tracks, width, height, 5))
write_tracks_csv(output_dir / "tracks.csv", tracks)

print("Outputs written to", output_dir)
