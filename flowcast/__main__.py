"""
flowcast Command Line Interface

Usage:
    flowcast <command> [options]

Commands:
    track       Track features through an image sequence or video
    config      Write an example configuration file

Examples:
    flowcast track rainfall_data -n 6 --filter-type density --extrapolate 5
    flowcast track clip.mp4 --max-features 300 -o out
    flowcast config flowcast.json
"""

import argparse
import logging
import sys
from pathlib import Path

import cv2

from flowcast import __version__
from flowcast.core.config import (
    Config,
    FilterPolicy,
    apply_env_overrides,
    create_example_config,
    load_config,
    validate_filter_config,
)
from flowcast.core.errors import FlowcastError
from flowcast.core.video import FrameSize, iter_frames

logger = logging.getLogger("flowcast")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='flowcast',
        description='Feature track nowcasting toolkit',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        '-V', '--version',
        action='version',
        version=f'flowcast {__version__}',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging',
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Only log warnings and errors',
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Track command
    track_parser = subparsers.add_parser(
        'track',
        help='Track features through an image sequence or video',
    )
    track_parser.add_argument('input', help='Image directory or video file')
    track_parser.add_argument(
        '-c', '--config',
        help='JSON configuration file (command line options override it)',
    )
    track_parser.add_argument(
        '-o', '--output-dir',
        default=None,
        help='Directory for images and CSV files (default: .)',
    )
    track_parser.add_argument(
        '-n', '--num-images',
        type=int,
        default=None,
        help='Number of images to process from the sequence (default: all)',
    )
    track_parser.add_argument(
        '--max-features',
        type=int,
        default=None,
        help='Maximum number of features to track (default: 200)',
    )
    track_parser.add_argument(
        '--frame-interval',
        type=float,
        default=None,
        help='Seconds between images in a sequence (default: 60)',
    )
    track_parser.add_argument(
        '--filter-type',
        choices=[p.value for p in FilterPolicy],
        default=None,
        help='Track filter (default: smoothness)',
    )
    track_parser.add_argument(
        '--smoothness',
        type=float,
        default=None,
        help='Max average angle change in radians (default: 0.5)',
    )
    track_parser.add_argument(
        '--max-angle',
        type=float,
        default=None,
        help='Max single angle change in radians for max_angle (default: 0.8)',
    )
    track_parser.add_argument(
        '--grid-cell-size',
        type=int,
        default=None,
        help='Grid cell size for the density filter (default: 64)',
    )
    track_parser.add_argument(
        '--min-tracks-per-cell',
        type=int,
        default=None,
        help='Minimum tracks for a cell to be kept (default: 2)',
    )
    track_parser.add_argument(
        '--max-tracks-per-cell',
        type=int,
        default=None,
        help='Maximum tracks kept per cell (default: 5)',
    )
    track_parser.add_argument(
        '--min-track-length',
        type=int,
        default=None,
        help='Minimum number of points a track must have (default: 6)',
    )
    track_parser.add_argument(
        '--extrapolate',
        type=int,
        default=None,
        help='Number of future points to extrapolate (default: 0)',
    )
    track_parser.add_argument(
        '--vector-scale',
        type=float,
        default=None,
        help='Scale for drawing velocity vectors (default: 50)',
    )

    # Config command
    config_parser = subparsers.add_parser(
        'config',
        help='Write an example configuration file',
    )
    config_parser.add_argument(
        'path',
        nargs='?',
        default='flowcast.json',
        help='Output path (default: flowcast.json)',
    )

    return parser


# argparse destination -> (config section, field)
_OVERRIDES = {
    'output_dir': ('output', 'output_dir'),
    'max_features': ('tracker', 'max_features'),
    'frame_interval': ('tracker', 'frame_interval'),
    'filter_type': ('filter', 'policy'),
    'smoothness': ('filter', 'smoothness'),
    'max_angle': ('filter', 'max_angle'),
    'grid_cell_size': ('filter', 'grid_cell_size'),
    'min_tracks_per_cell': ('filter', 'min_tracks_per_cell'),
    'max_tracks_per_cell': ('filter', 'max_tracks_per_cell'),
    'min_track_length': ('filter', 'min_track_length'),
    'extrapolate': ('output', 'extrapolate'),
    'vector_scale': ('output', 'vector_scale'),
}


def resolve_config(args: argparse.Namespace) -> Config:
    """
    Merge configuration sources.

    Precedence (lowest first): defaults, config file, FLOWCAST_* environment
    variables, command line options.
    """
    config = load_config(args.config) if args.config else Config()
    apply_env_overrides(config)

    for dest, (section, name) in _OVERRIDES.items():
        value = getattr(args, dest, None)
        if value is not None:
            setattr(getattr(config, section), name, value)

    validate_filter_config(config.filter)
    return config


def configure_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose, args.quiet)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == 'track':
            return run_track(args)
        elif args.command == 'config':
            create_example_config(args.path)
            return 0
    except (FlowcastError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1

    parser.print_help()
    return 1


def run_track(args: argparse.Namespace) -> int:
    """Run feature tracking, filtering and extrapolation."""
    from flowcast.outputs import (
        draw_extrapolated_tracks,
        draw_tracks,
        draw_vectors,
        write_extrapolation_csv,
        write_tracks_csv,
    )
    from flowcast.tracking import FlowTracker, LucasKanadeProvider, apply_filter

    config = resolve_config(args)
    settings = config.tracker
    out = config.output

    logger.info(
        "Running with max_features=%d, min_track_length=%d, extrapolate=%d, filter=%s",
        settings.max_features, config.filter.min_track_length, out.extrapolate,
        config.filter.policy,
    )

    provider = LucasKanadeProvider(
        max_features=settings.max_features,
        quality_level=settings.quality_level,
        min_distance=settings.min_distance,
        fb_threshold=settings.fb_threshold,
    )
    tracker = FlowTracker(provider)

    size = None
    for timestamp, frame in iter_frames(args.input, args.num_images, settings.frame_interval):
        if size is None:
            size = FrameSize(width=frame.shape[1], height=frame.shape[0])
        stats = tracker.add_frame(frame, timestamp)
        logger.debug("Frame %d: %d tracked, %d lost", stats.frame, stats.tracked, stats.lost)

    if size is None:
        logger.error("No frames found in %s", args.input)
        return 1

    all_tracks = list(tracker.store.get_active())
    logger.info("Found %d surviving tracks", len(all_tracks))

    tracks = apply_filter(all_tracks, config.filter)

    output_dir = Path(out.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if out.write_images:
        cv2.imwrite(str(output_dir / "tracks.png"), draw_tracks(tracks, size.width, size.height))
        cv2.imwrite(
            str(output_dir / "vectors.png"),
            draw_vectors(tracks, size.width, size.height, out.vector_scale),
        )
        if out.extrapolate > 0:
            cv2.imwrite(
                str(output_dir / "extrapolated.png"),
                draw_extrapolated_tracks(tracks, size.width, size.height, out.extrapolate),
            )

    if out.write_csv:
        write_tracks_csv(output_dir / "tracks.csv", tracks)
        if out.extrapolate > 0:
            rows = write_extrapolation_csv(output_dir / "extrapolation.csv", tracks, out.extrapolate)
            logger.info("Wrote %d extrapolated points", rows)

    logger.info("Outputs written to %s", output_dir)
    return 0


if __name__ == '__main__':
    sys.exit(main())
