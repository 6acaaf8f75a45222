"""
Configuration management for flowcast.

Provides a configuration system supporting JSON files
and environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from enum import Enum
from pathlib import Path
from typing import Any

from flowcast.core.errors import ConfigError

logger = logging.getLogger(__name__)


class FilterPolicy(str, Enum):
    """Track filter policies."""
    SMOOTHNESS = "smoothness"
    DENSITY = "density"
    MAX_ANGLE = "max_angle"


@dataclass
class TrackerSettings:
    """Feature detection and optical-flow settings."""
    max_features: int = 200
    quality_level: float = 0.01
    min_distance: int = 10
    fb_threshold: float | None = None
    frame_interval: float = 60.0  # seconds between images in a sequence


@dataclass
class FilterConfig:
    """Track filter selection and thresholds."""
    policy: str = FilterPolicy.SMOOTHNESS.value
    min_track_length: int = 6
    smoothness: float = 0.5  # max average angle change (radians)
    max_angle: float = 0.8  # max single angle change (radians)
    grid_cell_size: int = 64
    min_tracks_per_cell: int = 2
    max_tracks_per_cell: int = 5


@dataclass
class OutputSettings:
    """What the track command writes."""
    output_dir: str = "."
    extrapolate: int = 0
    vector_scale: float = 50.0
    write_images: bool = True
    write_csv: bool = True


@dataclass
class Config:
    """
    Main configuration container.

    Example:
        config = Config.load("flowcast.json")
        tracker = LucasKanadeProvider(max_features=config.tracker.max_features)
        kept = apply_filter(tracks, config.filter)
    """
    tracker: TrackerSettings = field(default_factory=TrackerSettings)
    filter: FilterConfig = field(default_factory=FilterConfig)
    output: OutputSettings = field(default_factory=OutputSettings)

    @classmethod
    def load(cls, path: str | Path) -> "Config":
        """Load configuration from a JSON file."""
        return load_config(path)

    def save(self, path: str | Path) -> None:
        """Save configuration to a JSON file."""
        save_config(self, path)

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return {
            "tracker": asdict(self.tracker),
            "filter": asdict(self.filter),
            "output": asdict(self.output),
        }


def _build(cls, data: dict[str, Any], section: str):
    """Create a settings dataclass, ignoring unknown keys with a warning."""
    known = cls.__dataclass_fields__.keys()
    unknown = sorted(set(data) - set(known))
    if unknown:
        logger.warning("Ignoring unknown %s settings: %s", section, ", ".join(unknown))
    return cls(**{k: v for k, v in data.items() if k in known})


def validate_filter_config(config: FilterConfig) -> None:
    """
    Check filter settings for values the filters cannot use.

    Raises:
        ConfigError: On an unknown policy or inconsistent per-cell limits
    """
    try:
        FilterPolicy(config.policy)
    except ValueError:
        available = [p.value for p in FilterPolicy]
        raise ConfigError(
            f"Unknown filter policy: {config.policy}. Available: {available}"
        ) from None

    if config.max_tracks_per_cell < config.min_tracks_per_cell:
        raise ConfigError(
            "max_tracks_per_cell must be >= min_tracks_per_cell "
            f"({config.max_tracks_per_cell} < {config.min_tracks_per_cell})"
        )


def load_config(path: str | Path) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        Parsed Config object

    Raises:
        FileNotFoundError: If the config file doesn't exist
        json.JSONDecodeError: If the JSON is invalid
        ConfigError: If a setting has an invalid value
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    config = Config(
        tracker=_build(TrackerSettings, data.get("tracker", {}), "tracker"),
        filter=_build(FilterConfig, data.get("filter", {}), "filter"),
        output=_build(OutputSettings, data.get("output", {}), "output"),
    )
    validate_filter_config(config.filter)
    return config


def save_config(config: Config, path: str | Path) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config: Configuration object to save
        path: Output path for the JSON file
    """
    path = Path(path)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)


def create_example_config(path: str | Path = "flowcast.json") -> Config:
    """
    Create an example configuration file.

    Args:
        path: Output path for the example config

    Returns:
        The created Config object
    """
    config = Config(
        tracker=TrackerSettings(max_features=200, frame_interval=60.0),
        filter=FilterConfig(
            policy=FilterPolicy.DENSITY.value,
            min_track_length=6,
            grid_cell_size=64,
            min_tracks_per_cell=2,
            max_tracks_per_cell=5,
        ),
        output=OutputSettings(output_dir="out", extrapolate=5),
    )

    config.save(path)
    logger.info("Created example configuration: %s", path)
    return config


def get_env_config(prefix: str = "FLOWCAST_") -> dict[str, Any]:
    """
    Get configuration from environment variables.

    All environment variables starting with the prefix will be included.
    Variable names are converted to lowercase with the prefix removed.

    Example:
        FLOWCAST_MAX_FEATURES=300 -> {"max_features": "300"}
    """
    config = {}
    for key, value in os.environ.items():
        if key.startswith(prefix):
            config_key = key[len(prefix):].lower()
            config[config_key] = value
    return config


def apply_env_overrides(config: Config, env: dict[str, Any] | None = None) -> Config:
    """
    Apply FLOWCAST_* environment values onto matching settings fields.

    Values are converted to the type of the field's current value.
    Unknown names are ignored.
    """
    env = get_env_config() if env is None else env
    for section in (config.tracker, config.filter, config.output):
        for name, raw in env.items():
            if not hasattr(section, name):
                continue
            current = getattr(section, name)
            if isinstance(current, bool):
                value = str(raw).lower() in ("true", "yes", "1", "on")
            elif isinstance(current, str):
                value = raw
            else:
                # numeric fields; None only for optional float thresholds
                convert = float if current is None else type(current)
                try:
                    value = convert(raw)
                except ValueError:
                    raise ConfigError(f"Invalid value for {name}: {raw!r}") from None
            setattr(section, name, value)
    return config
