"""
config.py – gallery configuration
Dataclass settings for data paths, remote sources and map styling.
Defaults reproduce the tutorial; a YAML file can override any section.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from . import DATA_DIR, INPUT_DIR, OUTPUT_DIR, PROJECT_ROOT

logger = logging.getLogger("mapgallery.config")

PLOTLY_DATASETS = "https://raw.githubusercontent.com/plotly/datasets/master"
CENSUS_GENZ = "https://www2.census.gov/geo/tiger/GENZ2018/shp"

# New England plus the mid-Atlantic states
DEFAULT_REGION_CODES: Tuple[str, ...] = ("CT", "ME", "MA", "NH", "RI", "VT", "NY", "NJ", "PA")


class ConfigError(ValueError):
    """Raised when a configuration file is malformed or holds unknown or invalid settings."""


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class PathConfig:
    """Local inputs and output locations"""
    points_csv: Path = INPUT_DIR / "stations.csv"
    boundaries: Path = INPUT_DIR / "cb_2018_us_state_20m.shp"
    output_dir: Path = OUTPUT_DIR
    cache_dir: Path = DATA_DIR / "_cache"

    def __post_init__(self):
        """Ensure paths are Path objects; relative ones live under PROJECT_ROOT"""
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, (str, Path)):
                raise ConfigError(f"paths.{f.name} must be a path, got {value!r}")
            value = Path(value)
            if not value.is_absolute():
                value = PROJECT_ROOT / value
            setattr(self, f.name, value)


@dataclass
class SourceConfig:
    """Remote tables, plus the boundary archive used when no local copy exists"""
    airports_url: str = f"{PLOTLY_DATASETS}/2011_february_us_airport_traffic.csv"
    flights_url: str = f"{PLOTLY_DATASETS}/2011_february_aa_flight_paths.csv"
    contours_url: str = f"{PLOTLY_DATASETS}/globe_contours.csv"
    boundaries_url: Optional[str] = f"{CENSUS_GENZ}/cb_2018_us_state_20m.zip"
    timeout_s: int = 30
    refresh_days: int = 7

    def __post_init__(self):
        for name in ("timeout_s", "refresh_days"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"sources.{name} must be a number, got {value!r}")
        if self.timeout_s <= 0:
            raise ConfigError("timeout_s must be positive")
        if self.refresh_days < 0:
            raise ConfigError("refresh_days must be >= 0")


@dataclass
class MapConfig:
    """Leaflet/plotly styling parameters"""
    center: Tuple[float, float] = (42.36, -71.06)  # Boston
    zoom: int = 6
    base_tiles: str = "OpenStreetMap"
    providers: List[str] = field(
        default_factory=lambda: ["Esri.WorldImagery", "OpenTopoMap", "Esri.WorldStreetMap"]
    )
    region_codes: List[str] = field(default_factory=lambda: list(DEFAULT_REGION_CODES))
    region_column: str = "STUSPS"
    value_column: str = "ALAND"
    name_column: str = "NAME"
    palette: str = "YlOrRd"
    quantiles: Optional[int] = 4
    # Auckland, the birthplace of R
    demo_marker: Tuple[float, float] = (-36.852, 174.768)
    demo_popup: str = "The birthplace of R"

    def __post_init__(self):
        for name in ("center", "demo_marker"):
            pair = getattr(self, name)
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise ConfigError(f"map.{name} must be a (lat, lon) pair, got {pair!r}")
            setattr(self, name, tuple(float(v) for v in pair))
        # a single code may be written as a scalar
        for name in ("providers", "region_codes"):
            value = getattr(self, name)
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, (list, tuple)):
                raise ConfigError(f"map.{name} must be a list, got {value!r}")
            setattr(self, name, list(value))
        self.region_codes = [str(c).strip().upper() for c in self.region_codes]


@dataclass
class GalleryConfig:
    """Main configuration class containing all settings"""
    paths: PathConfig = field(default_factory=PathConfig)
    sources: SourceConfig = field(default_factory=SourceConfig)
    map: MapConfig = field(default_factory=MapConfig)
    log_level: LogLevel = LogLevel.INFO

    _SECTIONS = {"paths": PathConfig, "sources": SourceConfig, "map": MapConfig}

    # ── persistence ────────────────────────────────────────────────────
    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a YAML-friendly dictionary"""
        def convert_value(value):
            if isinstance(value, Path):
                return str(value)
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, dict):
                return {k: convert_value(v) for k, v in value.items()}
            if isinstance(value, (list, tuple)):
                return [convert_value(item) for item in value]
            return value

        return convert_value(asdict(self))

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        file_path = Path(file_path)
        with open(file_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, indent=2)

    @classmethod
    def from_dict(cls, config_dict: Optional[Dict[str, Any]]) -> "GalleryConfig":
        """Overlay a (possibly partial) mapping on top of the defaults."""
        config_dict = dict(config_dict or {})
        kwargs: Dict[str, Any] = {}

        level = config_dict.pop("log_level", None)
        if level is not None:
            try:
                kwargs["log_level"] = LogLevel(str(level).lower())
            except ValueError as exc:
                raise ConfigError(f"Unknown log_level {level!r}") from exc

        for name, section in config_dict.items():
            section_cls = cls._SECTIONS.get(name)
            if section_cls is None:
                raise ConfigError(f"Unknown configuration section {name!r}")
            if not isinstance(section, dict):
                raise ConfigError(f"Section {name!r} must be a mapping")
            known = {f.name for f in fields(section_cls)}
            unknown = sorted(set(section) - known)
            if unknown:
                raise ConfigError(f"Unknown keys in {name!r}: {unknown}")
            try:
                kwargs[name] = section_cls(**section)
            except ConfigError:
                raise
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid value in {name!r}: {exc}") from exc

        return cls(**kwargs)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "GalleryConfig":
        """Load configuration from a YAML file"""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, "r") as f:
            try:
                config_data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{file_path} is not valid YAML: {exc}") from exc
        if config_data is not None and not isinstance(config_data, dict):
            raise ConfigError(f"{file_path} must contain a mapping at top level")

        logger.debug("Loaded configuration from %s", file_path)
        return cls.from_dict(config_data)


def load_config(path: Union[str, Path, None] = None) -> GalleryConfig:
    """Return the default configuration, or the one in *path* overlaid on it."""
    if path is None:
        return GalleryConfig()
    return GalleryConfig.load_from_file(path)
