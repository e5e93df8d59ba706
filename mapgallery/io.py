"""
io.py – point CSV validation, boundary loading, cached downloads
and widget export
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Final, Iterable, List

import folium
import geopandas as gpd
import pandas as pd
import plotly.graph_objects as go
import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger("mapgallery.io")

WGS84: Final[str] = "EPSG:4326"

# column aliases accepted in the point table → canonical name
_POINT_ALIASES: Final[dict] = {
    "name": "name",
    "station": "name",
    "station_name": "name",
    "long": "long",
    "lon": "long",
    "lng": "long",
    "longitude": "long",
    "lat": "lat",
    "latitude": "lat",
}
POINT_COLS: Final[List[str]] = ["name", "long", "lat"]

AIRPORT_COLS: Final[List[str]] = ["airport", "lat", "long", "cnt"]
FLIGHT_COLS: Final[List[str]] = ["start_lat", "start_lon", "end_lat", "end_lon"]


# ────────────────────────────────────────────────────────────────────────────
# Exceptions
# ────────────────────────────────────────────────────────────────────────────
class DataSourceError(RuntimeError):
    """Raised when an input file or remote table cannot be read."""


# ────────────────────────────────────────────────────────────────────────────
# Point table
# ────────────────────────────────────────────────────────────────────────────
class StationRow(BaseModel):
    """One line of the point CSV after initial cleaning."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    lon: float = Field(..., alias="long", ge=-180, le=180)
    lat: float = Field(..., ge=-90, le=90)

    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, v):
        return v.strip() if isinstance(v, str) else v


def _canonical_columns(columns: Iterable[str]) -> dict:
    mapping = {}
    for col in columns:
        key = str(col).strip().lower()
        if key in _POINT_ALIASES and _POINT_ALIASES[key] not in mapping.values():
            mapping[col] = _POINT_ALIASES[key]
    return mapping


def load_points(csv_path: Path | str) -> pd.DataFrame:
    """
    Parse the point table and return a DataFrame with columns
    ``name``, ``long``, ``lat``.

    * The delimiter is sniffed, so comma, semicolon and tab files all load.
    * Rows failing validation are logged and skipped.
    """
    csv_path = Path(csv_path)
    if not csv_path.is_file():
        raise FileNotFoundError(csv_path)

    df = pd.read_csv(csv_path, sep=None, engine="python")
    df = df.rename(columns=_canonical_columns(df.columns))

    # Header check
    missing = [c for c in POINT_COLS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing columns {missing} in {csv_path.name}")

    rows: list[StationRow] = []
    for i, raw in enumerate(df[POINT_COLS].to_dict(orient="records")):
        # Convert pandas NaN → None so validation reports the field
        raw = {k: (None if pd.isna(v) else v) for k, v in raw.items()}
        try:
            rows.append(StationRow(**raw))
        except ValidationError as err:
            logger.warning("Skipping invalid row %d: %s", i + 1, err)

    if not rows:
        raise ValueError(f"No valid rows in {csv_path.name}")

    logger.info("Loaded %d points from %s", len(rows), csv_path.name)
    return pd.DataFrame(
        [{"name": r.name, "long": r.lon, "lat": r.lat} for r in rows],
        columns=POINT_COLS,
    )


# ────────────────────────────────────────────────────────────────────────────
# Boundaries
# ────────────────────────────────────────────────────────────────────────────
def load_boundaries(path: Path | str) -> gpd.GeoDataFrame:
    """Read a boundary layer (shapefile, zipped shapefile or any OGR format) in WGS-84."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    source = f"zip://{path}" if path.suffix.lower() == ".zip" else path
    try:
        gdf = gpd.read_file(source)
    except Exception as exc:  # noqa: BLE001
        raise DataSourceError(f"Cannot read boundaries from {path}: {exc}") from exc

    if gdf.crs is None:
        logger.warning("%s has no CRS – assuming %s", path.name, WGS84)
        gdf = gdf.set_crs(WGS84)
    elif gdf.crs.to_epsg() != 4326:
        logger.debug("Reprojecting %s from %s", path.name, gdf.crs)
        gdf = gdf.to_crs(WGS84)

    logger.info("Loaded %d boundary features from %s", len(gdf), path.name)
    return gdf


# ────────────────────────────────────────────────────────────────────────────
# Remote tables
# ────────────────────────────────────────────────────────────────────────────
def _cache_path(url: str, cache_dir: Path) -> Path:
    digest = hashlib.md5(url.encode()).hexdigest()[:12]
    name = url.rstrip("/").rsplit("/", 1)[-1] or "table.csv"
    return cache_dir / f"{digest}_{name}"


def _is_fresh(path: Path, refresh_age: timedelta) -> bool:
    if not path.exists():
        return False
    mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    return datetime.now(timezone.utc) - mtime <= refresh_age


def fetch_file(
    url: str,
    cache_dir: Path | str,
    *,
    timeout: float = 30,
    refresh_age: timedelta = timedelta(days=7),
    force: bool = False,
) -> Path:
    """
    Download *url* into the on-disk cache and return the cached path.

    A fresh cache entry is used without touching the network.  When the
    download fails a stale entry is used instead; without one the error
    is raised as :class:`DataSourceError`.
    """
    cache_dir = Path(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)
    cached = _cache_path(url, cache_dir)

    if not force and _is_fresh(cached, refresh_age):
        logger.debug("Cache hit (%s)", cached.name)
        return cached

    try:
        logger.info("Fetching %s", url)
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as exc:
        if cached.exists():
            logger.warning("Fetch failed (%s) – falling back to cached %s", exc, cached.name)
            return cached
        raise DataSourceError(f"Cannot fetch {url}: {exc}") from exc

    cached.write_bytes(r.content)
    return cached


def fetch_csv(url: str, cache_dir: Path | str, **kw) -> pd.DataFrame:
    """Download a CSV table through :func:`fetch_file` and parse it."""
    return pd.read_csv(fetch_file(url, cache_dir, **kw))


def _require(df: pd.DataFrame, cols: List[str], what: str) -> pd.DataFrame:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"{what} table is missing columns {missing}")
    return df


def load_airports(url: str, cache_dir: Path | str, **kw) -> pd.DataFrame:
    df = _require(fetch_csv(url, cache_dir, **kw), AIRPORT_COLS, "Airport")
    logger.info("Loaded %d airports", len(df))
    return df


def load_flights(url: str, cache_dir: Path | str, **kw) -> pd.DataFrame:
    df = _require(fetch_csv(url, cache_dir, **kw), FLIGHT_COLS, "Flight")
    logger.info("Loaded %d flight routes", len(df))
    return df


def load_contours(url: str, cache_dir: Path | str, **kw) -> pd.DataFrame:
    df = fetch_csv(url, cache_dir, **kw)
    if df.empty or len(df.columns) < 2:
        raise ValueError("Contour table has no coordinate columns")
    logger.info("Loaded contour table (%d rows × %d columns)", *df.shape)
    return df


# ────────────────────────────────────────────────────────────────────────────
# Export
# ────────────────────────────────────────────────────────────────────────────
def save_widget(widget, out_path: Path | str) -> Path:
    """Write a folium map or plotly figure to a standalone HTML file."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(widget, folium.Map):
        widget.save(str(out_path))
    elif isinstance(widget, go.Figure):
        widget.write_html(str(out_path), include_plotlyjs="cdn")
    else:
        raise TypeError(f"Cannot export widget of type {type(widget).__name__}")

    logger.info("Widget written to %s", out_path)
    return out_path
