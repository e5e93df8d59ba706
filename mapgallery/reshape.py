"""
reshape.py – the gallery's only data logic

filter_regions(...)     – subset a boundary table by an allow-list of codes
contours_to_long(...)   – wide ``lat.N`` / ``lon.N`` columns → long rows
flight_segments(...)    – route table → one broken polyline
scale_sizes(...)        – traffic counts → marker sizes
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

log = logging.getLogger("mapgallery.reshape")

# "lat.12", "lon-3" – coordinate name, separator, line number
_WIDE_COLUMN = r"^(?P<coord>[A-Za-z_]+)[.\-](?P<line>\d+)$"


def filter_regions(gdf, codes: Iterable[str], column: str = "STUSPS"):
    """Return the rows whose *column* value is in *codes*, original order kept."""
    if column not in gdf.columns:
        raise KeyError(f"Column {column!r} not in boundary table")

    wanted = list(dict.fromkeys(codes))
    subset = gdf[gdf[column].isin(wanted)].copy()

    unmatched = sorted(set(wanted) - set(subset[column]))
    if unmatched:
        log.warning("No %s match for %s", column, ", ".join(unmatched))
    log.info("Kept %d of %d regions", len(subset), len(gdf))
    return subset


def contours_to_long(df: pd.DataFrame) -> pd.DataFrame:
    """
    Gather the wide contour table into one row per coordinate per line.

    Every input row is tagged with a 1-based ``id``; column names are split
    into coordinate and line number, then ``lat``/``lon`` are spread back to
    columns.  Lines have unequal lengths, so padded cells are dropped.
    """
    wide = df.copy()
    wide.insert(0, "id", np.arange(1, len(wide) + 1))

    long = wide.melt(id_vars="id", var_name="key", value_name="value")
    parts = long["key"].astype(str).str.extract(_WIDE_COLUMN)
    bad = sorted(long.loc[parts["coord"].isna(), "key"].unique())
    if bad:
        raise ValueError(f"Unexpected contour columns: {bad}")

    long = long.assign(coord=parts["coord"].str.lower(), line=parts["line"].astype(int))
    out = long.pivot(index=["line", "id"], columns="coord", values="value").reset_index()
    out.columns.name = None

    missing = [c for c in ("lat", "lon") if c not in out.columns]
    if missing:
        raise ValueError(f"Contour table has no {missing} columns")

    out = out.dropna(subset=["lat", "lon"])
    out = out[["line", "id", "lat", "lon"]].sort_values(["line", "id"], ignore_index=True)
    log.debug("Reshaped contours: %d lines, %d points", out["line"].nunique(), len(out))
    return out


def flight_segments(flights: pd.DataFrame) -> Tuple[List[Optional[float]], List[Optional[float]]]:
    """
    Lon/lat sequences drawing every route as its own segment.

    Segments are separated by ``None`` so a single line trace holds them all.
    """
    lons: List[Optional[float]] = []
    lats: List[Optional[float]] = []
    for row in flights.itertuples(index=False):
        lons += [float(row.start_lon), float(row.end_lon), None]
        lats += [float(row.start_lat), float(row.end_lat), None]
    return lons, lats


def scale_sizes(values, lo: float = 4.0, hi: float = 20.0) -> np.ndarray:
    """Linearly rescale *values* into [lo, hi]; constant input maps to the midpoint."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return arr
    vmin, vmax = np.nanmin(arr), np.nanmax(arr)
    if vmax == vmin:
        return np.full(arr.shape, (lo + hi) / 2.0)
    return np.interp(arr, (vmin, vmax), (lo, hi))
