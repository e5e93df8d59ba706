"""
gallery.py – run the map examples in order and export them

Each example is a small builder: it asks the context for the data it needs,
calls into folium or plotly and returns the widget.  Datasets are loaded at
most once per run, and built widgets are kept so that a later example can
layer onto an earlier one (``providers`` reuses the ``stations`` map).
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from functools import cached_property
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from . import leaflet, plotly_geo
from .config import GalleryConfig
from .io import (
    fetch_file,
    load_airports,
    load_boundaries,
    load_contours,
    load_flights,
    load_points,
    save_widget,
)
from .reshape import contours_to_long, filter_regions

logger = logging.getLogger("mapgallery.gallery")


# ────────────────────────────────────────────────────────────────────────────
# Context – lazily loaded inputs
# ────────────────────────────────────────────────────────────────────────────
class GalleryContext:
    """Configuration, the datasets it points at, and widgets built so far."""

    def __init__(self, config: GalleryConfig, refresh: bool = False):
        self.config = config
        self.refresh = refresh
        self.widgets: Dict[str, object] = {}

    def _remote_kw(self) -> dict:
        src = self.config.sources
        return dict(
            timeout=src.timeout_s,
            refresh_age=timedelta(days=src.refresh_days),
            force=self.refresh,
        )

    @cached_property
    def points(self):
        return load_points(self.config.paths.points_csv)

    def _boundaries_path(self) -> Path:
        """Local boundary file, or the downloaded archive when it is absent."""
        local = self.config.paths.boundaries
        url = self.config.sources.boundaries_url
        if local.exists() or not url:
            return local
        logger.info("%s not found – using %s", local, url)
        return fetch_file(url, self.config.paths.cache_dir, **self._remote_kw())

    @cached_property
    def regions(self):
        """Boundary layer filtered to the configured allow-list."""
        cfg = self.config.map
        gdf = load_boundaries(self._boundaries_path())
        return filter_regions(gdf, cfg.region_codes, cfg.region_column)

    @cached_property
    def airports(self):
        return load_airports(self.config.sources.airports_url, self.config.paths.cache_dir, **self._remote_kw())

    @cached_property
    def flights(self):
        return load_flights(self.config.sources.flights_url, self.config.paths.cache_dir, **self._remote_kw())

    @cached_property
    def contours(self):
        wide = load_contours(self.config.sources.contours_url, self.config.paths.cache_dir, **self._remote_kw())
        return contours_to_long(wide)


# ────────────────────────────────────────────────────────────────────────────
# Examples
# ────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Example:
    name: str
    title: str
    library: str
    builder: Callable[[GalleryContext], object]
    requires: Tuple[str, ...] = ()


def _basic(ctx: GalleryContext):
    cfg = ctx.config.map
    lat, lon = cfg.demo_marker
    m = leaflet.base_map((lat, lon), zoom=12, tiles=cfg.base_tiles)
    return leaflet.add_marker(m, lat, lon, cfg.demo_popup)


def _stations(ctx: GalleryContext):
    cfg = ctx.config.map
    m = leaflet.base_map(cfg.center, cfg.zoom, tiles=cfg.base_tiles)
    return leaflet.add_point_markers(m, ctx.points)


def _providers(ctx: GalleryContext):
    return leaflet.add_provider_tiles(ctx.widgets["stations"], ctx.config.map.providers)


def _polygons(ctx: GalleryContext):
    cfg = ctx.config.map
    m = leaflet.base_map(cfg.center, cfg.zoom, tiles=cfg.base_tiles)
    return leaflet.add_polygons(m, ctx.regions, name_column=cfg.name_column)


def _choropleth(ctx: GalleryContext):
    cfg = ctx.config.map
    return leaflet.choropleth_map(
        ctx.regions,
        cfg.value_column,
        name_column=cfg.name_column,
        palette=cfg.palette,
        quantiles=cfg.quantiles,
        tiles=cfg.base_tiles,
        caption=f"Land area ({cfg.value_column}, m²)",
    )


def _state_choropleth(ctx: GalleryContext):
    cfg = ctx.config.map
    return plotly_geo.state_choropleth_figure(
        ctx.regions,
        code_column=cfg.region_column,
        value_column=cfg.value_column,
        name_column=cfg.name_column,
        colorscale=cfg.palette,
    )


def _flights(ctx: GalleryContext):
    return plotly_geo.flight_paths_figure(ctx.airports, ctx.flights)


def _globe(ctx: GalleryContext):
    return plotly_geo.globe_contours_figure(ctx.contours)


EXAMPLES: Tuple[Example, ...] = (
    Example("basic", "A single marker with a popup", "folium", _basic),
    Example("stations", "Stations from a CSV file", "folium", _stations),
    Example("providers", "Third-party tile providers", "folium", _providers, requires=("stations",)),
    Example("polygons", "Boundary polygons from a shapefile", "folium", _polygons),
    Example("choropleth", "Choropleth of land area", "folium", _choropleth),
    Example("state_choropleth", "Choropleth trace of land area", "plotly", _state_choropleth),
    Example("flights", "Flight paths between airports", "plotly", _flights),
    Example("globe", "Contour lines on a globe", "plotly", _globe),
)
EXAMPLE_NAMES: Tuple[str, ...] = tuple(e.name for e in EXAMPLES)


def select_examples(only: Optional[Iterable[str]] = None) -> List[Example]:
    """Registry order; dependencies of selected examples are pulled in."""
    if not only:
        return list(EXAMPLES)

    wanted = set(only)
    unknown = sorted(wanted - set(EXAMPLE_NAMES))
    if unknown:
        raise ValueError(f"Unknown example(s) {unknown}; choose from {list(EXAMPLE_NAMES)}")

    by_name = {e.name: e for e in EXAMPLES}
    pending = list(wanted)
    while pending:
        for dep in by_name[pending.pop()].requires:
            if dep not in wanted:
                wanted.add(dep)
                pending.append(dep)
    return [e for e in EXAMPLES if e.name in wanted]


# ────────────────────────────────────────────────────────────────────────────
# Runner
# ────────────────────────────────────────────────────────────────────────────
@dataclass
class GalleryResult:
    written: Dict[str, Path] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)
    index: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return not self.failures


def run_gallery(
    config: GalleryConfig,
    only: Optional[Iterable[str]] = None,
    keep_going: bool = False,
    write_index: bool = True,
    refresh: bool = False,
) -> GalleryResult:
    """
    Build every selected example and write ``<name>.html`` to the output dir.

    The first failure propagates unless *keep_going* is set, in which case it
    is logged, recorded in the result, and examples depending on it are skipped.
    """
    examples = select_examples(only)
    out_dir = Path(config.paths.output_dir)
    ctx = GalleryContext(config, refresh=refresh)
    result = GalleryResult()

    for example in examples:
        blocked = [dep for dep in example.requires if dep not in ctx.widgets]
        if blocked:
            result.failures[example.name] = f"skipped – needs {', '.join(blocked)}"
            logger.warning("Skipping %s – %s failed", example.name, ", ".join(blocked))
            continue

        logger.info("==> %s (%s)", example.name, example.library)
        try:
            widget = example.builder(ctx)
            ctx.widgets[example.name] = widget
            result.written[example.name] = save_widget(widget, out_dir / f"{example.name}.html")
        except Exception as exc:  # noqa: BLE001
            if not keep_going:
                raise
            logger.error("%s failed – %s", example.name, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
            result.failures[example.name] = f"{type(exc).__name__}: {exc}"

    if write_index:
        result.index = write_index_page(result, out_dir)

    logger.info("Gallery done: %d written, %d failed", len(result.written), len(result.failures))
    return result


def write_index_page(result: GalleryResult, output_dir: Path) -> Path:
    """Create an index.html file that links all written widgets"""
    by_name = {e.name: e for e in EXAMPLES}
    cards = []
    for name, path in result.written.items():
        ex = by_name[name]
        cards.append(
            f'<li class="card"><a href="{html.escape(path.name)}">{html.escape(ex.title)}</a>'
            f'<span class="lib">{ex.library}</span></li>'
        )
    for name, reason in result.failures.items():
        cards.append(
            f'<li class="card failed">{html.escape(by_name[name].title)}'
            f'<span class="lib">{html.escape(reason)}</span></li>'
        )

    index_html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Interactive map gallery</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 0; padding: 20px; background-color: #f5f5f5; }}
        .container {{ max-width: 900px; margin: 0 auto; background-color: white; padding: 30px;
                      border-radius: 10px; box-shadow: 0 4px 6px rgba(0,0,0,0.1); }}
        ul {{ list-style: none; padding: 0; }}
        .card {{ border: 1px solid #ddd; border-radius: 8px; padding: 15px; margin-bottom: 10px;
                 background-color: #f9f9f9; display: flex; justify-content: space-between; }}
        .card.failed {{ color: #999; }}
        .lib {{ font-size: 0.9em; color: #666; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>Interactive map gallery</h1>
        <ul>
            {"".join(cards)}
        </ul>
    </div>
</body>
</html>
"""
    output_dir.mkdir(parents=True, exist_ok=True)
    index_path = output_dir / "index.html"
    index_path.write_text(index_html, encoding="utf-8")
    logger.info("Index written to %s", index_path)
    return index_path
