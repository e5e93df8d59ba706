"""
Leaflet widgets
===============

Thin builders around folium for the gallery's leaflet examples:

- base map with a default tile layer
- single marker with popup
- point markers from a table, with popups and tooltips
- additional tile providers with a layer switcher
- boundary polygons with hover highlight
- choropleth shaded by a numeric attribute, with legend

Each builder returns the ``folium.Map`` it was given (or created) so calls
can be chained the way the leaflet pipe reads.
"""

import logging
from typing import Dict, Iterable, Optional, Sequence, Tuple

import branca.colormap as cm
import folium
import pandas as pd
from xyzservices import providers as xyz_providers

logger = logging.getLogger("mapgallery.leaflet")

DEFAULT_STYLE: Dict[str, object] = {
    "color": "#444444",
    "weight": 1,
    "opacity": 1.0,
    "fillOpacity": 0.5,
}
HIGHLIGHT_STYLE: Dict[str, object] = {
    "color": "white",
    "weight": 2,
    "fillOpacity": 0.7,
}


def _bounds(lats: Sequence[float], lons: Sequence[float]):
    return [[min(lats), min(lons)], [max(lats), max(lons)]]


def base_map(center: Tuple[float, float], zoom: int = 6, tiles: Optional[str] = "OpenStreetMap") -> folium.Map:
    """Create a map centred on *center* (lat, lon)."""
    logger.debug("Base map at %s, zoom %d, tiles %s", center, zoom, tiles)
    return folium.Map(location=list(center), zoom_start=zoom, tiles=tiles, control_scale=True)


def add_marker(map_obj: folium.Map, lat: float, lon: float, popup: str) -> folium.Map:
    """Drop one marker whose popup shows *popup*."""
    folium.Marker(location=[lat, lon], popup=folium.Popup(popup, max_width=300)).add_to(map_obj)
    return map_obj


def add_point_markers(map_obj: folium.Map, points: pd.DataFrame, layer_name: str = "Stations") -> folium.Map:
    """
    Add one marker per row of *points* (columns ``name``, ``long``, ``lat``).

    Args:
        map_obj: Map to draw on
        points: Validated point table
        layer_name: Name of the feature group in the layer switcher

    Returns:
        The same map, fitted to the points
    """
    if points.empty:
        raise ValueError("No points to plot")

    group = folium.FeatureGroup(name=layer_name)
    for row in points.itertuples(index=False):
        popup_content = (
            f"<b>{row.name}</b><br>"
            f"Lat: {row.lat:.4f}<br>"
            f"Lon: {row.long:.4f}"
        )
        folium.Marker(
            location=[row.lat, row.long],
            popup=folium.Popup(popup_content, max_width=250),
            tooltip=row.name,
        ).add_to(group)
    group.add_to(map_obj)

    map_obj.fit_bounds(_bounds(points["lat"].tolist(), points["long"].tolist()))
    logger.info("Added %d markers", len(points))
    return map_obj


def add_provider_tiles(map_obj: folium.Map, providers: Iterable[str]) -> folium.Map:
    """
    Layer extra tile providers (xyzservices names such as ``Esri.WorldImagery``)
    and add a layer switcher.

    Raises:
        ValueError: if a provider name is unknown or needs an API key
    """
    added = 0
    for name in providers:
        provider = xyz_providers.query_name(name)  # ValueError on unknown names
        if provider.requires_token():
            raise ValueError(f"Tile provider {name!r} requires an API key")
        folium.TileLayer(tiles=provider, name=name, overlay=False, control=True).add_to(map_obj)
        added += 1

    # one switcher per map, however many times providers are added
    if getattr(map_obj, "layer_control", None) is None:
        map_obj.layer_control = folium.LayerControl(collapsed=False).add_to(map_obj)
    logger.info("Added %d tile providers", added)
    return map_obj


def add_polygons(
    map_obj: folium.Map,
    gdf,
    name_column: str = "NAME",
    layer_name: str = "Regions",
    style: Optional[Dict[str, object]] = None,
) -> folium.Map:
    """Draw boundary polygons with hover highlight and a name tooltip."""
    fixed = {**DEFAULT_STYLE, "fillColor": "#3388ff", **(style or {})}
    folium.GeoJson(
        gdf,
        name=layer_name,
        style_function=lambda _feature: fixed,
        highlight_function=lambda _feature: HIGHLIGHT_STYLE,
        tooltip=folium.GeoJsonTooltip(fields=[name_column], labels=False),
    ).add_to(map_obj)
    if not gdf.empty:
        minx, miny, maxx, maxy = gdf.total_bounds
        map_obj.fit_bounds([[miny, minx], [maxy, maxx]])
    return map_obj


def value_colormap(values, palette: str = "YlOrRd", quantiles: Optional[int] = None, caption: str = ""):
    """
    Linear branca colormap over *values*; stepped at quantile breaks when
    *quantiles* is given.
    """
    base = getattr(cm.linear, f"{palette}_09", None)
    if base is None:
        raise ValueError(f"Unknown palette {palette!r}")

    series = pd.Series(values, dtype=float).dropna()
    if series.empty:
        raise ValueError("No values to colour")

    vmin, vmax = float(series.min()), float(series.max())
    if vmin == vmax:
        vmax = vmin + 1.0
    colormap = base.scale(vmin, vmax)
    if quantiles and series.nunique() > quantiles:
        colormap = colormap.to_step(data=series.tolist(), method="quantiles", n=quantiles)
    colormap.caption = caption
    return colormap


def choropleth_map(
    gdf,
    value_column: str,
    name_column: str = "NAME",
    palette: str = "YlOrRd",
    quantiles: Optional[int] = None,
    tiles: Optional[str] = "OpenStreetMap",
    caption: Optional[str] = None,
) -> folium.Map:
    """
    Choropleth of *gdf* shaded by *value_column*, with a legend.

    Raises:
        ValueError: if *gdf* is empty
        KeyError: if a column is missing
    """
    if gdf.empty:
        raise ValueError("Cannot build a choropleth from an empty layer")
    for col in (value_column, name_column):
        if col not in gdf.columns:
            raise KeyError(f"Column {col!r} not in layer")

    layer = gdf.copy()
    layer[value_column] = layer[value_column].astype(float)
    colormap = value_colormap(layer[value_column], palette, quantiles, caption or value_column)

    def get_style(feature):
        value = feature["properties"].get(value_column)
        fill = colormap(value) if value is not None else "#cccccc"
        return {**DEFAULT_STYLE, "fillColor": fill}

    minx, miny, maxx, maxy = layer.total_bounds
    center = ((miny + maxy) / 2, (minx + maxx) / 2)
    m = base_map(center, tiles=tiles)

    folium.GeoJson(
        layer,
        name=caption or value_column,
        style_function=get_style,
        highlight_function=lambda _feature: HIGHLIGHT_STYLE,
        tooltip=folium.GeoJsonTooltip(
            fields=[name_column, value_column],
            aliases=["", caption or value_column],
            localize=True,
            sticky=True,
        ),
    ).add_to(m)
    colormap.add_to(m)
    m.fit_bounds([[miny, minx], [maxy, maxx]])

    logger.info("Choropleth of %d regions on %s", len(layer), value_column)
    return m
