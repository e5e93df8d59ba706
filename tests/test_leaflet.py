import types

import folium
import pandas as pd
import pytest
import xyzservices

from mapgallery import leaflet
from mapgallery.io import load_points
from mapgallery.reshape import filter_regions


def _children(element, kind):
    return [c for c in element._children.values() if isinstance(c, kind)]


def test_basic_marker_popup():
    m = leaflet.base_map((-36.852, 174.768), zoom=12)
    leaflet.add_marker(m, -36.852, 174.768, "The birthplace of R")

    markers = _children(m, folium.Marker)
    assert len(markers) == 1
    assert markers[0].location == [-36.852, 174.768]
    assert "The birthplace of R" in m.get_root().render()


def test_point_markers(points_csv):
    points = load_points(points_csv)
    m = leaflet.add_point_markers(leaflet.base_map((42.0, -71.0)), points)

    groups = _children(m, folium.FeatureGroup)
    assert len(groups) == 1
    markers = _children(groups[0], folium.Marker)
    assert len(markers) == len(points)
    html = m.get_root().render()
    assert "Boston South Station" in html
    assert "fitBounds" in html


def test_point_markers_empty():
    empty = pd.DataFrame(columns=["name", "long", "lat"])
    with pytest.raises(ValueError):
        leaflet.add_point_markers(leaflet.base_map((0, 0)), empty)


def test_provider_tiles_and_single_layer_control():
    m = leaflet.base_map((42.0, -71.0))
    leaflet.add_provider_tiles(m, ["Esri.WorldImagery", "OpenTopoMap"])
    control = m.layer_control
    leaflet.add_provider_tiles(m, ["Esri.WorldStreetMap"])

    tiles = _children(m, folium.TileLayer)
    assert len(tiles) == 4                                   # default + three providers
    assert len(_children(m, folium.LayerControl)) == 1
    assert m.layer_control is control


def test_provider_tiles_reject_keyed_provider(monkeypatch):
    keyed = xyzservices.TileProvider(
        name="Keyed.Streets",
        url="https://tiles.example.test/{z}/{x}/{y}.png?key={apikey}",
        attribution="example",
        apikey="<insert your api key here>",
    )
    monkeypatch.setattr(leaflet, "xyz_providers", types.SimpleNamespace(query_name=lambda name: keyed))

    m = leaflet.base_map((0, 0))
    with pytest.raises(ValueError, match="API key"):
        leaflet.add_provider_tiles(m, ["Keyed.Streets"])
    assert _children(m, folium.LayerControl) == []


def test_provider_tiles_unknown_name():
    with pytest.raises(ValueError):
        leaflet.add_provider_tiles(leaflet.base_map((0, 0)), ["No.Such.Provider"])


def test_polygons_layer(states_gdf):
    regions = filter_regions(states_gdf, ["CT", "MA"])
    m = leaflet.add_polygons(leaflet.base_map((42.0, -71.0)), regions)

    layers = _children(m, folium.GeoJson)
    assert len(layers) == 1
    assert len(layers[0].data["features"]) == 2
    assert "Connecticut" in m.get_root().render()


def test_value_colormap_quantile_steps():
    cmap = leaflet.value_colormap([1, 2, 3, 4, 5, 6, 7, 8], quantiles=4)
    assert len(cmap.index) == 5
    assert cmap(1) != cmap(8)


def test_value_colormap_unknown_palette():
    with pytest.raises(ValueError):
        leaflet.value_colormap([1, 2], palette="Rainbow")


def test_choropleth_map(states_gdf):
    regions = filter_regions(states_gdf, ["CT", "MA", "NY"])
    m = leaflet.choropleth_map(regions, "ALAND", caption="Land area")

    layer = _children(m, folium.GeoJson)[0]
    fills = {f["properties"]["NAME"]: layer.style_function(f)["fillColor"] for f in layer.data["features"]}
    assert fills["New York"] != fills["Connecticut"]       # largest vs smallest
    html = m.get_root().render()
    assert "Land area" in html


def test_choropleth_rejects_empty(states_gdf):
    with pytest.raises(ValueError):
        leaflet.choropleth_map(states_gdf.iloc[0:0], "ALAND")


def test_choropleth_missing_column(states_gdf):
    with pytest.raises(KeyError):
        leaflet.choropleth_map(states_gdf, "AWATER")
