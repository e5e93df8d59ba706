"""
plotly_geo.py – geographic figures on plotly's geo layout

flight_paths_figure(...)      – airport markers + route segments
globe_contours_figure(...)    – contour lines on an orthographic globe
state_choropleth_figure(...)  – US states shaded by a value
"""
from __future__ import annotations

import logging

import pandas as pd
import plotly.graph_objects as go
from plotly.colors import sample_colorscale

from .reshape import flight_segments, scale_sizes

logger = logging.getLogger("mapgallery.plotly_geo")

GRID = dict(showgrid=True, gridcolor="rgb(102, 102, 102)", gridwidth=0.5)


def flight_paths_figure(
    airports: pd.DataFrame,
    flights: pd.DataFrame,
    title: str = "Feb. 2011 American Airline flight paths<br>(Hover for airport names)",
) -> go.Figure:
    """Airports sized by traffic count and every route drawn as a segment."""
    fig = go.Figure()

    lons, lats = flight_segments(flights)
    fig.add_trace(go.Scattergeo(
        lon=lons,
        lat=lats,
        mode="lines",
        line=dict(width=1, color="red"),
        opacity=0.3,
        hoverinfo="none",
        name="Routes",
    ))

    fig.add_trace(go.Scattergeo(
        lon=airports["long"],
        lat=airports["lat"],
        text=airports["airport"],
        hoverinfo="text",
        mode="markers",
        marker=dict(
            size=scale_sizes(airports["cnt"]),
            color="red",
            opacity=0.5,
            line=dict(width=0),
        ),
        name="Airports",
    ))

    fig.update_layout(
        title=title,
        showlegend=False,
        height=800,
        geo=dict(
            scope="north america",
            projection=dict(type="azimuthal equal area"),
            showland=True,
            landcolor="rgb(243, 243, 243)",
            countrycolor="rgb(204, 204, 204)",
        ),
    )
    logger.info("Flight paths: %d airports, %d routes", len(airports), len(flights))
    return fig


def globe_contours_figure(contours: pd.DataFrame, colorscale: str = "Reds", title: str = "Contour lines over globe") -> go.Figure:
    """
    One line trace per contour line of a long table (``line``, ``lat``, ``lon``),
    drawn on an orthographic projection.
    """
    line_ids = sorted(contours["line"].unique())
    n = len(line_ids)
    colors = sample_colorscale(colorscale, [i / max(n - 1, 1) for i in range(n)]) if n else []

    fig = go.Figure()
    for line_id, color in zip(line_ids, colors):
        part = contours[contours["line"] == line_id]
        fig.add_trace(go.Scattergeo(
            lon=part["lon"],
            lat=part["lat"],
            mode="lines",
            line=dict(width=2, color=color),
            name=f"line {line_id}",
        ))

    fig.update_layout(
        title=title,
        showlegend=False,
        geo=dict(
            showland=True,
            showlakes=True,
            showcountries=True,
            showocean=True,
            countrywidth=0.5,
            landcolor="rgb(230, 145, 56)",
            lakecolor="rgb(0, 255, 255)",
            oceancolor="rgb(0, 255, 255)",
            projection=dict(type="orthographic", rotation=dict(lon=-100, lat=40, roll=0)),
            lonaxis=GRID,
            lataxis=GRID,
        ),
    )
    logger.info("Globe contours: %d lines", n)
    return fig


def state_choropleth_figure(
    regions: pd.DataFrame,
    code_column: str = "STUSPS",
    value_column: str = "ALAND",
    name_column: str = "NAME",
    colorscale: str = "YlOrRd",
    title: str = "Land area by state",
) -> go.Figure:
    """Choropleth trace keyed on two-letter state codes."""
    for col in (code_column, value_column, name_column):
        if col not in regions.columns:
            raise KeyError(f"Column {col!r} not in table")

    fig = go.Figure(go.Choropleth(
        locations=regions[code_column],
        z=regions[value_column].astype(float),
        locationmode="USA-states",
        text=regions[name_column],
        colorscale=colorscale,
        marker_line_color="white",
        colorbar_title=value_column,
    ))
    fig.update_layout(title=title, geo_scope="usa")
    return fig
