import io
import types
import zipfile
from pathlib import Path

import geopandas as gpd
import pandas as pd
import pytest
import requests
from shapely.geometry import box

from mapgallery.config import GalleryConfig, MapConfig, PathConfig, SourceConfig

AIRPORTS_URL = "https://example.test/airports.csv"
FLIGHTS_URL = "https://example.test/flights.csv"
CONTOURS_URL = "https://example.test/globe_contours.csv"
BOUNDARIES_URL = "https://example.test/cb_2018_us_state_20m.zip"

AIRPORTS_CSV = b"""iata,airport,city,state,country,lat,long,cnt
ORD,Chicago O'Hare International,Chicago,IL,USA,41.979595,-87.90446417,25129
DFW,Dallas-Fort Worth International,Dallas-Fort Worth,TX,USA,32.89595056,-97.0372,20662
JFK,John F Kennedy Intl,New York,NY,USA,40.63975111,-73.77892556,3683
"""

FLIGHTS_CSV = b"""start_lat,start_lon,end_lat,end_lon,airline,airport1,airport2,cnt
32.89595056,-97.0372,41.979595,-87.90446417,AA,DFW,ORD,914
41.979595,-87.90446417,40.63975111,-73.77892556,AA,ORD,JFK,402
"""

CONTOURS_CSV = b"""lon.1,lat.1,lon.2,lat.2
-100.0,40.0,10.0,-5.0
-101.0,41.0,11.0,-6.0
-102.0,42.0,,
"""


class FakeResponse:
    def __init__(self, content: bytes, status: int = 200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def fake_http(monkeypatch):
    """Serve the three remote tables from memory and record requested URLs."""
    bodies = {AIRPORTS_URL: AIRPORTS_CSV, FLIGHTS_URL: FLIGHTS_CSV, CONTOURS_URL: CONTOURS_CSV}
    calls = []

    def _get(url, timeout=None):
        calls.append(url)
        if url not in bodies:
            return FakeResponse(b"", status=404)
        return FakeResponse(bodies[url])

    monkeypatch.setattr("mapgallery.io.requests.get", _get)
    return types.SimpleNamespace(calls=calls, bodies=bodies)


@pytest.fixture
def points_csv(tmp_path) -> Path:
    path = tmp_path / "stations.csv"
    path.write_text(
        "name,long,lat\n"
        "Boston South Station,-71.0552,42.3522\n"
        "Providence,-71.4134,41.8295\n"
        "New Haven Union Station,-72.9267,41.2973\n"
    )
    return path


@pytest.fixture
def states_gdf() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(
        {
            "STUSPS": ["CA", "CT", "MA", "TX", "NY"],
            "NAME": ["California", "Connecticut", "Massachusetts", "Texas", "New York"],
            "ALAND": [403_503_931_312, 12_542_497_068, 20_205_125_364, 676_653_171_537, 122_049_149_763],
        },
        geometry=[
            box(-124.4, 32.5, -114.1, 42.0),
            box(-73.7, 41.0, -71.8, 42.05),
            box(-73.5, 41.2, -69.9, 42.9),
            box(-106.6, 25.8, -93.5, 36.5),
            box(-79.8, 40.5, -71.8, 45.0),
        ],
        crs="EPSG:4326",
    )


@pytest.fixture
def shapefile(tmp_path, states_gdf) -> Path:
    path = tmp_path / "states.shp"
    states_gdf.to_file(path)
    return path


@pytest.fixture
def boundaries_zip(tmp_path, states_gdf) -> Path:
    """The states layer zipped the way the Census bureau ships it."""
    folder = tmp_path / "shp"
    folder.mkdir()
    states_gdf.to_file(folder / "cb_2018_us_state_20m.shp")
    path = tmp_path / "cb_2018_us_state_20m.zip"
    with zipfile.ZipFile(path, "w") as zf:
        for part in sorted(folder.iterdir()):
            zf.write(part, arcname=part.name)
    return path


@pytest.fixture
def airports() -> pd.DataFrame:
    return pd.read_csv(io.BytesIO(AIRPORTS_CSV))


@pytest.fixture
def flights() -> pd.DataFrame:
    return pd.read_csv(io.BytesIO(FLIGHTS_CSV))


@pytest.fixture
def gallery_config(tmp_path, points_csv, shapefile) -> GalleryConfig:
    return GalleryConfig(
        paths=PathConfig(
            points_csv=points_csv,
            boundaries=shapefile,
            output_dir=tmp_path / "out",
            cache_dir=tmp_path / "cache",
        ),
        sources=SourceConfig(
            airports_url=AIRPORTS_URL,
            flights_url=FLIGHTS_URL,
            contours_url=CONTOURS_URL,
            boundaries_url=None,
        ),
        map=MapConfig(region_codes=["CT", "MA", "NY"]),
    )
