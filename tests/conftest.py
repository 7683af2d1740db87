"""Shared pytest fixtures: synthetic GeoTIFFs written with rasterio."""

from pathlib import Path

import numpy as np
import pytest
import rasterio
from rasterio.transform import from_bounds

# Raster covering lon 10..11, lat 40..41 at 0.01° (100 x 100 pixels)
DEFAULT_BOUNDS = (10.0, 40.0, 11.0, 41.0)


def write_geotiff(
    path,
    data,
    bounds=DEFAULT_BOUNDS,
    nodata=-9999.0,
    crs="EPSG:4326",
    units=None,
) -> Path:
    """Write a single-band float32 GeoTIFF and return its path.

    Row 0 of ``data`` is the northern edge (``bounds[3]``).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = np.asarray(data, dtype=np.float32)
    height, width = data.shape
    transform = from_bounds(*bounds, width, height)
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype="float32",
        crs=crs,
        transform=transform,
        nodata=nodata,
    ) as dst:
        dst.write(data, 1)
        if units:
            dst.update_tags(1, units=units)
    return path


def index_grid(height: int = 100, width: int = 100) -> np.ndarray:
    """Raster whose value at (x, y) is ``y * 100 + x``."""
    ys, xs = np.mgrid[0:height, 0:width]
    return (ys * 100 + xs).astype(np.float32)


def square(min_lon, min_lat, max_lon, max_lat):
    """Open ring of an axis-aligned rectangle."""
    return [(min_lon, min_lat), (max_lon, min_lat), (max_lon, max_lat), (min_lon, max_lat)]


@pytest.fixture
def make_geotiff(tmp_path):
    """Factory writing GeoTIFFs into the test's temporary directory."""

    def _make(name="layer.tif", data=None, **kwargs):
        if data is None:
            data = np.full((100, 100), 5.0, dtype=np.float32)
        return write_geotiff(tmp_path / name, data, **kwargs)

    return _make


@pytest.fixture
def index_raster(make_geotiff):
    """100 x 100 raster over DEFAULT_BOUNDS with value ``y * 100 + x``."""
    return make_geotiff("index.tif", index_grid())
