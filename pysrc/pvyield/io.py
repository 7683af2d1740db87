"""Raster access: open a geo-raster, map coordinates to pixels, read windows.

Only the first band of a raster is read. Rasters must be north-up and in a
geographic (lon/lat) CRS; nothing here re-projects or resamples.

The lon/lat <-> pixel mapping lives in :class:`GeoReference` and nowhere
else. Row 0 is the northern edge (``max_lat``), so the Y axis is flipped
relative to latitude.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pyproj
import rasterio
from rasterio.errors import RasterioIOError
from rasterio.windows import Window

from .constants import DEFAULT_UNITS
from .errors import InvalidWindowError, RasterFormatError, RasterNotFoundError
from .pvyield_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = get_logger(__name__)

FLOAT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class PixelWindow:
    """Inclusive pixel rectangle ``[x_min..x_max] × [y_min..y_max]``."""

    x_min: int
    y_min: int
    x_max: int
    y_max: int

    @property
    def width(self) -> int:
        return self.x_max - self.x_min + 1

    @property
    def height(self) -> int:
        return self.y_max - self.y_min + 1

    @property
    def is_empty(self) -> bool:
        return self.x_min > self.x_max or self.y_min > self.y_max

    def clamp(self, width: int, height: int) -> PixelWindow:
        """Clamp to ``[0, width-1] × [0, height-1]``. The result may be empty."""
        return PixelWindow(
            x_min=max(0, self.x_min),
            y_min=max(0, self.y_min),
            x_max=min(width - 1, self.x_max),
            y_max=min(height - 1, self.y_max),
        )

    def as_tuple(self) -> tuple[int, int, int, int]:
        return self.x_min, self.y_min, self.x_max, self.y_max


@dataclass(frozen=True)
class GeoReference:
    """
    Geographic extent and pixel size of a raster.

    Forward mapping (lon/lat -> pixel) scales the extent onto
    ``[0, width-1]`` / ``[0, height-1]``; the inverse returns pixel centres
    (index + 0.5 over ``width`` / ``height``). For every pixel index the
    inverse followed by :meth:`to_pixel` returns the same index.
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float
    width: int
    height: int

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        return self.min_lon, self.min_lat, self.max_lon, self.max_lat

    def fractional_pixel(self, lon: ArrayLike, lat: ArrayLike) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Continuous pixel coordinates for lon/lat (row 0 = ``max_lat``)."""
        lon = np.asarray(lon, dtype=np.float64)
        lat = np.asarray(lat, dtype=np.float64)
        px = (lon - self.min_lon) / (self.max_lon - self.min_lon) * (self.width - 1)
        py = (self.max_lat - lat) / (self.max_lat - self.min_lat) * (self.height - 1)
        return px, py

    def to_pixel(self, lon: float, lat: float) -> tuple[int, int]:
        """Nearest pixel index (round half up) for a lon/lat. Not clamped."""
        px, py = self.fractional_pixel(lon, lat)
        return int(math.floor(float(px) + 0.5)), int(math.floor(float(py) + 0.5))

    def pixel_center(self, x: ArrayLike, y: ArrayLike) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Lon/lat of the centre of pixel(s) ``(x, y)``."""
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        lon = self.min_lon + (x + 0.5) * (self.max_lon - self.min_lon) / self.width
        lat = self.max_lat - (y + 0.5) * (self.max_lat - self.min_lat) / self.height
        return lon, lat

    def window_for_bbox(self, bbox: tuple[float, float, float, float]) -> PixelWindow:
        """
        Pixel window covering a lon/lat bounding box, clamped to the raster.

        Edges are widened outward (floor/ceil) so that every pixel touched
        by the box is included. The returned window is empty when the box
        lies outside the raster.
        """
        min_lon, min_lat, max_lon, max_lat = bbox
        x0, y0 = self.fractional_pixel(min_lon, max_lat)
        x1, y1 = self.fractional_pixel(max_lon, min_lat)
        window = PixelWindow(
            x_min=int(math.floor(float(x0))),
            y_min=int(math.floor(float(y0))),
            x_max=int(math.ceil(float(x1))),
            y_max=int(math.ceil(float(y1))),
        )
        return window.clamp(self.width, self.height)


class RasterHandle:
    """
    One opened raster layer.

    Use as a context manager so the underlying dataset is released on every
    exit path::

        with open_raster("GHI.tif") as handle:
            values = read_window(handle, PixelWindow(0, 0, 9, 9))
    """

    def __init__(self, path: Path, dataset):
        self.path = path
        self._dataset = dataset
        bounds = dataset.bounds
        self.width: int = dataset.width
        self.height: int = dataset.height
        self.georef = GeoReference(
            min_lon=float(bounds.left),
            min_lat=float(bounds.bottom),
            max_lon=float(bounds.right),
            max_lat=float(bounds.top),
            width=self.width,
            height=self.height,
        )
        self.nodata: float | None = dataset.nodata
        self.units: str = _detect_units(dataset)

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        return self.georef.bbox

    @property
    def closed(self) -> bool:
        return self._dataset is None or self._dataset.closed

    def close(self) -> None:
        if self._dataset is not None:
            self._dataset.close()
            self._dataset = None

    def __enter__(self) -> RasterHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"RasterHandle({self.path.name!r}, {self.width}x{self.height}, bbox={self.bbox})"


def _assert_north_up(path: Path, transform) -> None:
    """Reject rotated or sheared rasters."""
    if not math.isclose(transform.b, 0.0, abs_tol=FLOAT_TOLERANCE) or not math.isclose(
        transform.d, 0.0, abs_tol=FLOAT_TOLERANCE
    ):
        raise RasterFormatError(path, "only north-up rasters (no rotation) are supported")
    if transform.e >= 0:
        raise RasterFormatError(path, "row 0 must be the northern edge (negative pixel height)")


def _assert_geographic(path: Path, dataset) -> None:
    if dataset.crs is None:
        logger.warning(f"{path.name} has no CRS, assuming coordinates are already WGS84 lon/lat")
        return
    crs = pyproj.CRS.from_user_input(dataset.crs.to_wkt())
    if not crs.is_geographic:
        raise RasterFormatError(path, f"CRS '{crs.name}' is projected; a geographic lon/lat CRS is required")


def _detect_units(dataset) -> str:
    units = dataset.units[0] if dataset.units else None
    if units:
        return units
    tags = dataset.tags(1)
    for key in ("units", "UNITS", "unit"):
        if tags.get(key):
            return tags[key]
    return DEFAULT_UNITS


def open_raster(path_str: str | Path) -> RasterHandle:
    """
    Open a raster for sampling.

    Args:
        path_str: Path to a GeoTIFF (or any GDAL-readable geo-raster).

    Returns:
        RasterHandle owning the open dataset. Close it (or use ``with``).

    Raises:
        RasterNotFoundError: If the path does not resolve to a file.
        RasterFormatError: If the file cannot be parsed, is rotated, or is
            not in a geographic CRS.
    """
    path = Path(path_str)
    if not path.is_file():
        raise RasterNotFoundError(path)

    try:
        dataset = rasterio.open(path)
    except RasterioIOError as exc:
        raise RasterFormatError(path, str(exc)) from exc

    try:
        if dataset.count < 1:
            raise RasterFormatError(path, "raster has no bands")
        _assert_north_up(path, dataset.transform)
        _assert_geographic(path, dataset)
        handle = RasterHandle(path, dataset)
    except Exception:
        dataset.close()
        raise

    if dataset.count > 1:
        logger.debug(f"{path.name} has {dataset.count} bands, sampling band 1 only")
    logger.debug(f"Opened {handle!r}, nodata={handle.nodata}, units={handle.units}")
    return handle


def read_window(handle: RasterHandle, window: PixelWindow) -> NDArray:
    """
    Read the first band over an inclusive pixel window.

    The window is clamped to the raster before reading. Values are returned
    row-major as a flat array: pixel ``(x, y)`` of the clamped window is at
    ``(y - y_min) * width + (x - x_min)``.

    Raises:
        InvalidWindowError: If the clamped window is empty.
    """
    clamped = window.clamp(handle.width, handle.height)
    if clamped.is_empty:
        raise InvalidWindowError(window.as_tuple(), (handle.height, handle.width))
    if handle.closed:
        raise ValueError(f"Raster {handle.path} is closed")

    win = Window(
        col_off=clamped.x_min,
        row_off=clamped.y_min,
        width=clamped.width,
        height=clamped.height,
    )
    data = handle._dataset.read(1, window=win)
    return data.ravel()
