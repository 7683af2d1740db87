"""Zonal statistics of a raster layer under a polygon.

Sampling reads only the pixel window covering the polygon's bounding box,
then tests pixel centres against the polygon at a stride chosen so that at
most about ``SAMPLES_PER_SIDE ** 2`` candidates are examined, however large
the polygon is.

Example:
    >>> ring = [(77.59, 12.97), (77.60, 12.97), (77.60, 12.98), (77.59, 12.98)]
    >>> stats = sample_polygon("data/GHI.tif", ring)
    >>> stats.mean, stats.count
"""

from __future__ import annotations

import math
import os
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

from .constants import NODATA_FLOOR, SAMPLES_PER_SIDE
from .errors import NoValidDataError, OutOfCoverageError, PVYieldError
from .geometry import bounding_box, points_in_polygon, prepare_polygon, ring_centroid
from .io import RasterHandle, open_raster, read_window
from .models.results import LayerSamples, ZonalStatistics
from .pvyield_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .geometry import BBox, Ring

logger = get_logger(__name__)

DEFAULT_REQUIRED_LAYERS = ("GHI",)


def sampling_stride(window_width: int, window_height: int) -> int:
    """Pixel step that keeps candidates near ``SAMPLES_PER_SIDE`` per side."""
    return max(1, int(math.floor(math.sqrt(window_width * window_height) / SAMPLES_PER_SIDE)))


def valid_mask(values: NDArray, nodata: float | None) -> NDArray[np.bool_]:
    """
    True where a sample is usable.

    A sample is rejected when it equals the declared nodata value, is NaN or
    infinite, or is not above ``NODATA_FLOOR`` (some products store -9999
    or lower without declaring it as nodata).
    """
    values = np.asarray(values, dtype=np.float64)
    mask = np.isfinite(values) & (values > NODATA_FLOOR)
    if nodata is not None and not math.isnan(nodata):
        mask &= values != nodata
    return mask


def compute_statistics(
    values: Sequence[float] | NDArray, units: str, centroid_fallback: bool = False
) -> ZonalStatistics:
    """
    Summary statistics of a non-empty sample set.

    The median averages the two central values for even counts and the
    standard deviation is the population one (divide by n).

    Raises:
        ValueError: If ``values`` is empty.
    """
    arr = np.sort(np.asarray(values, dtype=np.float64).ravel())
    if arr.size == 0:
        raise ValueError("Cannot compute statistics of an empty sample set")
    mean = float(arr.mean())
    return ZonalStatistics(
        mean=mean,
        median=float(np.median(arr)),
        min=float(arr[0]),
        max=float(arr[-1]),
        std=float(np.sqrt(np.mean((arr - mean) ** 2))),
        count=int(arr.size),
        units=units,
        centroid_fallback=centroid_fallback,
    )


def _intersects(a: BBox, b: BBox) -> bool:
    return not (a[2] < b[0] or a[0] > b[2] or a[3] < b[1] or a[1] > b[3])


def _sample_handle(handle: RasterHandle, ring: Ring) -> ZonalStatistics:
    georef = handle.georef
    poly_bbox = bounding_box(ring)

    window = georef.window_for_bbox(poly_bbox)
    if window.is_empty or not _intersects(poly_bbox, handle.bbox):
        raise OutOfCoverageError(poly_bbox, handle.bbox)

    buffer = read_window(handle, window).astype(np.float64, copy=False)
    win_w, win_h = window.width, window.height
    stride = sampling_stride(win_w, win_h)
    logger.debug(f"{handle.path.name}: window {window.as_tuple()} ({win_w}x{win_h}), stride {stride}")

    local_x, local_y = np.meshgrid(np.arange(0, win_w, stride), np.arange(0, win_h, stride))
    lon, lat = georef.pixel_center(local_x + window.x_min, local_y + window.y_min)
    inside = points_in_polygon(lon, lat, ring)

    candidates = buffer[(local_y * win_w + local_x)[inside]]
    values = candidates[valid_mask(candidates, handle.nodata)]
    n_candidates = int(candidates.size)
    logger.debug(f"{handle.path.name}: {values.size} valid of {n_candidates} pixels inside polygon")

    if values.size > 0:
        return compute_statistics(values, handle.units)

    # Polygon smaller than a pixel, or only nodata under it
    c_lon, c_lat = ring_centroid(ring)
    cx, cy = georef.to_pixel(c_lon, c_lat)
    min_lon, min_lat, max_lon, max_lat = handle.bbox
    if (
        min_lon <= c_lon <= max_lon
        and min_lat <= c_lat <= max_lat
        and window.x_min <= cx <= window.x_max
        and window.y_min <= cy <= window.y_max
    ):
        n_candidates += 1
        value = buffer[(cy - window.y_min) * win_w + (cx - window.x_min)]
        if valid_mask(np.array([value]), handle.nodata)[0]:
            logger.info(f"{handle.path.name}: no pixel centre inside polygon, using centroid pixel ({cx}, {cy})")
            return compute_statistics([value], handle.units, centroid_fallback=True)

    raise NoValidDataError(handle.path, n_candidates)


def sample_polygon(raster: str | Path | RasterHandle, polygon: Sequence[Sequence[float]]) -> ZonalStatistics:
    """
    Zonal statistics of a raster's first band under a polygon.

    Args:
        raster: Path to a GeoTIFF, or an already open RasterHandle (left open).
        polygon: Ring of (lon, lat) pairs; the closing point is optional.

    Returns:
        ZonalStatistics over the valid pixels whose centres fall inside the
        polygon, or over the single centroid pixel when none do.

    Raises:
        InvalidPolygonError: If the ring is malformed or its vertices are collinear.
        RasterNotFoundError: If the raster path does not exist.
        RasterFormatError: If the file is not a usable geo-raster.
        OutOfCoverageError: If the polygon lies outside the raster extent.
        NoValidDataError: If no valid sample is found, even at the centroid.
    """
    ring = prepare_polygon(polygon)
    if isinstance(raster, RasterHandle):
        return _sample_handle(raster, ring)
    with open_raster(raster) as handle:
        return _sample_handle(handle, ring)


def sample_layers(
    layer_paths: Mapping[str, str | Path],
    polygon: Sequence[Sequence[float]],
    required: Iterable[str] = DEFAULT_REQUIRED_LAYERS,
    max_workers: int | None = None,
) -> LayerSamples:
    """
    Sample several layers under the same polygon in parallel.

    Each layer opens and releases its own raster. A failure on an optional
    layer is recorded in ``failures``/``warnings`` and the other layers
    carry on; a failure on a required layer is re-raised.

    Args:
        layer_paths: Layer name -> raster path.
        polygon: Ring of (lon, lat) pairs.
        required: Layer names whose failure aborts the call.
        max_workers: Thread count. Default: min(layers, CPU count).

    Returns:
        LayerSamples with one ZonalStatistics per successful layer.
    """
    ring = prepare_polygon(polygon)
    required = set(required)
    result = LayerSamples()
    if not layer_paths:
        return result

    n_workers = max_workers or min(len(layer_paths), os.cpu_count() or 1)
    logger.debug(f"Sampling {len(layer_paths)} layers with {n_workers} workers")

    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        futures = {executor.submit(sample_polygon, path, ring): name for name, path in layer_paths.items()}
        for future in as_completed(futures):
            name = futures[future]
            try:
                result.stats[name] = future.result()
            except (PVYieldError, OSError) as exc:
                if name in required:
                    logger.error(f"Required layer {name} failed: {exc}")
                    for pending in futures:
                        pending.cancel()
                    raise
                logger.warning(f"Layer {name} failed, continuing without it: {exc}")
                result.failures[name] = exc
                result.warnings.append(f"Layer {name} unavailable: {exc}")

    # Completion order is arbitrary; report layers in request order
    result.stats = {name: result.stats[name] for name in layer_paths if name in result.stats}
    return result
