"""pvyield error types for actionable error messages.

These exceptions carry the values that caused them so that the HTTP or
UI layer can explain what went wrong instead of surfacing a generic
failure.

Example:
    try:
        stats = pvyield.sample_polygon("GHI.tif", ring)
    except pvyield.OutOfCoverageError as e:
        print(f"Polygon {e.polygon_bbox} lies outside raster {e.raster_bbox}")
    except pvyield.NoValidDataError as e:
        print(f"Only nodata pixels under polygon ({e.candidates} candidates checked)")
"""

from __future__ import annotations

from pathlib import Path


class PVYieldError(Exception):
    """Base class for all pvyield errors."""

    pass


class GeometryError(PVYieldError):
    """Raised when a coordinate ring cannot be normalised.

    Attributes:
        points: Number of points that were supplied (optional).
    """

    def __init__(self, message: str, points: int | None = None):
        self.points = points
        super().__init__(message)


class InvalidPolygonError(PVYieldError):
    """Raised when a query polygon is malformed or degenerate.

    Attributes:
        reason: Why the polygon was rejected.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid polygon: {reason}")


class RasterNotFoundError(PVYieldError):
    """Raised when a raster path does not resolve to a file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__(f"Raster file not found: {self.path}")


class RasterFormatError(PVYieldError):
    """Raised when a file cannot be used as a geo-referenced raster.

    Attributes:
        path: The offending file.
        reason: What made it unusable.
    """

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read {self.path} as a geo-raster: {reason}")


class InvalidWindowError(PVYieldError):
    """Raised when a pixel window is empty after clamping to the raster.

    Attributes:
        window: The requested (x_min, y_min, x_max, y_max) rectangle.
        shape: Raster (height, width).
    """

    def __init__(self, window: tuple[int, int, int, int], shape: tuple[int, int]):
        self.window = window
        self.shape = shape
        super().__init__(
            f"Pixel window {window} is empty after clamping to raster of {shape[1]}x{shape[0]} pixels"
        )


class OutOfCoverageError(PVYieldError):
    """Raised when a polygon's bounding box does not intersect the raster extent.

    Attributes:
        polygon_bbox: (min_lon, min_lat, max_lon, max_lat) of the polygon.
        raster_bbox: (min_lon, min_lat, max_lon, max_lat) of the raster.
    """

    def __init__(
        self,
        polygon_bbox: tuple[float, float, float, float],
        raster_bbox: tuple[float, float, float, float],
    ):
        self.polygon_bbox = polygon_bbox
        self.raster_bbox = raster_bbox
        super().__init__(
            "Polygon is outside raster coverage:\n"
            f"  Polygon bbox: {polygon_bbox}\n"
            f"  Raster bbox:  {raster_bbox}"
        )


class NoValidDataError(PVYieldError):
    """Raised when every candidate pixel under a polygon is nodata or invalid.

    Attributes:
        path: Raster that was sampled.
        candidates: Number of pixels inspected, including the centroid fallback.
    """

    def __init__(self, path: str | Path, candidates: int):
        self.path = Path(path)
        self.candidates = candidates
        super().__init__(
            f"No valid pixels found in polygon for {self.path.name} "
            f"({candidates} candidate pixels inspected). "
            "Check that the polygon overlaps the data-covered area of the raster."
        )


class InsufficientAreaError(PVYieldError):
    """Raised when geometric sizing yields no panels or no capacity.

    Attributes:
        reason: What ran out (area, panels, capacity).
        area_m2: The area that was supplied.
    """

    def __init__(self, reason: str, area_m2: float | None = None):
        self.reason = reason
        self.area_m2 = area_m2
        message = f"Insufficient area: {reason}"
        if area_m2 is not None:
            message += f" (area={area_m2:g} m²)"
        super().__init__(message)


class ConfigurationError(PVYieldError):
    """Raised when configuration is invalid or inconsistent.

    Attributes:
        parameter: The problematic parameter name.
        reason: Why the configuration is invalid.
    """

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        self.reason = reason
        message = f"Invalid configuration for '{parameter}': {reason}"
        super().__init__(message)


class UnknownLayerError(PVYieldError):
    """Raised when a layer name cannot be resolved to a raster file."""

    def __init__(self, layer: str, available: list[str] | None = None):
        self.layer = layer
        self.available = available or []
        message = f"Unknown raster layer '{layer}'"
        if self.available:
            message += f"\nAvailable layers: {', '.join(self.available)}"
        super().__init__(message)
