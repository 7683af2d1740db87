"""Polygon utilities: ring closure, bounding box and point-in-polygon.

Rings are sequences of ``(longitude, latitude)`` pairs. Every function here
is pure; none touch raster data.

Points lying exactly on a polygon edge or vertex count as inside. The
sampler relies on this so that a pixel centre on a shared boundary is
never dropped by both neighbouring polygons.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np
from pyproj import Geod
from shapely.geometry import LinearRing, Polygon

from .errors import GeometryError, InvalidPolygonError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

Point = tuple[float, float]
Ring = tuple[Point, ...]
BBox = tuple[float, float, float, float]

_EDGE_TOLERANCE = 1e-12
_WGS84 = Geod(ellps="WGS84")


def normalize_ring(points: Sequence[Sequence[float]]) -> Ring:
    """
    Close an open ring and check it has at least three distinct vertices.

    Args:
        points: Sequence of (lon, lat) pairs. The closing point is optional.

    Returns:
        Tuple of (lon, lat) float tuples with first == last.

    Raises:
        GeometryError: If a point is malformed or fewer than 3 distinct
            points are supplied.
    """
    ring: list[Point] = []
    for idx, pt in enumerate(points):
        try:
            lon, lat = pt
            lon, lat = float(lon), float(lat)
        except (TypeError, ValueError) as exc:
            raise GeometryError(f"Point {idx} is not a (lon, lat) pair: {pt!r}", points=len(points)) from exc
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise GeometryError(f"Point {idx} has non-finite coordinates: {pt!r}", points=len(points))
        ring.append((lon, lat))

    distinct = set(ring)
    if len(distinct) < 3:
        raise GeometryError(
            f"A ring needs at least 3 distinct points, got {len(distinct)}",
            points=len(ring),
        )

    if ring[0] != ring[-1]:
        ring.append(ring[0])
    return tuple(ring)


def bounding_box(ring: Sequence[Point]) -> BBox:
    """Return (min_lon, min_lat, max_lon, max_lat) of a ring."""
    coords = np.asarray(ring, dtype=np.float64)
    return (
        float(coords[:, 0].min()),
        float(coords[:, 1].min()),
        float(coords[:, 0].max()),
        float(coords[:, 1].max()),
    )


def points_in_polygon(lons: ArrayLike, lats: ArrayLike, ring: Sequence[Point]) -> NDArray[np.bool_]:
    """
    Even-odd ray-casting test for many points against one ring.

    Args:
        lons: Longitudes of the query points (any shape).
        lats: Latitudes of the query points (same shape as ``lons``).
        ring: Closed ring of (lon, lat) pairs.

    Returns:
        Boolean array shaped like ``lons``; True where the point is inside
        the ring or on its boundary.
    """
    xs = np.asarray(lons, dtype=np.float64)
    ys = np.asarray(lats, dtype=np.float64)
    inside = np.zeros(xs.shape, dtype=bool)
    on_edge = np.zeros(xs.shape, dtype=bool)

    coords = np.asarray(ring, dtype=np.float64)
    for (x1, y1), (x2, y2) in zip(coords[:-1], coords[1:], strict=True):
        dx = x2 - x1
        dy = y2 - y1

        # Boundary: collinear with the edge and inside its extent
        cross = dx * (ys - y1) - dy * (xs - x1)
        scale = max(math.hypot(dx, dy), 1.0)
        within = (
            (xs >= min(x1, x2) - _EDGE_TOLERANCE)
            & (xs <= max(x1, x2) + _EDGE_TOLERANCE)
            & (ys >= min(y1, y2) - _EDGE_TOLERANCE)
            & (ys <= max(y1, y2) + _EDGE_TOLERANCE)
        )
        on_edge |= within & (np.abs(cross) <= _EDGE_TOLERANCE * scale)

        # Crossing of a ray cast towards +x
        straddles = (y1 > ys) != (y2 > ys)
        if dy == 0.0:
            continue
        x_cross = x1 + (ys - y1) * dx / dy
        inside ^= straddles & (xs < x_cross)

    return inside | on_edge


def point_in_polygon(point: Sequence[float], ring: Sequence[Point]) -> bool:
    """Return True when ``point`` (lon, lat) is inside ``ring`` or on its boundary."""
    lon, lat = point
    return bool(points_in_polygon(np.array([lon]), np.array([lat]), ring)[0])


def ring_centroid(ring: Sequence[Point]) -> Point:
    """
    Area-weighted centroid of a ring.

    Falls back to the mean of the distinct vertices when the ring has no
    net area (collinear rings, or self-intersecting rings whose lobes cancel).
    """
    polygon = Polygon(ring)
    if polygon.area > 0:
        c = polygon.centroid
        return float(c.x), float(c.y)
    distinct = np.unique(np.asarray(ring, dtype=np.float64), axis=0)
    lon, lat = distinct.mean(axis=0)
    return float(lon), float(lat)


def is_simple_ring(ring: Sequence[Point]) -> bool:
    """False when the ring crosses itself. Callers flag these, the core does not repair them."""
    return bool(LinearRing(ring).is_simple)


def geodesic_area(ring: Sequence[Point]) -> float:
    """Area enclosed by a lon/lat ring on the WGS84 ellipsoid, in m²."""
    coords = np.asarray(ring, dtype=np.float64)
    area, _ = _WGS84.polygon_area_perimeter(coords[:, 0], coords[:, 1])
    return abs(float(area))


def prepare_polygon(points: Sequence[Sequence[float]]) -> Ring:
    """
    Normalise and validate a query polygon for sampling.

    Raises:
        InvalidPolygonError: If the ring cannot be normalised or all its
            vertices are collinear. Self-intersecting rings are accepted.
    """
    try:
        ring = normalize_ring(points)
    except GeometryError as exc:
        raise InvalidPolygonError(str(exc)) from exc

    # Collinear vertices span less than a plane. Net signed area is not used:
    # it cancels to zero for self-intersecting rings, which are sampled as given.
    coords = np.asarray(ring[:-1], dtype=np.float64)
    if np.linalg.matrix_rank(coords - coords[0], tol=_EDGE_TOLERANCE) < 2:
        raise InvalidPolygonError("ring degenerates to a line or a point")
    return ring
