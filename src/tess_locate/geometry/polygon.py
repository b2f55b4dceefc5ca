"""Spherical polygons parsed from footprint region strings.

Region strings follow the footprint cache format::

    POLYGON RA1 DEC1 RA2 DEC2 ...

Vertices are joined by great-circle arcs. After parsing, the ring is wound
counter-clockwise as seen from outside the sphere, so the interior lies to
the left of every edge and is the smaller of the two regions the ring
bounds. Containment uses the winding number of the ring in the tangent plane
of the query point.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from tess_locate.errors import (
    DegenerateRingError,
    InvalidCoordinateError,
    InvalidTagError,
    OddCoordinateCountError,
)
from tess_locate.geometry.sphere import SpherePoint, normalize, points_to_array

if TYPE_CHECKING:
    from numpy.typing import NDArray

REGION_TAG = "POLYGON"

# Rings whose vertices all lie this close to one great circle enclose no area.
_DEGENERATE_TOLERANCE = 1e-12

# Bounding caps are padded so rounding never drops a boundary-adjacent point.
_CAP_MARGIN_RAD = 1e-9

HALF_PI = 0.5 * math.pi


def row_dots(a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    """Dot products along the last axis, summed in a fixed order.

    Broadcasts like elementwise multiplication. Unlike `@`, the result for a
    given pair of vectors does not depend on how many others are stacked with
    it, so batched and single-point queries agree bit for bit.
    """
    return (a * b).sum(axis=-1)


@dataclass(frozen=True, eq=False)
class BoundingCap:
    """Spherical cap enclosing a polygon: all points within `radius_rad` of `center`."""

    center: NDArray[np.float64]
    radius_rad: float

    @property
    def is_full_sphere(self) -> bool:
        return self.radius_rad >= math.pi

    @property
    def min_dot(self) -> float:
        return math.cos(self.radius_rad) if not self.is_full_sphere else -2.0

    def contains_xyz(self, xyz: NDArray[np.float64]) -> NDArray[np.bool_]:
        """Test one unit vector (shape 3) or a stack of them (shape Mx3)."""
        xyz = np.asarray(xyz, dtype=np.float64)
        if self.is_full_sphere:
            return np.ones(xyz.shape[:-1], dtype=np.bool_)
        return row_dots(xyz, self.center) >= self.min_dot


FULL_SPHERE_CAP = BoundingCap(center=np.array((0.0, 0.0, 1.0)), radius_rad=math.pi)


def _turning_angle(vertices: NDArray[np.float64]) -> float:
    """Sum of signed turning angles at each vertex of a closed ring.

    Positive when the ring turns left (counter-clockwise seen from outside).
    For a simple ring, the area on its left is 2*pi minus this sum.
    """
    prev_v = np.roll(vertices, 1, axis=0)
    next_v = np.roll(vertices, -1, axis=0)
    n_in = np.cross(prev_v, vertices)
    n_out = np.cross(vertices, next_v)
    sin_term = np.einsum("ij,ij->i", np.cross(n_in, n_out), vertices)
    cos_term = np.einsum("ij,ij->i", n_in, n_out)
    return float(np.arctan2(sin_term, cos_term).sum())


def _bounding_cap(vertices: NDArray[np.float64]) -> BoundingCap:
    """Cap around the vertex centroid, or the full sphere for wide rings.

    A cap narrower than a hemisphere is convex, so it also encloses every
    edge and the smaller region bounded by the ring. Wider caps carry no such
    guarantee and are widened to the full sphere.
    """
    centroid = vertices.sum(axis=0)
    norm = float(np.linalg.norm(centroid))
    if norm < _DEGENERATE_TOLERANCE:
        return FULL_SPHERE_CAP
    center = centroid / norm
    max_angle = float(np.arccos(np.clip(vertices @ center, -1.0, 1.0)).max())
    radius = max_angle + _CAP_MARGIN_RAD
    if radius >= HALF_PI:
        return FULL_SPHERE_CAP
    center.setflags(write=False)
    return BoundingCap(center=center, radius_rad=radius)


def _dedupe_ring(points: list[SpherePoint]) -> list[SpherePoint]:
    """Drop the explicit closing vertex and consecutive repeats."""

    def same(a: SpherePoint, b: SpherePoint) -> bool:
        return (a.x, a.y, a.z) == (b.x, b.y, b.z)

    ring: list[SpherePoint] = []
    for point in points:
        if ring and same(ring[-1], point):
            continue
        ring.append(point)
    while len(ring) >= 2 and same(ring[0], ring[-1]):
        ring.pop()
    return ring


@dataclass(frozen=True, eq=False)
class SphericalPolygon:
    """Immutable closed ring of sphere points with a canonical winding.

    Attributes:
        points: Ring vertices after normalization, without a closing duplicate.
        cap: Bounding cap used by index pruning.
        is_wide: True when no cap narrower than a hemisphere bounds the ring.
    """

    points: tuple[SpherePoint, ...]
    cap: BoundingCap
    _vertices: NDArray[np.float64]
    _edge_normals: NDArray[np.float64]
    _edge_dots: NDArray[np.float64]

    @classmethod
    def from_points(cls, points: list[SpherePoint], region: str = "") -> SphericalPolygon:
        """Build a polygon from ring vertices in either winding.

        Raises:
            DegenerateRingError: If fewer than 3 distinct vertices remain after
                de-duplication, or all vertices lie on one great circle.
        """
        ring = _dedupe_ring(list(points))
        distinct = {(p.x, p.y, p.z) for p in ring}
        if len(distinct) < 3:
            raise DegenerateRingError(
                f"Ring has {len(distinct)} distinct vertices, need at least 3: {region!r}",
                region,
            )

        vertices = points_to_array(ring)
        if np.linalg.svd(vertices, compute_uv=False)[-1] < _DEGENERATE_TOLERANCE:
            raise DegenerateRingError(
                f"Ring vertices lie on a single great circle: {region!r}", region
            )

        if _turning_angle(vertices) < 0.0:
            # Left-hand area exceeds a hemisphere; flip so the smaller region is inside.
            ring.reverse()
            vertices = vertices[::-1].copy()

        next_v = np.roll(vertices, -1, axis=0)
        edge_normals = np.cross(vertices, next_v)
        edge_dots = np.einsum("ij,ij->i", vertices, next_v)
        for arr in (vertices, edge_normals, edge_dots):
            arr.setflags(write=False)

        return cls(
            points=tuple(ring),
            cap=_bounding_cap(vertices),
            _vertices=vertices,
            _edge_normals=edge_normals,
            _edge_dots=edge_dots,
        )

    @property
    def vertices(self) -> NDArray[np.float64]:
        """Nx3 read-only array of unit vectors in ring order."""
        return self._vertices

    @property
    def is_wide(self) -> bool:
        return self.cap.is_full_sphere

    def __len__(self) -> int:
        return len(self.points)

    def winding_angles(self, xyz: NDArray[np.float64]) -> NDArray[np.float64]:
        """Total angle swept by the ring around each of M unit vectors (Mx3).

        Each edge contributes the signed angle between its endpoints as seen
        in the tangent plane at the point. The total is 2*pi when the ring
        encircles the point, -2*pi when it encircles the point's antipode
        instead, and 0 when it encircles neither.
        """
        pts = np.asarray(xyz, dtype=np.float64)[np.newaxis, :, :]
        s = row_dots(self._vertices[:, np.newaxis, :], pts)
        sin_term = row_dots(self._edge_normals[:, np.newaxis, :], pts)
        cos_term = self._edge_dots[:, np.newaxis] - s * np.roll(s, -1, axis=0)
        # Accumulate edge by edge so the total never depends on M.
        return np.cumsum(np.arctan2(sin_term, cos_term), axis=0)[-1]

    def winding_angle(self, point: SpherePoint) -> float:
        return float(self.winding_angles(point.xyz[np.newaxis, :])[0])

    def contains_xyz(self, xyz: NDArray[np.float64]) -> NDArray[np.bool_]:
        """Vectorized containment for an Mx3 stack of unit vectors."""
        xyz = np.asarray(xyz, dtype=np.float64)
        inside = self.cap.contains_xyz(xyz)
        if inside.any():
            inside[inside] = self.winding_angles(xyz[inside]) > math.pi
        return inside

    def contains(self, point: SpherePoint) -> bool:
        """Return True if `point` lies inside the polygon's interior."""
        return bool(self.contains_xyz(point.xyz[np.newaxis, :])[0])

    def same_ring(self, other: SphericalPolygon) -> bool:
        """True if both polygons hold the same vertices in the same order."""
        return np.array_equal(self._vertices, other._vertices)


def parse_region(text: str) -> SphericalPolygon:
    """Parse a `POLYGON ra dec ...` region string into a SphericalPolygon.

    Args:
        text: Region string. Tokens are whitespace separated; RA/Dec pairs are
            in degrees.

    Returns:
        The validated, consistently wound polygon.

    Raises:
        InvalidTagError: The string does not start with `POLYGON`.
        OddCoordinateCountError: The coordinates do not form RA/Dec pairs.
        InvalidCoordinateError: A coordinate is not a finite number or a
            declination is outside [-90, 90].
        DegenerateRingError: The ring has no usable area.
    """
    tokens = text.split()
    if not tokens or tokens[0] != REGION_TAG:
        raise InvalidTagError(f"Invalid region: {text!r}", text)

    coords = tokens[1:]
    if len(coords) % 2 != 0:
        raise OddCoordinateCountError(
            f"Invalid number of coordinates ({len(coords)}): {text!r}", text
        )

    points: list[SpherePoint] = []
    for i in range(0, len(coords), 2):
        ra_text, dec_text = coords[i], coords[i + 1]
        try:
            points.append(normalize(float(ra_text), float(dec_text)))
        except ValueError as exc:
            raise InvalidCoordinateError(
                f"Invalid coordinate: {ra_text}, {dec_text} ({exc})", text
            ) from exc

    return SphericalPolygon.from_points(points, region=text)
