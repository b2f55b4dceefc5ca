"""Spherical geometry primitives: sphere points and footprint polygons."""

from tess_locate.geometry.polygon import BoundingCap, SphericalPolygon, parse_region
from tess_locate.geometry.sphere import SpherePoint, normalize, normalize_ra

__all__ = [
    "SpherePoint",
    "normalize",
    "normalize_ra",
    "BoundingCap",
    "SphericalPolygon",
    "parse_region",
]
