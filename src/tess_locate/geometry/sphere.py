"""Unit-sphere points for celestial coordinates.

Coordinates are converted to 3D Cartesian unit vectors using the standard
astronomical convention:
- x-axis points to RA=0, Dec=0
- y-axis points to RA=90, Dec=0
- z-axis points to Dec=+90 (north celestial pole)
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

# Constants for coordinate conversions
DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi


def normalize_ra(ra: float) -> float:
    """Map RA so that inputs in [0, 360) land in (-180, 180]."""
    return ra - 360.0 if ra > 180.0 else ra


def _to_cartesian(ra: float, dec: float) -> tuple[float, float, float]:
    """Convert spherical (RA, Dec) in degrees to unit Cartesian (x, y, z)."""
    ra_rad = ra * DEG_TO_RAD
    dec_rad = dec * DEG_TO_RAD
    cos_dec = math.cos(dec_rad)
    return (cos_dec * math.cos(ra_rad), cos_dec * math.sin(ra_rad), math.sin(dec_rad))


@dataclass(frozen=True)
class SpherePoint:
    """A location on the celestial sphere.

    Attributes:
        lon_deg: Normalized right ascension in degrees.
        lat_deg: Declination in degrees.
        x, y, z: Components of the unit vector.
    """

    lon_deg: float
    lat_deg: float
    x: float
    y: float
    z: float

    @property
    def xyz(self) -> NDArray[np.float64]:
        return np.array((self.x, self.y, self.z), dtype=np.float64)


def normalize(ra_deg: float, dec_deg: float) -> SpherePoint:
    """Convert an (RA, Dec) pair in degrees to a SpherePoint.

    Args:
        ra_deg: Right ascension in degrees, nominally in [0, 360).
            Values above 180 are shifted down by 360.
        dec_deg: Declination in degrees, must be in [-90, 90].

    Returns:
        The normalized point.

    Raises:
        ValueError: If either coordinate is not finite or dec is outside
            [-90, 90]. Out-of-range declinations are never clamped.
    """
    ra = float(ra_deg)
    dec = float(dec_deg)
    if not (math.isfinite(ra) and math.isfinite(dec)):
        raise ValueError(f"coordinates must be finite, got ra={ra}, dec={dec}")
    if not -90.0 <= dec <= 90.0:
        raise ValueError(f"dec must be in [-90, 90], got {dec}")

    ra = normalize_ra(ra)
    x, y, z = _to_cartesian(ra, dec)
    return SpherePoint(lon_deg=ra, lat_deg=dec, x=x, y=y, z=z)


def points_to_array(points: Sequence[SpherePoint]) -> NDArray[np.float64]:
    """Stack points into an Nx3 array of unit vectors."""
    if not points:
        return np.empty((0, 3), dtype=np.float64)
    return np.array([(p.x, p.y, p.z) for p in points], dtype=np.float64)
