"""Fixtures for footprint index tests."""

from __future__ import annotations

import numpy as np
import pytest


def _square(ra: float, dec: float, half: float) -> str:
    ra1, ra2 = ra - half, ra + half
    d1, d2 = dec - half, dec + half
    return f"POLYGON {ra1} {d1} {ra1} {d2} {ra2} {d2} {ra2} {d1}"


@pytest.fixture
def random_footprints() -> list[tuple[str, str]]:
    """Overlapping CCD-sized squares scattered over the sky, plus two wide bands."""
    rng = np.random.default_rng(42)
    footprints: list[tuple[str, str]] = []
    for i in range(300):
        ra = float(rng.uniform(0.0, 360.0))
        dec = float(rng.uniform(-75.0, 75.0))
        half = float(rng.uniform(0.5, 12.0))
        footprints.append((f"tess-s{i:04d}-1-1", _square(ra, dec, half)))
    footprints.append(("band-north", "POLYGON 0 30 100 30 200 30 200 31 100 31 0 31"))
    footprints.append(("band-south", "POLYGON 0 -31 100 -31 200 -31 200 -30 100 -30 0 -30"))
    return footprints


@pytest.fixture
def random_points() -> list[tuple[float, float]]:
    rng = np.random.default_rng(1234)
    ra = rng.uniform(0.0, 360.0, 600)
    dec = np.degrees(np.arcsin(rng.uniform(-1.0, 1.0, 600)))
    return [(float(r), float(d)) for r, d in zip(ra, dec, strict=True)]
