"""Tests for tess_locate.index.pruning."""

from __future__ import annotations

import math

import numpy as np
import pytest

from tess_locate.geometry.polygon import FULL_SPHERE_CAP, BoundingCap, parse_region
from tess_locate.geometry.sphere import normalize
from tess_locate.index.pruning import BruteForcePruner, CapTreePruner


def _cap(ra: float, dec: float, radius_deg: float) -> BoundingCap:
    return BoundingCap(center=normalize(ra, dec).xyz, radius_rad=math.radians(radius_deg))


def _candidates(pruner, xyz: np.ndarray) -> np.ndarray:
    point_idx, positions = pruner.candidate_pairs(xyz[np.newaxis, :])
    assert np.all(point_idx == 0)
    return np.sort(positions)


class TestBruteForcePruner:
    def test_returns_every_position(self) -> None:
        pruner = BruteForcePruner([_cap(0, 0, 1), _cap(90, 0, 1), FULL_SPHERE_CAP])
        assert _candidates(pruner, normalize(45.0, 45.0).xyz).tolist() == [0, 1, 2]

    def test_empty(self) -> None:
        assert _candidates(BruteForcePruner([]), normalize(0.0, 0.0).xyz).size == 0


class TestCapTreePruner:
    def test_tiers_split_by_radius(self) -> None:
        caps = [_cap(0, 0, 1.5), _cap(10, 0, 1.2), _cap(20, 0, 10.0), FULL_SPHERE_CAP]
        pruner = CapTreePruner(caps)
        assert pruner.n_tiers == 2
        assert pruner.n_wide == 1

    def test_finds_containing_cap_only(self) -> None:
        pruner = CapTreePruner([_cap(0, 0, 2), _cap(40, 0, 2), _cap(0, 40, 2)])
        assert _candidates(pruner, normalize(40.5, 0.5).xyz).tolist() == [1]
        assert _candidates(pruner, normalize(200.0, -60.0).xyz).tolist() == []

    def test_wide_caps_always_candidates(self) -> None:
        pruner = CapTreePruner([_cap(0, 0, 2), FULL_SPHERE_CAP])
        assert _candidates(pruner, normalize(180.0, 0.0).xyz).tolist() == [1]
        assert _candidates(pruner, normalize(0.0, 0.0).xyz).tolist() == [0, 1]

    def test_candidates_from_every_tier(self) -> None:
        caps = [_cap(0, 0, 30), FULL_SPHERE_CAP, _cap(0, 0, 1), _cap(0, 0, 5)]
        pruner = CapTreePruner(caps)
        assert _candidates(pruner, normalize(0.0, 0.0).xyz).tolist() == [0, 1, 2, 3]

    def test_empty(self) -> None:
        pruner = CapTreePruner([])
        assert pruner.n_tiers == 0
        assert _candidates(pruner, normalize(0.0, 0.0).xyz).size == 0

    def test_never_drops_cap_members(self) -> None:
        rng = np.random.default_rng(7)
        caps = [
            _cap(float(ra), float(dec), float(r))
            for ra, dec, r in zip(
                rng.uniform(0, 360, 200),
                rng.uniform(-80, 80, 200),
                rng.uniform(0.01, 40, 200),
                strict=True,
            )
        ]
        pruner = CapTreePruner(caps)
        for ra, dec in zip(rng.uniform(0, 360, 300), rng.uniform(-90, 90, 300), strict=True):
            xyz = normalize(float(ra), float(dec)).xyz
            expected = [i for i, cap in enumerate(caps) if cap.contains_xyz(xyz)]
            assert _candidates(pruner, xyz).tolist() == expected

    def test_polygon_vertices_are_candidates(self) -> None:
        polygon = parse_region("POLYGON 10 10 10 20 20 20 20 10")
        pruner = CapTreePruner([polygon.cap])
        for point in polygon.points:
            assert _candidates(pruner, point.xyz).tolist() == [0]

    @pytest.mark.parametrize("radius_deg", [0.001, 0.5, 1.0, 89.0])
    def test_tiny_and_large_radii(self, radius_deg: float) -> None:
        pruner = CapTreePruner([_cap(33.0, -12.0, radius_deg)])
        assert _candidates(pruner, normalize(33.0, -12.0).xyz).tolist() == [0]


class TestCandidatePairs:
    @pytest.mark.parametrize("factory", [CapTreePruner, BruteForcePruner])
    def test_stacked_points_match_single_points(self, factory) -> None:
        rng = np.random.default_rng(11)
        caps = [_cap(float(ra), 20.0, 15.0) for ra in rng.uniform(0, 360, 40)]
        caps.append(FULL_SPHERE_CAP)
        pruner = factory(caps)
        xyz = np.array([normalize(float(ra), 20.0).xyz for ra in rng.uniform(0, 360, 25)])

        point_idx, positions = pruner.candidate_pairs(xyz)
        assert point_idx.shape == positions.shape
        for row in range(len(xyz)):
            stacked = np.sort(positions[point_idx == row])
            assert stacked.tolist() == _candidates(pruner, xyz[row]).tolist()

    def test_no_points(self) -> None:
        pruner = CapTreePruner([_cap(0, 0, 2), FULL_SPHERE_CAP])
        point_idx, positions = pruner.candidate_pairs(np.empty((0, 3)))
        assert point_idx.size == 0
        assert positions.size == 0
