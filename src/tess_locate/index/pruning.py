"""Candidate pruning for footprint containment queries.

A pruner narrows the set of polygons that need the exact containment test.
Pruners may over-approximate but must never drop a polygon that contains the
query point.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import numpy as np
from scipy.spatial import cKDTree

from tess_locate.geometry.polygon import BoundingCap, row_dots
from tess_locate.geometry.sphere import RAD_TO_DEG

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Padding on k-d tree ball radii, in chord units.
_CHORD_MARGIN = 1e-12


class CandidatePruner(Protocol):
    """Maps stacked query unit vectors to candidate (point, polygon) pairs.

    `candidate_pairs(xyz)` takes an Mx3 array and returns two equal-length
    arrays: row numbers into `xyz` and positions of candidate polygons.
    """

    def candidate_pairs(
        self, xyz: NDArray[np.float64]
    ) -> tuple[NDArray[np.intp], NDArray[np.intp]]: ...


def _all_pairs(
    n_points: int, positions: NDArray[np.intp]
) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
    point_idx = np.repeat(np.arange(n_points, dtype=np.intp), positions.size)
    return point_idx, np.tile(positions, n_points)


class BruteForcePruner:
    """Every polygon is a candidate for every point. Correctness baseline."""

    def __init__(self, caps: Sequence[BoundingCap]) -> None:
        self._all = np.arange(len(caps), dtype=np.intp)

    def candidate_pairs(
        self, xyz: NDArray[np.float64]
    ) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        return _all_pairs(len(xyz), self._all)


@dataclass(frozen=True)
class _CapTier:
    """Caps of similar radius sharing one k-d tree over their centres."""

    positions: NDArray[np.intp]
    centers: NDArray[np.float64]
    min_dots: NDArray[np.float64]
    chord_radius: float
    tree: cKDTree

    @classmethod
    def from_caps(cls, positions: list[int], caps: Sequence[BoundingCap]) -> _CapTier:
        centers = np.array([caps[i].center for i in positions], dtype=np.float64)
        max_radius = max(caps[i].radius_rad for i in positions)
        return cls(
            positions=np.asarray(positions, dtype=np.intp),
            centers=centers,
            min_dots=np.array([caps[i].min_dot for i in positions], dtype=np.float64),
            chord_radius=2.0 * math.sin(max_radius / 2.0) + _CHORD_MARGIN,
            tree=cKDTree(centers),
        )

    def candidate_pairs(
        self, xyz: NDArray[np.float64]
    ) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        empty = np.empty(0, dtype=np.intp)
        if len(xyz) == 0:
            return empty, empty
        hits = self.tree.query_ball_point(xyz, self.chord_radius, return_sorted=False)
        counts = np.fromiter((len(h) for h in hits), dtype=np.intp, count=len(hits))
        if not counts.any():
            return empty, empty
        flat = np.fromiter(
            (i for h in hits for i in h), dtype=np.intp, count=int(counts.sum())
        )
        point_idx = np.repeat(np.arange(len(xyz), dtype=np.intp), counts)
        inside = row_dots(xyz[point_idx], self.centers[flat]) >= self.min_dots[flat]
        return point_idx[inside], self.positions[flat[inside]]


def _tier_key(radius_rad: float) -> int:
    """Group caps by power-of-two radius in degrees."""
    radius_deg = max(radius_rad * RAD_TO_DEG, 1e-6)
    return int(math.floor(math.log2(radius_deg)))


class CapTreePruner:
    """Bounding-cap pruner backed by k-d trees over cap centres.

    Caps are split into tiers of similar radius so that one large footprint
    does not widen the search ball for all the small ones. Each tier is
    queried with its largest chord radius (a superset), then filtered by the
    exact per-cap test. Full-sphere caps are always candidates.
    """

    def __init__(self, caps: Sequence[BoundingCap]) -> None:
        wide: list[int] = []
        by_tier: dict[int, list[int]] = defaultdict(list)
        for pos, cap in enumerate(caps):
            if cap.is_full_sphere:
                wide.append(pos)
            else:
                by_tier[_tier_key(cap.radius_rad)].append(pos)

        self._wide = np.asarray(wide, dtype=np.intp)
        self._tiers = tuple(_CapTier.from_caps(by_tier[k], caps) for k in sorted(by_tier))
        logger.debug(
            "Built cap pruner: %d tiers, %d wide footprints, %d total",
            len(self._tiers),
            len(wide),
            len(caps),
        )

    @property
    def n_tiers(self) -> int:
        return len(self._tiers)

    @property
    def n_wide(self) -> int:
        return int(self._wide.size)

    def candidate_pairs(
        self, xyz: NDArray[np.float64]
    ) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        parts = [tier.candidate_pairs(xyz) for tier in self._tiers]
        parts.append(_all_pairs(len(xyz), self._wide))
        point_idx = np.concatenate([p for p, _ in parts])
        positions = np.concatenate([q for _, q in parts])
        return point_idx, positions
