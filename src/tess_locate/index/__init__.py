"""Footprint containment index and its pruning strategies."""

from tess_locate.index.footprint_index import (
    PRUNERS,
    BuildReport,
    FootprintIndex,
    FootprintRecord,
)
from tess_locate.index.pruning import BruteForcePruner, CandidatePruner, CapTreePruner

__all__ = [
    "FootprintIndex",
    "FootprintRecord",
    "BuildReport",
    "PRUNERS",
    "CandidatePruner",
    "CapTreePruner",
    "BruteForcePruner",
]
