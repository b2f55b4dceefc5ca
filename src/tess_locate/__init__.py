"""tess-locate: find the TESS full-frame-image footprints containing sky positions."""

from __future__ import annotations

from tess_locate.batch.executor import locate_target, locate_targets, run_batch
from tess_locate.domain.target import FfiObservation, TargetInput, TargetResult
from tess_locate.geometry.polygon import SphericalPolygon, parse_region
from tess_locate.geometry.sphere import SpherePoint, normalize
from tess_locate.index.footprint_index import BuildReport, FootprintIndex

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "normalize",
    "SpherePoint",
    "parse_region",
    "SphericalPolygon",
    "FootprintIndex",
    "BuildReport",
    "TargetInput",
    "TargetResult",
    "FfiObservation",
    "run_batch",
    "locate_target",
    "locate_targets",
]
