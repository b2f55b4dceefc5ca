"""Domain models for tess-locate."""

from tess_locate.domain.target import FfiObservation, TargetInput, TargetResult

__all__ = [
    "TargetInput",
    "TargetResult",
    "FfiObservation",
]
