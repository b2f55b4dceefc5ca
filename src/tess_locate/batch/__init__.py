"""Concurrent batch execution of containment queries."""

from tess_locate.batch.executor import locate_target, locate_targets, run_batch
from tess_locate.batch.progress import ProgressCallback, ProgressCounter, ProgressPrinter

__all__ = [
    "run_batch",
    "locate_target",
    "locate_targets",
    "ProgressCallback",
    "ProgressCounter",
    "ProgressPrinter",
]
