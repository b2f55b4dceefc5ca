"""Batch containment queries over a shared footprint index.

Targets are cut into contiguous chunks that worker threads process in any
order. Every worker writes into its own slots of a pre-sized result list, so
`results[i]` always belongs to `targets[i]` no matter how many workers run.
Each chunk is located with one vectorized index query, so numpy works on
whole chunks at a time.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from tess_locate.batch.progress import ProgressCallback, ProgressCounter
from tess_locate.domain.target import TargetInput, TargetResult
from tess_locate.geometry.sphere import normalize
from tess_locate.index.footprint_index import FootprintIndex

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 256


def locate_target(index: FootprintIndex, target: TargetInput) -> TargetResult:
    """Find every footprint containing one target."""
    return locate_targets(index, [target])[0]


def locate_targets(index: FootprintIndex, targets: Sequence[TargetInput]) -> list[TargetResult]:
    """Find the footprints containing each target with one vectorized index query."""
    points = [normalize(t.ra, t.dec) for t in targets]
    return [
        TargetResult.for_target(target, observations)
        for target, observations in zip(targets, index.query_many(points), strict=True)
    ]


def _chunk_bounds(total: int, chunk_size: int) -> list[tuple[int, int]]:
    return [(start, min(start + chunk_size, total)) for start in range(0, total, chunk_size)]


def run_batch(
    index: FootprintIndex,
    targets: Sequence[TargetInput],
    *,
    max_workers: int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: ProgressCallback | None = None,
) -> list[TargetResult]:
    """Locate every target against the index.

    Args:
        index: Built footprint index; shared read-only by all workers.
        targets: Targets to locate.
        max_workers: Worker threads (None: one per CPU, 1: run inline).
        chunk_size: Targets claimed by a worker at a time.
        progress: Optional `(processed, total)` callback, called once per
            finished chunk.

    Returns:
        One TargetResult per target, in input order.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    if max_workers is not None and max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")

    total = len(targets)
    if total == 0:
        return []

    results: list[TargetResult | None] = [None] * total
    counter = ProgressCounter(total, progress)

    def run_chunk(start: int, stop: int) -> None:
        for i, result in enumerate(locate_targets(index, targets[start:stop]), start):
            results[i] = result
        counter.advance(stop - start)

    chunks = _chunk_bounds(total, chunk_size)
    n_workers = min(max_workers or os.cpu_count() or 1, len(chunks))
    start_time = time.time()

    if n_workers == 1:
        for start, stop in chunks:
            run_chunk(start, stop)
    else:
        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            futures = [pool.submit(run_chunk, start, stop) for start, stop in chunks]
            for fut in futures:
                fut.result()

    logger.info(
        "Located %d targets with %d worker(s) in %.2fs",
        total,
        n_workers,
        time.time() - start_time,
    )
    return [result for result in results if result is not None]
