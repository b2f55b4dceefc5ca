"""Tests for tess_locate.batch.executor."""

from __future__ import annotations

import threading

import numpy as np
import pytest

from tess_locate.batch.executor import locate_target, locate_targets, run_batch
from tess_locate.domain.target import TargetInput
from tess_locate.index.footprint_index import FootprintIndex


@pytest.fixture(scope="module")
def index() -> FootprintIndex:
    return FootprintIndex.build(
        [
            ("A", "POLYGON 10 10 10 20 20 20 20 10"),
            ("B", "POLYGON 12 12 12 25 25 25 25 12"),
            ("C", "POLYGON 355 -5 5 -5 5 5 355 5"),
        ]
    )


@pytest.fixture
def targets() -> list[TargetInput]:
    rng = np.random.default_rng(3)
    ra = rng.uniform(-10.0, 30.0, 500) % 360.0
    dec = rng.uniform(-10.0, 30.0, 500)
    return [
        TargetInput(target_id=f"t{i}", ra=float(r), dec=float(d))
        for i, (r, d) in enumerate(zip(ra, dec, strict=True))
    ]


def test_locate_target(index: FootprintIndex) -> None:
    result = locate_target(index, TargetInput(target_id="x", ra=15.0, dec=15.0))
    assert result.target_id == "x"
    assert result.observations == ("A", "B")


def test_locate_target_keeps_original_ra(index: FootprintIndex) -> None:
    result = locate_target(index, TargetInput(target_id="wrap", ra=359.0, dec=0.0))
    assert result.ra == 359.0
    assert result.observations == ("C",)


def test_locate_targets_matches_single_targets(
    index: FootprintIndex, targets: list[TargetInput]
) -> None:
    assert locate_targets(index, targets) == [locate_target(index, t) for t in targets]
    assert locate_targets(index, []) == []


def test_empty_batch(index: FootprintIndex) -> None:
    calls: list[tuple[int, int]] = []
    assert run_batch(index, [], progress=lambda p, t: calls.append((p, t))) == []
    assert calls == []


@pytest.mark.parametrize(
    ("max_workers", "chunk_size"),
    [(1, 256), (4, 1), (4, 7), (8, 64), (None, 500), (3, 10_000)],
)
def test_results_follow_input_order(
    index: FootprintIndex,
    targets: list[TargetInput],
    max_workers: int | None,
    chunk_size: int,
) -> None:
    sequential = [locate_target(index, t) for t in targets]
    results = run_batch(index, targets, max_workers=max_workers, chunk_size=chunk_size)
    assert results == sequential
    assert [r.target_id for r in results] == [t.target_id for t in targets]


def test_result_count_matches_even_without_hits() -> None:
    empty = FootprintIndex.build([])
    targets = [TargetInput(target_id=str(i), ra=float(i), dec=0.0) for i in range(20)]
    results = run_batch(empty, targets, max_workers=4, chunk_size=3)
    assert len(results) == 20
    assert all(r.observations == () for r in results)


def test_progress_is_monotonic_and_complete(
    index: FootprintIndex, targets: list[TargetInput]
) -> None:
    calls: list[tuple[int, int]] = []
    lock = threading.Lock()

    def record(processed: int, total: int) -> None:
        with lock:
            calls.append((processed, total))

    run_batch(index, targets, max_workers=4, chunk_size=50, progress=record)
    processed = [p for p, _ in calls]
    assert len(calls) == 10
    assert processed == sorted(processed)
    assert len(set(processed)) == len(processed)
    assert calls[-1] == (500, 500)
    assert {t for _, t in calls} == {500}


def test_progress_callback_does_not_change_results(
    index: FootprintIndex, targets: list[TargetInput]
) -> None:
    plain = run_batch(index, targets, max_workers=2, chunk_size=17)
    with_progress = run_batch(
        index, targets, max_workers=2, chunk_size=17, progress=lambda p, t: None
    )
    assert plain == with_progress


def test_worker_error_propagates(index: FootprintIndex, monkeypatch) -> None:
    def boom(points):
        raise RuntimeError("query failed")

    monkeypatch.setattr(index, "query_many", boom)
    targets = [TargetInput(target_id="a", ra=1.0, dec=1.0)]
    with pytest.raises(RuntimeError, match="query failed"):
        run_batch(index, targets * 10, max_workers=2, chunk_size=2)


@pytest.mark.parametrize("kwargs", [{"chunk_size": 0}, {"max_workers": 0}, {"max_workers": -2}])
def test_invalid_arguments(index: FootprintIndex, kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        run_batch(index, [TargetInput(target_id="a", ra=1.0, dec=1.0)], **kwargs)
