"""Immutable spatial index answering "which footprints contain this point".

The index is built once from `(obs_id, region)` pairs. Records that fail to
parse are skipped and reported; a bad footprint never aborts the build. After
construction nothing is mutated, so `query` can be called from many threads
without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from tess_locate.errors import ErrorEnvelope, FootprintParseError, IndexBuildError
from tess_locate.geometry.polygon import BoundingCap, SphericalPolygon, parse_region
from tess_locate.geometry.sphere import SpherePoint, points_to_array
from tess_locate.index.pruning import BruteForcePruner, CandidatePruner, CapTreePruner

logger = logging.getLogger(__name__)

PrunerFactory = Callable[[Sequence[BoundingCap]], CandidatePruner]

PRUNERS: dict[str, PrunerFactory] = {
    "cap_tree": CapTreePruner,
    "brute_force": BruteForcePruner,
}


@dataclass(frozen=True)
class FootprintRecord:
    """A parsed footprint and its position in the footprint source."""

    source_index: int
    obs_id: str
    polygon: SphericalPolygon


class BuildReport(BaseModel):
    """Diagnostics from one index build."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    n_input: int = Field(ge=0)
    n_valid: int = Field(ge=0)
    n_wide: int = Field(default=0, ge=0)
    skipped: tuple[ErrorEnvelope, ...] = ()

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def skipped_ids(self) -> list[str]:
        return [str(err.context.get("obs_id", "")) for err in self.skipped]


def _resolve_pruner(pruner: str | PrunerFactory) -> PrunerFactory:
    if callable(pruner):
        return pruner
    try:
        return PRUNERS[pruner]
    except KeyError:
        raise ValueError(
            f"Unknown pruner {pruner!r}; choose from {sorted(PRUNERS)}"
        ) from None


class FootprintIndex:
    """Spatial index over footprint polygons.

    Attributes:
        records: Valid footprints, in source order.
        report: Build diagnostics, including skipped records.

    Example:
        >>> index = FootprintIndex.build([("obs_0001", "POLYGON 10 10 10 20 20 20 20 10")])
        >>> index.query(normalize(15.0, 15.0))
        ['obs_0001']
    """

    def __init__(
        self,
        records: Sequence[FootprintRecord],
        report: BuildReport,
        pruner: str | PrunerFactory = "cap_tree",
    ) -> None:
        self._records: tuple[FootprintRecord, ...] = tuple(records)
        self._report = report
        self._pruner = _resolve_pruner(pruner)([r.polygon.cap for r in self._records])

    @classmethod
    def build(
        cls,
        footprints: Iterable[tuple[str, str]],
        *,
        pruner: str | PrunerFactory = "cap_tree",
    ) -> FootprintIndex:
        """Parse every footprint and build the index over the valid ones.

        Args:
            footprints: `(obs_id, region)` pairs; region strings use the
                `POLYGON ra dec ...` format.
            pruner: Name of a registered pruner (`cap_tree`, `brute_force`)
                or a factory taking the bounding caps.

        Returns:
            The built index. An input with no valid footprints yields an empty
            index whose queries all return no matches.

        Raises:
            IndexBuildError: If the build runs out of memory.
        """
        try:
            records: list[FootprintRecord] = []
            skipped: list[ErrorEnvelope] = []
            n_input = 0
            for source_index, (obs_id, region) in enumerate(footprints):
                n_input += 1
                try:
                    polygon = parse_region(region)
                except FootprintParseError as exc:
                    logger.warning("Skipping footprint %s (#%d): %s", obs_id, source_index, exc)
                    skipped.append(exc.to_envelope(obs_id=str(obs_id), index=source_index))
                    continue
                if polygon.is_wide:
                    logger.warning(
                        "Footprint %s spans a hemisphere or more; "
                        "points whose antipode is also inside are reported as outside",
                        obs_id,
                    )
                records.append(
                    FootprintRecord(source_index=source_index, obs_id=str(obs_id), polygon=polygon)
                )

            report = BuildReport(
                n_input=n_input,
                n_valid=len(records),
                n_wide=sum(1 for r in records if r.polygon.is_wide),
                skipped=tuple(skipped),
            )
            index = cls(records, report, pruner=pruner)
        except MemoryError as exc:
            raise IndexBuildError("Out of memory while building the footprint index") from exc

        logger.info(
            "Indexed %d footprints (%d skipped)", report.n_valid, report.skipped_count
        )
        return index

    @property
    def records(self) -> tuple[FootprintRecord, ...]:
        return self._records

    @property
    def report(self) -> BuildReport:
        return self._report

    @property
    def skipped_count(self) -> int:
        return self._report.skipped_count

    @property
    def pruner(self) -> CandidatePruner:
        return self._pruner

    def __len__(self) -> int:
        return len(self._records)

    def _matching_positions(self, points: Sequence[SpherePoint]) -> list[list[int]]:
        """Positions of containing records for each point, ascending.

        Candidates are grouped by polygon so each polygon tests all of its
        candidate points in one vectorized call.
        """
        matches: list[list[int]] = [[] for _ in points]
        if not self._records or not matches:
            return matches
        xyz = points_to_array(points)
        point_idx, positions = self._pruner.candidate_pairs(xyz)
        if positions.size == 0:
            return matches

        order = np.lexsort((point_idx, positions))
        point_idx, positions = point_idx[order], positions[order]
        starts = np.flatnonzero(np.diff(positions)) + 1
        for rows, group in zip(
            np.split(point_idx, starts), np.split(positions, starts), strict=True
        ):
            pos = int(group[0])
            inside = self._records[pos].polygon.contains_xyz(xyz[rows])
            for row in rows[inside]:
                matches[row].append(pos)
        return matches

    def query(self, point: SpherePoint) -> list[str]:
        """Return obs_ids of every footprint containing `point`.

        Ordered by the footprint's position in the source sequence.
        """
        return self.query_many([point])[0]

    def query_many(self, points: Sequence[SpherePoint]) -> list[list[str]]:
        """Vectorized `query`: one obs_id list per point, in input order."""
        return [
            [self._records[pos].obs_id for pos in row]
            for row in self._matching_positions(points)
        ]

    def query_indices(self, point: SpherePoint) -> list[int]:
        """Return source positions of every footprint containing `point`."""
        return [self._records[pos].source_index for pos in self._matching_positions([point])[0]]
