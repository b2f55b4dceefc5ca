"""Target CSV input and JSON/CSV result output."""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

from pydantic import ValidationError

from tess_locate.domain.target import FfiObservation, TargetInput, TargetResult
from tess_locate.errors import TargetInputError

logger = logging.getLogger(__name__)

OutputFormat = Literal["json", "csv"]

REQUIRED_COLUMNS = ("ID", "ra", "dec")
CSV_RESULT_COLUMNS = ("ID", "ra", "dec", "sector", "camera", "ccd")


def output_format(path: str | Path) -> OutputFormat:
    """Pick the result format from the output file name.

    Raises:
        ValueError: If the name ends in neither `json` nor `csv`.
    """
    name = str(path).lower()
    if name.endswith("json"):
        return "json"
    if name.endswith("csv"):
        return "csv"
    raise ValueError(f"Invalid output format for {path}; expected a .json or .csv file")


def read_targets_csv(path: str | Path) -> list[TargetInput]:
    """Read targets from a CSV file with `ID`, `ra` and `dec` columns.

    Other columns are ignored.

    Raises:
        TargetInputError: If the file cannot be read, a column is missing,
            or a row holds an invalid value.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8", newline="") as fh:
            reader = csv.DictReader(fh)
            missing = [col for col in REQUIRED_COLUMNS if col not in (reader.fieldnames or [])]
            if missing:
                raise TargetInputError(f"{path} is missing column(s): {', '.join(missing)}")

            targets: list[TargetInput] = []
            for row_num, row in enumerate(reader, 1):
                try:
                    targets.append(
                        TargetInput.model_validate(
                            {"ID": row["ID"], "ra": row["ra"], "dec": row["dec"]}
                        )
                    )
                except ValidationError as exc:
                    details = "; ".join(
                        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                        for err in exc.errors()
                    )
                    raise TargetInputError(details, row=row_num) from exc
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise TargetInputError(f"Cannot read target file {path}: {exc}") from exc
    return targets


def write_results_json(results: Sequence[TargetResult], path: str | Path) -> None:
    """Write results as a JSON array of `{ID, ra, dec, observations}` objects."""
    payload = [result.model_dump(mode="json", by_alias=True) for result in results]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=4) + "\n", encoding="utf-8")


def _csv_rows(results: Sequence[TargetResult]) -> list[list[object]]:
    decoded: dict[str, tuple[object, object, object]] = {}
    rows: list[list[object]] = []
    for result in results:
        for obs_id in result.observations:
            if obs_id not in decoded:
                try:
                    obs = FfiObservation.from_obs_id(obs_id)
                except ValueError:
                    logger.warning(
                        "Observation %s is not a TESS FFI id; sector, camera and ccd left empty",
                        obs_id,
                    )
                    decoded[obs_id] = ("", "", "")
                else:
                    decoded[obs_id] = (obs.sector, obs.camera, obs.ccd)
            rows.append([result.target_id, result.ra, result.dec, *decoded[obs_id]])
    return rows


def write_results_csv(results: Sequence[TargetResult], path: str | Path) -> int:
    """Write one CSV row per (target, observation) pair.

    Targets without observations produce no rows. Observation ids outside
    the `tess-sSSSS-C-D` scheme are written with empty sector, camera and
    ccd fields. All rows are built before the file is opened.

    Returns:
        Number of data rows written.
    """
    rows = _csv_rows(results)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(CSV_RESULT_COLUMNS)
        writer.writerows(rows)
    return len(rows)


def write_results(results: Sequence[TargetResult], path: str | Path) -> OutputFormat:
    """Write results in the format implied by the file name."""
    fmt = output_format(path)
    if fmt == "json":
        write_results_json(results, path)
    else:
        write_results_csv(results, path)
    return fmt
