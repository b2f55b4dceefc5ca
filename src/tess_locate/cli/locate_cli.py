"""CLI entrypoint for locating targets on TESS full-frame-image footprints.

Usage:
    tess-locate INPUT.csv OUTPUT.{json,csv} [options]

Example:
    tess-locate targets.csv observations.json --workers 8
"""

from __future__ import annotations

from pathlib import Path

import click

from tess_locate.batch.executor import run_batch
from tess_locate.batch.progress import ProgressPrinter
from tess_locate.cli.common_cli import (
    EXIT_DATA_UNAVAILABLE,
    EXIT_INPUT_ERROR,
    EXIT_RUNTIME_ERROR,
    LocateCliError,
    configure_logging,
    echo_err,
)
from tess_locate.config import LocateConfig
from tess_locate.errors import FootprintCacheError, IndexBuildError, TargetInputError
from tess_locate.index.footprint_index import PRUNERS, FootprintIndex
from tess_locate.platform.io.footprint_cache import load_footprints, read_footprint_file
from tess_locate.platform.io.targets import output_format, read_targets_csv, write_results


@click.command("tess-locate")
@click.version_option(package_name="tess-locate")
@click.argument("input_path", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("output_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--footprints",
    "footprint_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Local footprint JSON (cache format) used instead of the download cache.",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the footprint cache file.",
)
@click.option("--refresh", is_flag=True, help="Download the footprint cache even if present.")
@click.option(
    "-j",
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Worker threads (default: one per CPU).",
)
@click.option(
    "--chunk-size", type=click.IntRange(min=1), default=None, help="Targets per work unit."
)
@click.option(
    "--pruner",
    type=click.Choice(sorted(PRUNERS)),
    default="cap_tree",
    show_default=True,
    help="Candidate pruning strategy for the footprint index.",
)
@click.option("--no-progress", is_flag=True, help="Do not print batch progress.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv).")
def locate_command(
    input_path: Path,
    output_path: Path,
    footprint_file: Path | None,
    cache_dir: Path | None,
    refresh: bool,
    workers: int | None,
    chunk_size: int | None,
    pruner: str,
    no_progress: bool,
    verbose: int,
) -> None:
    """Locate targets (CSV with ID, ra, dec columns) on TESS FFI footprints."""
    configure_logging(verbose)

    if not input_path.exists():
        raise LocateCliError(f"File {input_path} does not exist.", exit_code=EXIT_INPUT_ERROR)
    try:
        fmt = output_format(output_path)
        config = LocateConfig.from_env().with_overrides(
            cache_dir=cache_dir, max_workers=workers, chunk_size=chunk_size
        )
    except ValueError as exc:
        raise LocateCliError(str(exc), exit_code=EXIT_INPUT_ERROR) from exc

    try:
        if footprint_file is not None:
            footprints = read_footprint_file(footprint_file)
        else:
            footprints = load_footprints(config, refresh=refresh)
    except FootprintCacheError as exc:
        raise LocateCliError(str(exc), exit_code=EXIT_DATA_UNAVAILABLE) from exc

    try:
        index = FootprintIndex.build(footprints, pruner=pruner)
    except IndexBuildError as exc:
        raise LocateCliError(str(exc), exit_code=EXIT_RUNTIME_ERROR) from exc
    report = index.report
    echo_err(f"Loaded {report.n_valid} footprints ({report.skipped_count} skipped).")

    try:
        targets = read_targets_csv(input_path)
    except TargetInputError as exc:
        raise LocateCliError(str(exc), exit_code=EXIT_INPUT_ERROR) from exc

    progress = None
    if not no_progress:
        progress = ProgressPrinter(
            lambda text: echo_err(text, nl=False), every=config.progress_every
        )
    results = run_batch(
        index,
        targets,
        max_workers=config.max_workers,
        chunk_size=config.chunk_size,
        progress=progress,
    )

    echo_err(f"Writing results to {fmt}.")
    try:
        write_results(results, output_path)
    except (OSError, ValueError) as exc:
        raise LocateCliError(
            f"Cannot write {output_path}: {exc}", exit_code=EXIT_RUNTIME_ERROR
        ) from exc
    click.echo(f"Wrote results to {output_path}.")


def main() -> None:
    locate_command(prog_name="tess-locate")
