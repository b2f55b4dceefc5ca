"""I/O utilities (platform-facing)."""

from __future__ import annotations

from tess_locate.platform.io.footprint_cache import (
    download_footprints,
    load_footprints,
    parse_footprint_payload,
    read_footprint_file,
)
from tess_locate.platform.io.targets import (
    output_format,
    read_targets_csv,
    write_results,
    write_results_csv,
    write_results_json,
)

__all__ = [
    "download_footprints",
    "load_footprints",
    "parse_footprint_payload",
    "read_footprint_file",
    "output_format",
    "read_targets_csv",
    "write_results",
    "write_results_csv",
    "write_results_json",
]
