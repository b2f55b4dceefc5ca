"""Runtime configuration for tess-locate."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from platformdirs import user_cache_dir

FOOTPRINT_CACHE_URL = (
    "https://stpubdata.s3.amazonaws.com/tess/public/footprints/tess_ffi_footprint_cache.json"
)
FOOTPRINT_CACHE_FILENAME = "tess_ffi_footprint_cache.json"


def default_cache_dir() -> Path:
    """Choose the on-disk directory holding the footprint cache file.

    Preference order:
    1) `TESS_LOCATE_CACHE_DIR` (explicit override)
    2) OS-appropriate user cache directory (honours `XDG_CACHE_HOME`)
    """
    explicit = os.getenv("TESS_LOCATE_CACHE_DIR")
    if explicit:
        return Path(explicit).expanduser()
    return Path(user_cache_dir("tess-locate"))


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    return value


@dataclass(frozen=True)
class LocateConfig:
    """
    Configuration for a locate run.

    Frozen so a run sees one consistent set of settings from index build
    through batch execution.

    Attributes
    ----------
    cache_dir : Path
        Directory holding the footprint cache file.
    footprint_url : str
        Where to download the footprint cache from when it is missing.
    max_workers : int | None
        Worker threads for batch queries (None: one per CPU).
    chunk_size : int
        Targets handed to a worker at a time.
    progress_every : int
        Emit a progress line every this many processed targets.
    connect_timeout_seconds : float
        HTTP connect timeout for the footprint download.
    read_timeout_seconds : float
        HTTP read timeout for the footprint download.
    max_retries : int
        Download attempts before giving up.
    """

    cache_dir: Path = field(default_factory=default_cache_dir)
    footprint_url: str = FOOTPRINT_CACHE_URL
    max_workers: int | None = None
    chunk_size: int = 256
    progress_every: int = 100

    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 120.0
    max_retries: int = 3

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.progress_every < 1:
            raise ValueError(f"progress_every must be >= 1, got {self.progress_every}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir) / FOOTPRINT_CACHE_FILENAME

    @classmethod
    def from_env(cls) -> LocateConfig:
        """Build a config from `TESS_LOCATE_*` environment variables."""
        config = cls()
        url = os.getenv("TESS_LOCATE_FOOTPRINT_URL")
        if url:
            config = replace(config, footprint_url=url)
        max_workers = _env_int("TESS_LOCATE_MAX_WORKERS")
        if max_workers is not None:
            config = replace(config, max_workers=max_workers)
        return config

    def with_overrides(self, **overrides: object) -> LocateConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
