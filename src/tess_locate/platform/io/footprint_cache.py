"""TESS FFI footprint cache: download, on-disk storage and decoding.

The cache file is a JSON object with parallel arrays::

    {"obs_id": ["tess-s0001-1-1", ...], "s_region": ["POLYGON ...", ...]}

It is downloaded once into the cache directory and reused afterwards.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

import requests

from tess_locate.config import LocateConfig
from tess_locate.errors import FootprintCacheError

logger = logging.getLogger(__name__)

FootprintPairs = list[tuple[str, str]]


def _write_disk_cache(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    tmp.replace(path)


def download_footprints(config: LocateConfig) -> str:
    """Download the footprint cache file and return its text.

    Retries with exponential backoff (1s, 2s, ...) up to `config.max_retries`
    attempts.

    Raises:
        FootprintCacheError: If every attempt fails.
    """
    last_exc: Exception | None = None
    for attempt in range(config.max_retries):
        try:
            response = requests.get(
                config.footprint_url,
                timeout=(config.connect_timeout_seconds, config.read_timeout_seconds),
            )
            response.raise_for_status()
            return response.text
        except requests.RequestException as exc:
            last_exc = exc
            logger.warning(
                "Footprint download attempt %d/%d failed: %s",
                attempt + 1,
                config.max_retries,
                exc,
            )
            if attempt < config.max_retries - 1:
                time.sleep(2**attempt)
    raise FootprintCacheError(
        f"Failed to download footprint cache from {config.footprint_url}: {last_exc}"
    ) from last_exc


def parse_footprint_payload(text: str, *, source: str = "footprint cache") -> FootprintPairs:
    """Decode cache JSON into `(obs_id, region)` pairs in file order.

    Raises:
        FootprintCacheError: On malformed JSON, missing keys, or arrays of
            different lengths.
    """
    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FootprintCacheError(f"Malformed JSON in {source}: {exc}") from exc

    if not isinstance(payload, dict):
        raise FootprintCacheError(f"{source} must be a JSON object")
    try:
        obs_ids = payload["obs_id"]
        regions = payload["s_region"]
    except KeyError as exc:
        raise FootprintCacheError(f"{source} is missing the {exc.args[0]!r} array") from exc
    if not isinstance(obs_ids, list) or not isinstance(regions, list):
        raise FootprintCacheError(f"{source}: 'obs_id' and 's_region' must be arrays")
    if len(obs_ids) != len(regions):
        raise FootprintCacheError(
            f"{source}: {len(obs_ids)} obs_id entries but {len(regions)} s_region entries"
        )
    return [(str(obs_id), str(region)) for obs_id, region in zip(obs_ids, regions, strict=True)]


def read_footprint_file(path: str | Path) -> FootprintPairs:
    """Read footprints from a local cache-format JSON file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FootprintCacheError(f"Cannot read footprint file {path}: {exc}") from exc
    return parse_footprint_payload(text, source=str(path))


def load_footprints(config: LocateConfig | None = None, *, refresh: bool = False) -> FootprintPairs:
    """Load footprints from the cache directory, downloading them if needed.

    Args:
        config: Run configuration (cache location, URL, HTTP settings).
        refresh: Download again even when a cached copy exists.

    Returns:
        `(obs_id, region)` pairs in cache order.

    Raises:
        FootprintCacheError: If the cache cannot be read or downloaded.
    """
    config = config or LocateConfig.from_env()
    cache_path = config.cache_path

    if cache_path.exists() and not refresh:
        logger.info("Using cached FFI footprints: %s", cache_path)
        return read_footprint_file(cache_path)

    logger.info("Footprint cache not found, downloading from %s", config.footprint_url)
    text = download_footprints(config)
    footprints = parse_footprint_payload(text, source=config.footprint_url)
    try:
        _write_disk_cache(cache_path, text)
        logger.info("Saved footprints to cache file %s", cache_path)
    except OSError as exc:
        logger.warning(
            "Failed to write footprint cache (%s); proceeding anyway: %s", cache_path, exc
        )
    return footprints
