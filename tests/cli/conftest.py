from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """`configure_logging` replaces root handlers; put the originals back."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture(autouse=True)
def _clean_locate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TESS_LOCATE_CACHE_DIR", "TESS_LOCATE_FOOTPRINT_URL", "TESS_LOCATE_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
