"""Progress reporting for batch queries.

Progress is a side channel: callbacks receive `(processed, total)` after each
chunk of targets and have no influence on results or their order.
"""

from __future__ import annotations

from collections.abc import Callable
from threading import Lock

ProgressCallback = Callable[[int, int], None]


class ProgressCounter:
    """Thread-safe processed-target counter feeding an optional callback.

    The callback is invoked while the counter lock is held, so it sees
    strictly increasing counts even when workers finish concurrently.
    """

    def __init__(self, total: int, callback: ProgressCallback | None = None) -> None:
        self.total = int(total)
        self._callback = callback
        self._done = 0
        self._lock = Lock()

    @property
    def done(self) -> int:
        return self._done

    def advance(self, n: int) -> int:
        with self._lock:
            self._done += int(n)
            done = self._done
            if self._callback is not None:
                self._callback(done, self.total)
        return done


class ProgressPrinter:
    """Callback writing `Progress: n/total` lines every `every` targets.

    Args:
        write: Sink for the rendered text, e.g. a stream's `write`.
        every: Minimum number of targets between two lines.
    """

    def __init__(self, write: Callable[[str], object], every: int = 100) -> None:
        if every < 1:
            raise ValueError(f"every must be >= 1, got {every}")
        self._write = write
        self._every = int(every)
        self._last_bucket = 0

    def __call__(self, processed: int, total: int) -> None:
        bucket = processed // self._every
        if bucket == self._last_bucket and processed != total:
            return
        self._last_bucket = bucket
        self._write(f"\rProgress: {processed}/{total}")
        if processed == total:
            self._write("\n")
