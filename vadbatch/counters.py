"""
vadbatch.counters - Thread-safe run totals.
"""

from __future__ import annotations

import threading


class RunCounters:
    """Processed/skipped totals updated once per file from any worker."""

    def __init__(self) -> None:
        self._processed = 0
        self._skipped = 0
        self._lock = threading.Lock()

    def record_processed(self) -> None:
        with self._lock:
            self._processed += 1

    def record_skipped(self) -> None:
        with self._lock:
            self._skipped += 1

    @property
    def processed(self) -> int:
        with self._lock:
            return self._processed

    @property
    def skipped(self) -> int:
        with self._lock:
            return self._skipped

    @property
    def total(self) -> int:
        with self._lock:
            return self._processed + self._skipped

    def summary(self) -> str:
        """Format the final one-line report."""
        with self._lock:
            processed, skipped = self._processed, self._skipped
        return f"VAD complete: {processed} files processed, {skipped} skipped."
