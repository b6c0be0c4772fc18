"""ErrorMetricsTracker — process-wide error counters by category and code.

Request handlers call :func:`record_error` when they map an exception to a
response; the monitor embeds :func:`get_error_metrics` in every metrics
snapshot.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict

from storewatch.monitor.types import ErrorMetrics, ErrorType


class ErrorMetricsTracker:
    """Thread-safe error counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total = 0
        self._by_type: defaultdict[str, int] = defaultdict(int)
        self._by_code: defaultdict[str, int] = defaultdict(int)
        self._last_updated: float | None = None

    def record_error(self, error_type: ErrorType | str, code: str) -> None:
        with self._lock:
            self._total += 1
            self._by_type[str(error_type)] += 1
            self._by_code[code] += 1
            self._last_updated = time.time()

    def snapshot(self) -> ErrorMetrics:
        """Return a copy of the current counters."""
        with self._lock:
            return ErrorMetrics(
                total_errors=self._total,
                errors_by_type=dict(self._by_type),
                errors_by_code=dict(self._by_code),
                last_updated=self._last_updated,
            )

    def reset(self) -> None:
        with self._lock:
            self._total = 0
            self._by_type.clear()
            self._by_code.clear()
            self._last_updated = None


_default_tracker = ErrorMetricsTracker()


def default_tracker() -> ErrorMetricsTracker:
    return _default_tracker


def record_error(error_type: ErrorType | str, code: str) -> None:
    _default_tracker.record_error(error_type, code)


def get_error_metrics() -> ErrorMetrics:
    return _default_tracker.snapshot()


def reset_error_metrics() -> None:
    """Clear the process-wide counters (useful for testing)."""
    _default_tracker.reset()
