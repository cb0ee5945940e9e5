"""Lightweight timing for the review engine's hot paths.

``@profile_operation(name)`` wraps a function with ``perf_counter_ns`` timing
and records the elapsed time in the :class:`ProfileCollector` singleton.  The
collector keeps a bounded window of recent samples per operation so a caller
(the CLI ``--verbose`` mode, a service health endpoint) can report p50/p95/p99
latency for canonicalisation, alignment, segmentation and grouping.

Usage::

    from review_engine.telemetry.profiling import profile_operation

    @profile_operation("review.diff")
    def diff_documents(old, new):
        ...

Recording never alters the wrapped function's result or exceptions.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


# ---------------------------------------------------------------------------
# Sample
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProfileSample:
    """One timed call of a profiled operation."""

    operation: str
    duration_ms: float


# ---------------------------------------------------------------------------
# Collector (thread-safe singleton)
# ---------------------------------------------------------------------------


class ProfileCollector:
    """Keeps the most recent ``window`` samples for every operation name."""

    _instance: ProfileCollector | None = None
    _instance_lock = threading.Lock()

    def __init__(self, window: int = 200) -> None:
        self._window = window
        self._samples: dict[str, deque[ProfileSample]] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProfileCollector:
        """Return the process-wide collector, creating it on first use."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = ProfileCollector()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (tests use this between cases)."""
        with cls._instance_lock:
            cls._instance = None

    def record(self, sample: ProfileSample) -> None:
        with self._lock:
            bucket = self._samples.get(sample.operation)
            if bucket is None:
                bucket = deque(maxlen=self._window)
                self._samples[sample.operation] = bucket
            bucket.append(sample)

    def operations(self) -> list[str]:
        """Names of every operation with at least one sample, sorted."""
        with self._lock:
            return sorted(self._samples)

    def get_stats(self, operation: str) -> dict[str, Any] | None:
        """Aggregate latency statistics for *operation*.

        Returns ``None`` when the operation has never been recorded.
        """
        with self._lock:
            bucket = self._samples.get(operation)
            if not bucket:
                return None
            durations = sorted(s.duration_ms for s in bucket)

        count = len(durations)
        return {
            "operation": operation,
            "count": count,
            "mean_ms": round(sum(durations) / count, 3),
            "p50_ms": round(_percentile(durations, 50), 3),
            "p95_ms": round(_percentile(durations, 95), 3),
            "p99_ms": round(_percentile(durations, 99), 3),
            "max_ms": round(durations[-1], 3),
        }

    def get_all_stats(self) -> list[dict[str, Any]]:
        stats = (self.get_stats(op) for op in self.operations())
        return [s for s in stats if s is not None]

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()


def _percentile(sorted_data: list[float], p: float) -> float:
    """Linear-interpolated percentile over already sorted data."""
    if not sorted_data:
        return 0.0
    n = len(sorted_data)
    k = (p / 100.0) * (n - 1)
    lower = int(k)
    upper = min(lower + 1, n - 1)
    return sorted_data[lower] + (k - lower) * (sorted_data[upper] - sorted_data[lower])


# ---------------------------------------------------------------------------
# Decorator
# ---------------------------------------------------------------------------


def profile_operation(name: str) -> Callable[[F], F]:
    """Time every call of the decorated function under *name*."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_ns = time.perf_counter_ns()
            try:
                return func(*args, **kwargs)
            finally:
                duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                ProfileCollector.get_instance().record(
                    ProfileSample(operation=name, duration_ms=round(duration_ms, 3))
                )
                logger.debug("PROFILE %s: %.3f ms", name, duration_ms)

        return wrapper  # type: ignore[return-value]

    return decorator
