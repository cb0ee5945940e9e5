"""In-process cache of review reports keyed by the canonical document pair.

A comparison is a pure function of the two canonical texts, the grouping
parameters and the canonicaliser version, so the SHA-256 of those four
inputs identifies the result exactly.  Changing the rule-set version or any
tunable yields a new key; no explicit invalidation is needed for them.

The cache is injected into :func:`~review_engine.review.pipeline.review_documents`
by the caller.  It is the only shared mutable state in the review path and
guards its store with a ``threading.Lock``.  Expired entries are evicted
lazily on access or when the store is full.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

from review_engine.models.changes import GroupingParams
from review_engine.parser.canonicalizer import CanonicalizerVersion, compute_canonical_hash

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAX_ENTRIES = 256


# ---------------------------------------------------------------------------
# Internal types
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _CacheEntry:
    value: Any
    expires_at: float
    created_at: float = field(default_factory=time.monotonic)


# ---------------------------------------------------------------------------
# ComparisonCache
# ---------------------------------------------------------------------------


class ComparisonCache:
    """SHA-256 keyed, TTL-bounded cache for comparison results.

    Parameters
    ----------
    ttl_seconds:
        Lifetime of each entry.
    max_entries:
        Capacity.  When full, expired entries are dropped first and then the
        oldest tenth of the store.
    enabled:
        When ``False`` every operation is a no-op, so call sites need not
        branch on configuration.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        enabled: bool = True,
    ) -> None:
        self._store: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()
        self._ttl = ttl_seconds
        self._max_entries = max(1, max_entries)
        self._enabled = enabled
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_settings(cls, settings: Any) -> ComparisonCache:
        """Build the cache a long-lived caller (a service handler) injects into
        :func:`~review_engine.review.pipeline.review_documents`.

        One-shot callers such as the CLI pass no cache.
        """
        return cls(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
            enabled=settings.cache_enabled,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def make_key(
        canonical_old: str,
        canonical_new: str,
        params: GroupingParams,
        version: CanonicalizerVersion | str = CanonicalizerVersion.V1,
    ) -> str:
        """Deterministic key for one comparison request.

        Parameters
        ----------
        canonical_old, canonical_new:
            Canonical texts of the two documents.
        params:
            Effective (clamped) grouping parameters.
        version:
            Canonicaliser rule-set version the texts were produced with.
        """
        version = CanonicalizerVersion(version)
        pair_hash = compute_canonical_hash(canonical_old, canonical_new, version=version)
        envelope = json.dumps(
            {"pair": pair_hash, "params": params.model_dump(mode="json")},
            sort_keys=True,
        )
        return compute_canonical_hash(envelope, "", version=version)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` on a miss or expiry."""
        if not self._enabled:
            return None

        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if time.monotonic() > entry.expires_at:
                del self._store[key]
                self._misses += 1
                logger.debug("Comparison cache expired: key=%s", key[:12])
                return None
            self._hits += 1

        logger.debug("Comparison cache hit: key=%s", key[:12])
        return entry.value

    def put(self, key: str, value: Any) -> None:
        if not self._enabled:
            return

        now = time.monotonic()
        with self._lock:
            if len(self._store) >= self._max_entries and key not in self._store:
                self._evict()
            self._store[key] = _CacheEntry(value=value, expires_at=now + self._ttl, created_at=now)
            size = len(self._store)

        logger.debug("Comparison cache put: key=%s ttl=%ds entries=%d", key[:12], self._ttl, size)

    def invalidate(self, key: str) -> bool:
        """Remove one entry.  Returns ``True`` if it was present."""
        with self._lock:
            return self._store.pop(key, None) is not None

    def invalidate_all(self) -> int:
        """Flush every entry and reset the counters.  Returns the count removed."""
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._hits = 0
            self._misses = 0
        logger.info("Comparison cache flushed: removed %d entries", count)
        return count

    @property
    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total, 4) if total > 0 else 0.0,
                "max_entries": self._max_entries,
                "enabled": self._enabled,
            }

    @property
    def size(self) -> int:
        return len(self._store)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _evict(self) -> None:
        """Drop expired entries, then the oldest tenth if still full.

        Must be called while holding ``self._lock``.
        """
        now = time.monotonic()
        for key in [k for k, v in self._store.items() if now > v.expires_at]:
            del self._store[key]
        if len(self._store) < self._max_entries:
            return

        evict_count = max(1, self._max_entries // 10)
        oldest = sorted(self._store, key=lambda k: self._store[k].created_at)[:evict_count]
        for key in oldest:
            del self._store[key]
        logger.debug("Comparison cache evicted %d oldest entries", len(oldest))
