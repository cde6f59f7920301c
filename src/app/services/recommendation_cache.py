from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from app.core.metrics import CACHE_ERRORS, CACHE_EVICTIONS, CACHE_HITS, CACHE_MISSES
from app.domain.models import CacheStats
from app.services.fingerprint import compute_fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    fingerprint: str
    created_at: float
    ttl: float


class RecommendationCache:
    """
    In-Memory Cache für Empfehlungen, ein Eintrag pro User.

    Ein Treffer setzt voraus, dass der Fingerprint der aktuellen Produkte,
    Verkäufe und Metriken mit dem gespeicherten übereinstimmt UND der Eintrag
    nicht älter als seine TTL ist. Abgelaufene oder veraltete Einträge werden
    beim Lesen entfernt.

    Ist der Cache voll, wird der am längsten gespeicherte Eintrag verdrängt
    (FIFO nach Einfügereihenfolge, kein LRU).

    Fehler im Cache werden nie an den Aufrufer weitergereicht: ``get`` meldet
    dann einen Miss, ``set`` speichert nichts.
    """

    def __init__(self, ttl_seconds: float, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._default_ttl = ttl_seconds
        self._max_size = max_size
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(
        self,
        user_id: str,
        products: Sequence[Any],
        sales: Sequence[Any],
        metrics: Sequence[Any],
    ) -> Any | None:
        """Returns the cached payload, or None on any kind of miss."""
        try:
            fingerprint = compute_fingerprint(products, sales, metrics)
        except Exception:
            CACHE_ERRORS.inc()
            CACHE_MISSES.labels(reason="error").inc()
            logger.exception("Fingerprinting failed for user %s, treating as cache miss", user_id)
            return None

        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                CACHE_MISSES.labels(reason="absent").inc()
                return None

            if (time.time() - entry.created_at) > entry.ttl:
                del self._entries[user_id]
                CACHE_MISSES.labels(reason="expired").inc()
                logger.debug("Cache entry for user %s expired", user_id)
                return None

            if entry.fingerprint != fingerprint:
                del self._entries[user_id]
                CACHE_MISSES.labels(reason="stale").inc()
                logger.debug("Business data changed for user %s, dropping cache entry", user_id)
                return None

        CACHE_HITS.inc()
        logger.debug("Cache hit for user %s", user_id)
        return entry.data

    def set(
        self,
        user_id: str,
        products: Sequence[Any],
        sales: Sequence[Any],
        metrics: Sequence[Any],
        data: Any,
        ttl: float | None = None,
    ) -> None:
        try:
            fingerprint = compute_fingerprint(products, sales, metrics)
        except Exception:
            CACHE_ERRORS.inc()
            logger.exception("Fingerprinting failed for user %s, not caching", user_id)
            return

        entry = CacheEntry(
            data=data,
            fingerprint=fingerprint,
            created_at=time.time(),
            ttl=self._default_ttl if ttl is None else ttl,
        )
        with self._lock:
            # Re-insert so that an overwritten entry moves to the end of the queue
            self._entries.pop(user_id, None)
            while len(self._entries) >= self._max_size:
                self._evict_oldest()
            self._entries[user_id] = entry
        logger.debug("Cached recommendations for user %s (ttl=%ss)", user_id, entry.ttl)

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            removed = self._entries.pop(user_id, None)
        if removed is not None:
            logger.info("Invalidated recommendation cache for user %s", user_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Cleared recommendation cache")

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(size=len(self._entries), user_ids=list(self._entries))

    def _evict_oldest(self) -> None:
        oldest = next(iter(self._entries))
        del self._entries[oldest]
        CACHE_EVICTIONS.inc()
        logger.debug("Evicted cache entry for user %s", oldest)
