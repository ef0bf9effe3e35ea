# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-21
# Updated: 2026-02-23
# Description: ResultCache
# -----------------------------------------------------------------------------
import json
import logging
import math
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from cache.CacheEntry import CacheEntry
from cache.size_estimator import estimate_size
from utility.logging_utils import get_class_logger

# pass as ttl to keep an entry until it is evicted or removed
NO_EXPIRY = math.inf

EMBEDDINGS = "embeddings"
SIMILAR_NOTES = "similar-notes"
QUERY_RESULTS = "query-results"
GRAPH_DATA = "graph-data"
NAMESPACES = (EMBEDDINGS, SIMILAR_NOTES, QUERY_RESULTS, GRAPH_DATA)

# eviction starts above HIGH_WATER and stops once under LOW_WATER (fractions of max_bytes)
HIGH_WATER = 0.9
LOW_WATER = 0.8


class ResultCache:
    """
    Namespaced TTL + LRU cache for similarity, search and cluster results.

    - get() of an entry whose expires_at <= now evicts it and misses
    - size is estimated per value; over max_bytes the cache purges expired
      entries, then least-recently-accessed ones down to LOW_WATER
    - a housekeeping thread (start()/stop()) runs the same pass every cleanup_interval
    - entries set with persist=True and smaller than persist_max_bytes are saved
      as JSON on stop() and restored by start()

    `clock` returns seconds; tests pass a fake one.
    """

    def __init__(
        self,
        *,
        max_bytes: int = 50 * 1024 * 1024,
        default_ttl: float = 60.0 * 60.0,
        cleanup_interval: float = 5.0 * 60.0,
        persist_path: Optional[str] = None,
        persist_max_bytes: int = 10 * 1024,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ):
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")
        self.max_bytes = max_bytes
        self.default_ttl = default_ttl
        self.cleanup_interval = cleanup_interval
        self.persist_path = Path(persist_path) if persist_path else None
        self.persist_max_bytes = persist_max_bytes
        self.clock = clock
        self.logger = logger or get_class_logger(self.__class__)

        self._entries: Dict[str, Dict[str, CacheEntry]] = {}
        self._hits: Dict[str, int] = {}
        self._misses: Dict[str, int] = {}
        self._total_bytes = 0
        self._last_cleaned: Optional[float] = None
        self._lock = threading.RLock()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------
    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(namespace, {}).get(key)
            if entry is None:
                self._misses[namespace] = self._misses.get(namespace, 0) + 1
                return default

            now = self.clock()
            if entry.is_expired(now):
                self._drop(namespace, key)
                self._misses[namespace] = self._misses.get(namespace, 0) + 1
                return default

            entry.last_accessed_at = now
            self._hits[namespace] = self._hits.get(namespace, 0) + 1
            return entry.data

    def has(self, namespace: str, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(namespace, {}).get(key)
            return entry is not None and not entry.is_expired(self.clock())

    def set(
        self,
        namespace: str,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        persist: bool = False,
    ) -> None:
        """
        ttl=None uses default_ttl, ttl=NO_EXPIRY never expires, ttl<=0 is expired on arrival.
        """
        ttl = self.default_ttl if ttl is None else ttl
        size = estimate_size(value)

        if persist and size >= self.persist_max_bytes:
            self.logger.debug(
                "Entry %s/%s is %d bytes (limit %d); keeping it in memory only",
                namespace, key, size, self.persist_max_bytes,
            )
            persist = False

        with self._lock:
            now = self.clock()
            self._drop(namespace, key)
            self._entries.setdefault(namespace, {})[key] = CacheEntry(
                data=value,
                created_at=now,
                expires_at=None if ttl == NO_EXPIRY else now + ttl,
                last_accessed_at=now,
                size=size,
                persist=persist,
            )
            self._total_bytes += size

            if self._total_bytes > self.max_bytes:
                self.logger.debug("Cache at %d bytes exceeds %d; evicting", self._total_bytes, self.max_bytes)
                self._evict()

    def remove(self, namespace: str, key: str) -> bool:
        with self._lock:
            return self._drop(namespace, key)

    def clear_namespace(self, namespace: str) -> int:
        with self._lock:
            entries = self._entries.pop(namespace, {})
            self._total_bytes -= sum(e.size for e in entries.values())
            return len(entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._total_bytes = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def get_keys(self, namespace: str) -> List[str]:
        with self._lock:
            now = self.clock()
            return [k for k, e in self._entries.get(namespace, {}).items() if not e.is_expired(now)]

    def get_memory_usage(self) -> int:
        with self._lock:
            return self._total_bytes

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            names = set(self._entries) | set(self._hits) | set(self._misses)
            namespaces = {
                ns: {
                    "entries": len(self._entries.get(ns, {})),
                    "bytes": sum(e.size for e in self._entries.get(ns, {}).values()),
                    "hits": self._hits.get(ns, 0),
                    "misses": self._misses.get(ns, 0),
                }
                for ns in sorted(names)
            }
            return {
                "total_bytes": self._total_bytes,
                "max_bytes": self.max_bytes,
                "entries": sum(len(v) for v in self._entries.values()),
                "last_cleaned": self._last_cleaned,
                "namespaces": namespaces,
            }

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------
    def _drop(self, namespace: str, key: str) -> bool:
        bucket = self._entries.get(namespace)
        if not bucket or key not in bucket:
            return False
        entry = bucket.pop(key)
        self._total_bytes -= entry.size
        if not bucket:
            del self._entries[namespace]
        return True

    def _purge_expired(self) -> int:
        now = self.clock()
        expired = [
            (ns, key)
            for ns, bucket in self._entries.items()
            for key, entry in bucket.items()
            if entry.is_expired(now)
        ]
        for ns, key in expired:
            self._drop(ns, key)
        return len(expired)

    def _evict(self) -> int:
        removed = self._purge_expired()
        if self._total_bytes <= self.max_bytes * HIGH_WATER:
            return removed

        by_age = sorted(
            ((e.last_accessed_at, ns, key) for ns, bucket in self._entries.items() for key, e in bucket.items()),
            key=lambda t: t[0],
        )
        target = self.max_bytes * LOW_WATER
        for _, ns, key in by_age:
            if self._total_bytes <= target:
                break
            self._drop(ns, key)
            removed += 1

        self.logger.info("Cache eviction removed %d entries (now %d bytes)", removed, self._total_bytes)
        return removed

    def cleanup(self) -> int:
        """Housekeeping pass: drop expired entries and enforce the size ceiling."""
        with self._lock:
            removed = self._evict()
            self._last_cleaned = self.clock()
        if removed:
            self.logger.debug("Cache cleanup removed %d entries", removed)
        return removed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self.persist_path is not None:
            self.load()
        if self._thread is not None or self.cleanup_interval <= 0:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._housekeeping, name="kb-cache-housekeeping", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        thread, self._thread = self._thread, None
        if thread is not None:
            self._stop_event.set()
            thread.join(timeout=2.0)
        if self.persist_path is not None:
            self.save()

    def _housekeeping(self) -> None:
        while not self._stop_event.wait(self.cleanup_interval):
            try:
                self.cleanup()
            except Exception as e:
                self.logger.error("Cache housekeeping failed: %s", e, exc_info=True)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save(self) -> int:
        if self.persist_path is None:
            return 0

        payload: Dict[str, Dict[str, Any]] = {}
        with self._lock:
            now = self.clock()
            for ns, bucket in self._entries.items():
                for key, entry in bucket.items():
                    if not entry.persist or entry.is_expired(now):
                        continue
                    try:
                        json.dumps(entry.data)
                    except (TypeError, ValueError):
                        self.logger.debug("Entry %s/%s is not JSON serializable; not persisted", ns, key)
                        continue
                    payload.setdefault(ns, {})[key] = entry.to_dict()

        count = sum(len(v) for v in payload.values())
        self.persist_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.persist_path, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        self.logger.info("Persisted %d cache entries to %s", count, self.persist_path)
        return count

    def load(self) -> int:
        if self.persist_path is None or not self.persist_path.exists():
            return 0

        try:
            with open(self.persist_path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            restored = {
                ns: {key: CacheEntry.from_dict(d) for key, d in bucket.items()}
                for ns, bucket in payload.items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            self.logger.warning("Discarding unreadable cache file %s: %s", self.persist_path, e)
            try:
                os.remove(self.persist_path)
            except OSError as rm_err:
                self.logger.error("Could not remove cache file %s: %s", self.persist_path, rm_err)
            return 0

        count = 0
        with self._lock:
            now = self.clock()
            for ns, bucket in restored.items():
                for key, entry in bucket.items():
                    if entry.is_expired(now):
                        continue
                    self._drop(ns, key)
                    self._entries.setdefault(ns, {})[key] = entry
                    self._total_bytes += entry.size
                    count += 1

        self.logger.info("Restored %d cache entries from %s", count, self.persist_path)
        return count
