"""
Response Cache
==============

Get-or-fetch memoization for Last.fm responses, keyed by the full outbound
request URL. Only track.getinfo lookups go through it.

The core never sets a TTL or invalidates anything; lifetime belongs to the
substrate. Two substrates are provided:

    MemoryResponseCache  - in-process LRU map (default)
    SqliteResponseCache  - one row per URL, optional expiry

Usage:
    cache = MemoryResponseCache(max_size=1024)
    response = cache.get_or_fetch(url, lambda: fetch(url))
"""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from lastfm_embed.logging_utils import redact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedResponse:
    """Status code and decoded JSON body of an upstream call"""
    status_code: int
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def is_success(response: CachedResponse) -> bool:
    return response.ok


class ResponseCache:
    """Base get-or-fetch cache.

    Subclasses provide get() and put(); get_or_fetch() is shared.
    """

    def get(self, key: str) -> Optional[CachedResponse]:
        raise NotImplementedError

    def put(self, key: str, response: CachedResponse) -> None:
        raise NotImplementedError

    def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], CachedResponse],
        cacheable: Callable[[CachedResponse], bool] = is_success,
    ) -> CachedResponse:
        """Return the cached response for key, or fetch and maybe store it.

        Args:
            key: Full request URL
            fetcher: Called only on a miss
            cacheable: Decides whether a fetched response is stored

        Returns:
            The cached response on a hit, the live fetched response on a miss
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        response = fetcher()
        if cacheable(response):
            self.put(key, copy.deepcopy(response))
        else:
            logger.debug(f"Not caching status {response.status_code} for {redact(key)}")
        return response


class MemoryResponseCache(ResponseCache):
    """In-process cache with LRU eviction.

    Uses OrderedDict for LRU ordering; a lock keeps get/put safe across the
    worker threads FastAPI runs sync endpoints in.
    """

    def __init__(self, max_size: int = 1024):
        """Initialize memory cache.

        Args:
            max_size: Maximum number of cached responses (default 1024)
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._cache: OrderedDict[str, CachedResponse] = OrderedDict()
        self._lock = threading.Lock()
        self._hits: int = 0
        self._misses: int = 0

    def get(self, key: str) -> Optional[CachedResponse]:
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self._hits += 1
                logger.debug(f"Cache hit: {redact(key)} (hits={self._hits}, misses={self._misses})")
                return self._cache[key]
            self._misses += 1
            return None

    def put(self, key: str, response: CachedResponse) -> None:
        with self._lock:
            self._cache[key] = response
            self._cache.move_to_end(key)

            while len(self._cache) > self.max_size:
                oldest_key = next(iter(self._cache))
                self._cache.pop(oldest_key)
                logger.debug(f"Cache evicted: {redact(oldest_key)} (size={len(self._cache)})")

    def size(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with size, max_size, hits, misses, hit_rate
        """
        total = self._hits + self._misses
        return {
            "size": len(self._cache),
            "max_size": self.max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total > 0 else 0.0,
        }


class SqliteResponseCache(ResponseCache):
    """Cache persisted to a SQLite table, one row per request URL.

    Rows older than expiry_seconds read as misses and are overwritten on the
    next put. A connection is opened per operation.
    """

    def __init__(self, db_path: str = "data/response_cache.db", expiry_seconds: int = 86400):
        self.db_path = Path(db_path)
        self.expiry_seconds = expiry_seconds
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_table()
        logger.info(f"Initialized response cache: {self.db_path} (expiry={expiry_seconds}s)")

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def _init_table(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS response_cache (
                    url TEXT PRIMARY KEY,
                    status_code INTEGER NOT NULL,
                    payload TEXT NOT NULL,
                    fetched_at INTEGER NOT NULL
                )
                """
            )
        conn.close()

    def _is_expired(self, fetched_at: int) -> bool:
        if self.expiry_seconds <= 0:
            return False
        return time.time() - fetched_at > self.expiry_seconds

    def get(self, key: str) -> Optional[CachedResponse]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT status_code, payload, fetched_at FROM response_cache WHERE url=?",
                (key,),
            ).fetchone()
        finally:
            conn.close()

        if not row:
            logger.debug(f"Cache MISS: {redact(key)}")
            return None

        status_code, payload, fetched_at = row
        if self._is_expired(fetched_at):
            logger.debug(f"Cache EXPIRED: {redact(key)}")
            return None

        logger.debug(f"Cache HIT: {redact(key)}")
        return CachedResponse(status_code=status_code, payload=json.loads(payload))

    def put(self, key: str, response: CachedResponse) -> None:
        conn = self._connect()
        try:
            conn.execute(
                "REPLACE INTO response_cache (url, status_code, payload, fetched_at) VALUES (?, ?, ?, ?)",
                (key, response.status_code, json.dumps(response.payload), int(time.time())),
            )
            conn.commit()
        finally:
            conn.close()

    def size(self) -> int:
        conn = self._connect()
        try:
            return conn.execute("SELECT COUNT(*) FROM response_cache").fetchone()[0]
        finally:
            conn.close()

    def clear(self) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM response_cache")
            conn.commit()
        finally:
            conn.close()


def build_response_cache(config) -> ResponseCache:
    """Create the cache substrate named by config.cache_backend"""
    if config.cache_backend == "sqlite":
        return SqliteResponseCache(
            db_path=config.cache_db_path,
            expiry_seconds=config.cache_expiry_seconds,
        )
    return MemoryResponseCache(max_size=config.cache_max_size)
