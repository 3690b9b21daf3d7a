"""
Chapter Cache

Short-lived, process-wide cache of resolved chapters. Entries carry an
expiry time and are evicted lazily when read after it; there is no
background sweep. Concurrent misses on the same key are not merged, and
the last writer wins.
"""

import hashlib
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def make_cache_key(locale: str, translation: str, book: str, chapter: int, variant: str = "") -> str:
    """Stable key for a (locale, translation, book, chapter, variant) tuple."""
    raw = "|".join([locale or "", translation or "", book or "", str(chapter), variant or ""])
    return hashlib.sha256(raw.encode()).hexdigest()[:32]


class ChapterCache(ABC):
    """Interface shared by the cache backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def clear(self) -> int:
        """Remove every entry. Returns how many were dropped."""
        pass

    @abstractmethod
    def stats(self) -> Dict[str, Any]:
        pass


class MemoryChapterCache(ChapterCache):
    """In-memory cache guarded by a lock."""

    def __init__(self, default_ttl: int = 3600, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Cache entry {key[:8]} expired")
                return None

            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "backend": "memory",
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "default_ttl_seconds": self.default_ttl,
            }


class NullChapterCache(ChapterCache):
    """Cache that never stores anything."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        return None

    def clear(self) -> int:
        return 0

    def stats(self) -> Dict[str, Any]:
        return {"backend": "none", "entries": 0}


_chapter_cache: Optional[ChapterCache] = None


def get_chapter_cache(settings) -> ChapterCache:
    """Get or create the process-wide chapter cache."""
    global _chapter_cache
    if _chapter_cache is None:
        if settings.chapter_cache_enabled:
            _chapter_cache = MemoryChapterCache(default_ttl=settings.chapter_cache_ttl_seconds)
        else:
            _chapter_cache = NullChapterCache()
    return _chapter_cache
