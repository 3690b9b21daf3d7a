# api/tests/test_chapter_cache.py
"""
Tests for chapter_cache.py - keys, expiry, stats.
"""

import os
import sys

# Add api directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings
from services.cache import chapter_cache
from services.cache.chapter_cache import (
    MemoryChapterCache,
    NullChapterCache,
    get_chapter_cache,
    make_cache_key,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_cache_key_is_stable_and_distinct():
    key = make_cache_key("en", "bolls:KJV", "John", 3)
    assert key == make_cache_key("en", "bolls:KJV", "John", 3)
    assert len(key) == 32
    assert key != make_cache_key("es", "bolls:KJV", "John", 3)
    assert key != make_cache_key("en", "bolls:KJV", "John", 3, variant="audio")


def test_entries_expire_lazily():
    clock = FakeClock()
    cache = MemoryChapterCache(default_ttl=60, clock=clock)
    cache.set("k", "chapter")

    clock.now += 59
    assert cache.get("k") == "chapter"

    clock.now += 1
    assert cache.get("k") is None
    assert cache.stats()["entries"] == 0


def test_per_entry_ttl_overrides_default():
    clock = FakeClock()
    cache = MemoryChapterCache(default_ttl=3600, clock=clock)
    cache.set("short", "x", ttl_seconds=5)
    clock.now += 10
    assert cache.get("short") is None


def test_last_writer_wins_and_stats():
    cache = MemoryChapterCache(default_ttl=60)
    cache.set("k", "first")
    cache.set("k", "second")
    assert cache.get("k") == "second"
    assert cache.get("missing") is None

    stats = cache.stats()
    assert stats == {
        "backend": "memory",
        "entries": 1,
        "hits": 1,
        "misses": 1,
        "default_ttl_seconds": 60,
    }
    assert cache.clear() == 1
    assert cache.get("k") is None


def test_null_cache_stores_nothing():
    cache = NullChapterCache()
    cache.set("k", "v")
    assert cache.get("k") is None
    assert cache.clear() == 0


def test_get_chapter_cache_respects_settings(monkeypatch):
    monkeypatch.setattr(chapter_cache, "_chapter_cache", None)
    assert isinstance(get_chapter_cache(Settings(chapter_cache_enabled=False)), NullChapterCache)

    monkeypatch.setattr(chapter_cache, "_chapter_cache", None)
    cache = get_chapter_cache(Settings(chapter_cache_ttl_seconds=120))
    assert isinstance(cache, MemoryChapterCache)
    assert cache.default_ttl == 120
    # Singleton
    assert get_chapter_cache(Settings()) is cache
