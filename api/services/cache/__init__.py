"""
Cache Services

Time-expiring caches for content fetched from upstream providers.
"""

from .chapter_cache import (
    ChapterCache,
    MemoryChapterCache,
    NullChapterCache,
    get_chapter_cache,
    make_cache_key,
)

__all__ = [
    "ChapterCache",
    "MemoryChapterCache",
    "NullChapterCache",
    "get_chapter_cache",
    "make_cache_key",
]
