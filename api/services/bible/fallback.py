# api/services/bible/fallback.py
"""
Fallback Orchestrator

Resolves a chapter by walking a fixed chain of providers and returning
the first one that produces verses:

    1. the requested translation's own provider (Bolls always; API.Bible
       only when API_BIBLE_KEY is set)
    2. GetBible, in the target language
    3. bible-api.com with the requested translation   (default language only)
    4. labs.bible.org NET                             (default language only)
    5. bible-api.com KJV, unconditionally

Providers are tried one at a time; a later provider is never called once
an earlier one has succeeded. Each call gets a wall-clock timeout and a
timeout counts as an ordinary failure.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Dict, List, Optional, Tuple, Union

from .canon import CHAPTER_COUNTS
from .errors import ContentNotFoundError
from .models import ChapterResult
from .namespaces import ProviderNamespace
from .providers.base import BibleProvider, ProviderAttempt, ProviderResult
from .reference_parser import (
    ReferenceParseError,
    ScriptureReference,
    format_reference,
    normalize_book_name,
    parse_reference,
)
from .translations import DEFAULT_BIBLE_API_CODE, TranslationRegistry

from services.cache import NullChapterCache, make_cache_key

logger = logging.getLogger(__name__)

# Slack on top of each provider's own request timeout before giving up on it
WALL_CLOCK_GRACE_SECONDS = 1.0


class FallbackOrchestrator:
    """
    Chapter resolution across every configured provider.

    Usage:
        orchestrator = FallbackOrchestrator(registry, build_providers(settings), cache, settings)
        chapter = orchestrator.resolve_chapter("John", 3, "bolls:YLT", "en")
        if chapter:
            print(chapter.source_tag, len(chapter.verses))
    """

    def __init__(
        self,
        registry: TranslationRegistry,
        providers: Dict[ProviderNamespace, BibleProvider],
        cache=None,
        settings=None,
        clock: Callable[[], float] = time.monotonic,
        max_workers: int = 8,
        grace_seconds: float = WALL_CLOCK_GRACE_SECONDS,
    ):
        self.registry = registry
        self.providers = providers
        self.cache = cache or NullChapterCache()
        self.default_language = getattr(settings, "default_language", None) or registry.default_locale
        self.cache_ttl = getattr(settings, "chapter_cache_ttl_seconds", None)
        self._clock = clock
        self._grace = grace_seconds
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="bible-provider")
        self._local = threading.local()

    @property
    def last_attempts(self) -> List[ProviderAttempt]:
        """Attempts made by the most recent resolve on this thread."""
        return list(getattr(self._local, "attempts", []))

    # ------------------------------------------------------------------
    # Chain construction
    # ------------------------------------------------------------------

    def _api_bible_ready(self) -> bool:
        provider = self.providers.get(ProviderNamespace.API_BIBLE)
        return provider is not None and provider.is_configured()

    def bible_api_code(self, descriptor, requested_translation_id: Optional[str] = None) -> str:
        """
        Code for the "requested translation" bible-api.com step.

        The id the caller sent wins when bible-api.com serves it, even if the
        registry does not list it for the locale ("web", "bolls:YLT"). Otherwise
        the served descriptor's abbreviation is used, and unknown codes become kjv.
        """
        if requested_translation_id:
            raw = requested_translation_id.split(":", 1)[-1].lower()
            if self.registry.normalize_bible_api_code(raw) == raw:
                return raw
        return self.registry.normalize_bible_api_code(descriptor.display_abbreviation)

    def build_chain(
        self,
        descriptor,
        language: str,
        requested_translation_id: Optional[str] = None,
    ) -> List[Tuple[ProviderNamespace, str]]:
        """
        Ordered (namespace, translation code) steps for one request.

        Steps repeating an earlier (namespace, code) pair are dropped.
        """
        chain = []
        if descriptor.namespace is ProviderNamespace.BOLLS or (
            descriptor.namespace is ProviderNamespace.API_BIBLE and self._api_bible_ready()
        ):
            chain.append((descriptor.namespace, descriptor.provider_translation_code))

        chain.append((ProviderNamespace.GETBIBLE, self.registry.getbible_translation(language).code))

        if language == self.default_language:
            chain.append((ProviderNamespace.BIBLE_API, self.bible_api_code(descriptor, requested_translation_id)))
            chain.append((ProviderNamespace.BIBLE_ORG, "NET"))

        chain.append((ProviderNamespace.BIBLE_API, DEFAULT_BIBLE_API_CODE))

        unique = []
        for step in chain:
            if step not in unique:
                unique.append(step)
        return unique

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _canonicalize(self, book: str, chapter: Union[int, str]) -> ScriptureReference:
        canonical = normalize_book_name(book)
        if not canonical:
            raise ReferenceParseError(f"Unknown book: {book}")
        try:
            chapter = int(chapter)
        except (TypeError, ValueError):
            raise ReferenceParseError(f"Chapter must be a number, got {chapter!r}")
        if chapter < 1 or chapter > CHAPTER_COUNTS[canonical]:
            raise ReferenceParseError(
                f"{canonical} has {CHAPTER_COUNTS[canonical]} chapters, got {chapter}"
            )
        return ScriptureReference(canonical, chapter)

    def _submit(self, fn, *args):
        """Queue fn on the shared pool; the event is set once a worker picks it up."""
        running = threading.Event()

        def run():
            running.set()
            return fn(*args)

        return self._executor.submit(run), running

    def _call(self, provider: BibleProvider, reference: ScriptureReference, code: str) -> ProviderResult:
        """
        Run one adapter call under a wall-clock timeout.

        The clock starts when a worker begins the call, so time spent queued
        behind other requests never turns into a TIMEOUT.
        """
        limit = provider.timeout + self._grace
        future, running = self._submit(provider.fetch_chapter, reference, code)
        running.wait()
        try:
            return future.result(timeout=limit)
        except FutureTimeout:
            return ProviderResult.timeout(provider.namespace, f"no answer within {limit:g}s")
        except Exception as e:
            logger.exception(f"{provider.namespace} adapter raised unexpectedly")
            return ProviderResult.error(provider.namespace, f"adapter raised: {e}")

    def resolve_chapter(
        self,
        book: str,
        chapter: Union[int, str],
        requested_translation_id: Optional[str] = None,
        target_language: Optional[str] = None,
    ) -> Optional[ChapterResult]:
        """
        Resolve one chapter.

        Args:
            book: Book name or abbreviation
            chapter: Chapter number
            requested_translation_id: Registry id ("bolls:WEB", API.Bible id)
            target_language: Locale the caller wants text in

        Returns:
            ChapterResult from the first provider that had content, or None

        Raises:
            ReferenceParseError: unknown book or out-of-range chapter
        """
        reference = self._canonicalize(book, chapter)
        language = self.registry.normalize_locale(target_language or self.default_language)
        descriptor = self.registry.resolve_descriptor(language, requested_translation_id)
        self._local.attempts = []

        # The bible-api.com code is part of the key: "web" and "asv" requests share a descriptor
        cache_key = make_cache_key(
            language,
            descriptor.translation_id,
            reference.book,
            reference.chapter,
            variant=self.bible_api_code(descriptor, requested_translation_id),
        )
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {reference} [{descriptor.translation_id}]")
            return cached

        for namespace, code in self.build_chain(descriptor, language, requested_translation_id):
            provider = self.providers.get(namespace)
            if provider is None:
                continue

            started = self._clock()
            result = self._call(provider, reference, code)
            elapsed_ms = int((self._clock() - started) * 1000)
            self._local.attempts.append(ProviderAttempt(
                namespace=namespace,
                translation_code=code,
                started_at=started,
                outcome=result.outcome,
                reason=result.reason,
                elapsed_ms=elapsed_ms,
            ))

            if result.ok:
                logger.info(
                    f"Resolved {reference} via {namespace} ({result.chapter.translation_code}) "
                    f"in {elapsed_ms}ms"
                )
                self.cache.set(cache_key, result.chapter, self.cache_ttl)
                return result.chapter

            logger.warning(f"{namespace} [{code}] failed for {reference}: {result.outcome.value} {result.reason}")

        logger.warning(
            f"All providers exhausted for {reference} "
            f"(translation={descriptor.translation_id}, language={language})"
        )
        return None

    def get_chapter(self, book, chapter, requested_translation_id=None, target_language=None) -> ChapterResult:
        """Like resolve_chapter, but raises ContentNotFoundError instead of returning None."""
        result = self.resolve_chapter(book, chapter, requested_translation_id, target_language)
        if result is None:
            raise ContentNotFoundError(format_reference(str(book), int(chapter)), self.last_attempts)
        return result

    def resolve_verses(
        self,
        raw_reference: str,
        translation_id: Optional[str] = None,
        target_language: Optional[str] = None,
    ) -> List[dict]:
        """
        Resolve "John 3:16-18" (or a whole chapter) to verse dicts.

        Returns an empty list when no provider has the chapter.
        """
        reference = parse_reference(raw_reference)
        chapter = self.resolve_chapter(reference.book, reference.chapter, translation_id, target_language)
        if chapter is None:
            return []
        return [
            {
                "book": chapter.book,
                "chapter": chapter.chapter,
                "verse": verse.number,
                "text": verse.text,
                "translation": chapter.translation_code,
            }
            for verse in chapter.verse_range(reference.verse_start, reference.verse_end)
        ]

    def health(self) -> Dict[ProviderNamespace, bool]:
        """Probe every provider concurrently."""
        futures = {
            namespace: self._submit(provider.health_check)
            for namespace, provider in self.providers.items()
        }
        status = {}
        for namespace, (future, running) in futures.items():
            limit = self.providers[namespace].health_timeout + self._grace
            running.wait()
            try:
                status[namespace] = bool(future.result(timeout=limit))
            except FutureTimeout:
                status[namespace] = False
        return status
