# api/services/bible/providers/base.py
"""
Provider adapter contract.

Every upstream Bible API sits behind a BibleProvider. Adapters never
raise to their caller: network failures, bad status codes and malformed
payloads all come back as a ProviderResult with a non-SUCCESS outcome,
so the fallback chain can simply move on.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

import requests

from ..models import ChapterResult, SearchHit
from ..namespaces import ProviderNamespace
from ..reference_parser import ScriptureReference

logger = logging.getLogger(__name__)


class ProviderOutcome(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"
    TIMEOUT = "timeout"


@dataclass
class ProviderResult:
    """Outcome of one adapter call. ``chapter`` is set only on SUCCESS."""
    namespace: ProviderNamespace
    outcome: ProviderOutcome
    chapter: Optional[ChapterResult] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is ProviderOutcome.SUCCESS and self.chapter is not None

    @classmethod
    def success(cls, namespace, chapter: ChapterResult) -> "ProviderResult":
        if chapter.is_empty:
            return cls.empty(namespace, "no verses")
        return cls(namespace, ProviderOutcome.SUCCESS, chapter=chapter)

    @classmethod
    def empty(cls, namespace, reason: str = "no verses") -> "ProviderResult":
        return cls(namespace, ProviderOutcome.EMPTY, reason=reason)

    @classmethod
    def error(cls, namespace, reason: str) -> "ProviderResult":
        return cls(namespace, ProviderOutcome.ERROR, reason=reason)

    @classmethod
    def timeout(cls, namespace, reason: str = "timed out") -> "ProviderResult":
        return cls(namespace, ProviderOutcome.TIMEOUT, reason=reason)


@dataclass
class ProviderAttempt:
    """Diagnostic record of one step in a fallback chain."""
    namespace: ProviderNamespace
    translation_code: str
    started_at: float
    outcome: ProviderOutcome
    reason: str = ""
    elapsed_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "source": str(self.namespace),
            "translation": self.translation_code,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "elapsedMs": self.elapsed_ms,
        }


class BibleProvider(ABC):
    """Abstract base class for Bible content providers."""

    namespace: ProviderNamespace
    base_url: str = ""
    timeout: float = 10
    health_timeout: float = 5

    def __init__(self, timeout: Optional[float] = None, session: Optional[Any] = None):
        if timeout is not None:
            self.timeout = timeout
        # Anything with a requests-style .get() works; tests pass a fake
        self._http = session or requests

    @abstractmethod
    def fetch_chapter(
        self,
        reference: ScriptureReference,
        translation_code: str,
        timeout: Optional[float] = None,
    ) -> ProviderResult:
        """
        Fetch the whole chapter ``reference`` points into.

        Verse ranges are sliced by the caller; adapters only widen a
        reference when the upstream API needs it (single-chapter books).

        Returns:
            ProviderResult; never raises.
        """
        pass

    def search_keyword(self, query: str, translation_code: str, limit: int = 20) -> Optional[list[SearchHit]]:
        """Keyword search, for providers that have one. None means unsupported."""
        return None

    def is_configured(self) -> bool:
        return True

    def health_check(self) -> bool:
        """Probe the provider with John 3:16. Never raises."""
        if not self.is_configured():
            return False
        probe = ScriptureReference("John", 3, 16)
        try:
            return self.fetch_chapter(probe, self.health_check_code, timeout=self.health_timeout).ok
        except Exception as e:
            logger.debug(f"{self.namespace} health check failed: {e}")
            return False

    @property
    def health_check_code(self) -> str:
        return ""

    def _get_json(
        self,
        url: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> Tuple[Optional[Any], str]:
        """
        GET a URL and decode JSON.

        Returns:
            (payload, "") on success, (None, reason) on any failure
        """
        timeout = timeout or self.timeout
        try:
            logger.debug(f"Fetching {url}")
            response = self._http.get(url, params=params, headers=headers, timeout=timeout)
        except requests.Timeout:
            return None, f"request timed out after {timeout}s"
        except requests.RequestException as e:
            return None, f"network error: {e}"

        if response.status_code == 404:
            return None, "not found (404)"
        if not 200 <= response.status_code < 300:
            return None, f"HTTP {response.status_code}"

        try:
            return response.json(), ""
        except ValueError as e:
            return None, f"invalid JSON: {e}"
