# api/utils/http_retry.py
"""
Retry with exponential backoff for rate-limited upstream calls.

RetryPolicy wraps any callable. The chat providers use it with
is_rate_limit_error so that only rate-limit failures are retried.

Usage:
    from utils.http_retry import RetryPolicy, is_rate_limit_error

    policy = RetryPolicy(max_attempts=3, base_delay=1.0, is_retryable=is_rate_limit_error)
    stream = policy.call(lambda: provider.start_stream(messages, system))
"""

import logging
import time
from typing import Any, Callable, TypeVar

from openai import RateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RATE_LIMIT_MARKERS = ("rate limit", "rate_limit", "429", "quota")


def is_rate_limit_error(exc: BaseException) -> bool:
    """
    True if an exception looks like an upstream rate limit.

    Recognizes openai.RateLimitError, HTTP 429 responses, anything
    carrying a 429 status_code/status attribute, and error messages
    mentioning rate limits or quota.
    """
    if isinstance(exc, RateLimitError):
        return True

    # CompletionProviderError already classified itself
    kind = getattr(exc, "kind", None)
    if kind is not None:
        return kind == "rate_limited"

    response = getattr(exc, "response", None)
    if response is not None and getattr(response, "status_code", None) == 429:
        return True

    for attr in ("status_code", "status"):
        if getattr(exc, attr, None) == 429:
            return True

    message = str(exc).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


class RetryPolicy:
    """
    Bounded exponential backoff.

    Attempt n (0-based) that fails with a retryable error is followed by
    a sleep of base_delay * 2**n. The last attempt is never followed by
    a sleep; its error is re-raised. Non-retryable errors propagate
    immediately.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        is_retryable: Callable[[BaseException], bool] = is_rate_limit_error,
        sleep: Callable[[float], Any] = time.sleep,
    ):
        self.max_attempts = max(1, int(max_attempts))
        self.base_delay = base_delay
        self.is_retryable = is_retryable
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** attempt)

    def call(self, fn: Callable[[], T], label: str = "call") -> T:
        for attempt in range(self.max_attempts):
            try:
                return fn()
            except Exception as e:
                if not self.is_retryable(e) or attempt == self.max_attempts - 1:
                    raise
                wait = self.delay_for(attempt)
                logger.info(
                    f"Rate limited on {label}, waiting {wait}s "
                    f"(attempt {attempt + 1}/{self.max_attempts})"
                )
                self._sleep(wait)

        # max_attempts >= 1, so the loop always returns or raises
        raise RuntimeError("unreachable")

