# api/services/chat/completion_selector.py
"""
Chat completion with provider fallback.

Backends are tried in a fixed order (Groq, OpenAI, Anthropic), skipping
any without credentials. Each is retried with exponential backoff while
it reports a rate limit; any other failure moves on to the next backend.
The first backend that accepts the request owns the response: once
chunks start flowing there is no switching, and a mid-stream failure
just ends the stream.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

from core.config import get_settings
from utils.http_retry import RetryPolicy, is_rate_limit_error

from .grounding import fetch_grounding_context
from .llm_service import (
    NOT_CONFIGURED,
    RATE_LIMITED,
    UNAVAILABLE,
    ChatProvider,
    CompletionProviderError,
    build_chat_providers,
)
from .prompts import build_system_prompt

logger = logging.getLogger(__name__)


NO_PROVIDER_MESSAGE = (
    "No AI provider configured. Please set GROQ_API_KEY, OPENAI_API_KEY, or ANTHROPIC_API_KEY."
)

VALID_ROLES = ("user", "assistant")


@dataclass
class CompletionStream:
    """Text chunks from the backend that accepted the request."""
    provider: str
    chunks: Iterator[str]

    def __iter__(self):
        return iter(self.chunks)


def validate_messages(messages) -> List[Dict[str, str]]:
    """Check the conversation shape; ValueError if it is unusable."""
    if not isinstance(messages, list) or not messages:
        raise ValueError("messages must be a non-empty list")

    cleaned = []
    for index, message in enumerate(messages):
        if not isinstance(message, dict):
            raise ValueError(f"messages[{index}] must be an object")
        role = message.get("role")
        content = message.get("content")
        if role not in VALID_ROLES:
            raise ValueError(f"messages[{index}].role must be 'user' or 'assistant'")
        if not isinstance(content, str):
            raise ValueError(f"messages[{index}].content must be a string")
        cleaned.append({"role": role, "content": content})
    return cleaned


def latest_user_text(messages: List[Dict[str, str]]) -> str:
    for message in reversed(messages):
        if message["role"] == "user":
            return message["content"]
    return ""


class CompletionSelector:
    """
    Usage:
        selector = get_selector()
        stream = selector.complete(messages, target_language="es")
        for chunk in stream:
            ...
    """

    def __init__(
        self,
        providers: Optional[List[ChatProvider]] = None,
        retry_policy: Optional[RetryPolicy] = None,
        grounding_fetcher: Optional[Callable[[str], str]] = None,
        settings=None,
    ):
        self.settings = settings or get_settings()
        self.providers = providers if providers is not None else build_chat_providers(self.settings)
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=self.settings.chat_retry_max_attempts,
            base_delay=self.settings.chat_retry_base_delay,
            is_retryable=is_rate_limit_error,
        )
        if grounding_fetcher is None:
            timeout = self.settings.grounding_timeout_seconds

            def grounding_fetcher(text):
                return fetch_grounding_context(text, timeout=timeout)

        self.grounding_fetcher = grounding_fetcher

    def configured_providers(self) -> List[ChatProvider]:
        return [p for p in self.providers if p.is_configured()]

    def build_system(self, messages: List[Dict[str, str]], target_language: str) -> str:
        system = build_system_prompt(target_language)
        try:
            context = self.grounding_fetcher(latest_user_text(messages))
        except Exception as e:
            logger.debug(f"Grounding skipped: {e}")
            context = ""
        if context:
            return f"{context}\n\n{system}"
        return system

    def complete(self, messages, target_language: str = "en") -> CompletionStream:
        """
        Start a streamed completion.

        Raises:
            ValueError: malformed messages
            CompletionProviderError: no backend accepted the request
        """
        messages = validate_messages(messages)

        providers = self.configured_providers()
        if not providers:
            raise CompletionProviderError(NOT_CONFIGURED, "none", NO_PROVIDER_MESSAGE)

        system = self.build_system(messages, target_language)
        temperature = self.settings.chat_temperature
        max_tokens = self.settings.chat_max_tokens

        last_error = None
        saw_rate_limit = False

        for provider in providers:
            try:
                chunks = self.retry_policy.call(
                    lambda: provider.start_stream(messages, system, temperature, max_tokens),
                    label=provider.name,
                )
            except CompletionProviderError as e:
                last_error = e
            except Exception as e:
                last_error = CompletionProviderError(UNAVAILABLE, provider.name, str(e))

            else:
                logger.info(f"Chat completion streaming from {provider.name}")
                return CompletionStream(provider.name, self._guard(provider.name, chunks))

            if last_error.kind == RATE_LIMITED:
                saw_rate_limit = True
            logger.warning(f"Chat provider {provider.name} failed ({last_error.kind}): {last_error.message}")

        kind = RATE_LIMITED if saw_rate_limit else last_error.kind
        raise CompletionProviderError(kind, last_error.provider, last_error.message)

    @staticmethod
    def _guard(provider_name: str, chunks: Iterator[str]) -> Iterator[str]:
        try:
            for chunk in chunks:
                yield chunk
        except Exception as e:
            logger.error(f"Stream from {provider_name} ended early: {e}")


_selector = None


def get_selector() -> CompletionSelector:
    global _selector
    if _selector is None:
        _selector = CompletionSelector()
    return _selector
