# api/services/chat/llm_service.py
"""
Streaming chat backends.

Three interchangeable providers, tried in a fixed order by the
CompletionSelector:
    - Groq: OpenAI-compatible endpoint, openai SDK with a custom base_url
    - OpenAI: openai SDK
    - Anthropic: raw HTTP with server-sent events

start_stream() sends the request and raises CompletionProviderError
before returning if the backend rejects it. Once it returns, the
provider has accepted the request and the iterator yields text chunks.

Usage:
    from services.chat.llm_service import build_chat_providers

    for provider in build_chat_providers(settings):
        if provider.is_configured():
            for chunk in provider.start_stream(messages, system="..."):
                print(chunk, end="")
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional

import openai
import requests

logger = logging.getLogger(__name__)


RATE_LIMITED = "rate_limited"
AUTH = "auth"
NOT_CONFIGURED = "not_configured"
UNAVAILABLE = "unavailable"


class CompletionProviderError(Exception):
    """A chat backend refused or failed a request, classified by kind."""

    def __init__(self, kind: str, provider: str, message: str = ""):
        self.kind = kind
        self.provider = provider
        self.message = message or kind
        super().__init__(f"{provider}: {self.message}")


class ChatProvider(ABC):
    """Abstract base class for streaming chat backends."""

    name = ""

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True if credentials are present."""
        pass

    @abstractmethod
    def start_stream(
        self,
        messages: List[Dict[str, str]],
        system: str = "",
        temperature: float = 0.75,
        max_tokens: int = 4000,
    ) -> Iterator[str]:
        """
        Open a completion stream.

        Args:
            messages: user/assistant turns, oldest first
            system: system prompt
            temperature: sampling temperature
            max_tokens: completion length limit

        Returns:
            Iterator over text chunks.

        Raises:
            CompletionProviderError if the request is rejected.
        """
        pass


def _classify_openai_error(exc: Exception) -> str:
    if isinstance(exc, openai.RateLimitError):
        return RATE_LIMITED
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return AUTH
    return UNAVAILABLE


class OpenAICompatibleProvider(ChatProvider):
    """Backends that speak the OpenAI chat completions API."""

    base_url: Optional[str] = None

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key
        self.model = model
        self._client = None

    def _get_client(self):
        if self._client is None:
            if self.base_url:
                self._client = openai.OpenAI(api_key=self._api_key, base_url=self.base_url)
            else:
                self._client = openai.OpenAI(api_key=self._api_key)
        return self._client

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def start_stream(self, messages, system="", temperature=0.75, max_tokens=4000):
        if not self.is_configured():
            raise CompletionProviderError(NOT_CONFIGURED, self.name, f"{self.name} API key not configured")

        payload = [{"role": "system", "content": system}] if system else []
        payload.extend(messages)

        try:
            stream = self._get_client().chat.completions.create(
                model=self.model,
                messages=payload,
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
        except openai.OpenAIError as e:
            raise CompletionProviderError(_classify_openai_error(e), self.name, str(e)) from e

        return self._iter_text(stream)

    @staticmethod
    def _iter_text(stream) -> Iterator[str]:
        for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content


class GroqProvider(OpenAICompatibleProvider):
    name = "groq"
    base_url = "https://api.groq.com/openai/v1"
    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        super().__init__(api_key, model or self.DEFAULT_MODEL)


class OpenAIProvider(OpenAICompatibleProvider):
    name = "openai"
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        super().__init__(api_key, model or self.DEFAULT_MODEL)


class AnthropicProvider(ChatProvider):
    """
    Anthropic Messages API over server-sent events.

    The system prompt goes in the top-level "system" field; the messages
    list may only hold user/assistant turns.
    """

    name = "anthropic"
    ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
    ANTHROPIC_VERSION = "2023-06-01"
    DEFAULT_MODEL = "claude-3-haiku-20240307"
    DEFAULT_TIMEOUT = 120  # seconds

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, session=None):
        self._api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self._http = session or requests

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def start_stream(self, messages, system="", temperature=0.75, max_tokens=4000):
        if not self.is_configured():
            raise CompletionProviderError(NOT_CONFIGURED, self.name, "Anthropic API key not configured")

        payload = {
            "model": self.model,
            "messages": [m for m in messages if m.get("role") in ("user", "assistant")],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": True,
        }
        if system:
            payload["system"] = system

        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": self.ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

        try:
            response = self._http.post(
                self.ANTHROPIC_API_URL,
                json=payload,
                headers=headers,
                timeout=self.DEFAULT_TIMEOUT,
                stream=True,
            )
        except requests.RequestException as e:
            raise CompletionProviderError(UNAVAILABLE, self.name, f"Anthropic request failed: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            response.close()
            if response.status_code == 429:
                kind = RATE_LIMITED
            elif response.status_code in (401, 403):
                kind = AUTH
            else:
                kind = UNAVAILABLE
            raise CompletionProviderError(kind, self.name, f"Anthropic API error: {message}")

        return self._iter_events(response)

    @staticmethod
    def _error_message(response) -> str:
        try:
            return response.json().get("error", {}).get("message") or f"HTTP {response.status_code}"
        except ValueError:
            return f"HTTP {response.status_code}"

    def _iter_events(self, response) -> Iterator[str]:
        try:
            for line in response.iter_lines(decode_unicode=True):
                if not line or not line.startswith("data:"):
                    continue
                data = line[len("data:"):].strip()
                try:
                    event = json.loads(data)
                except ValueError:
                    logger.debug(f"Skipping malformed SSE payload: {data[:80]}")
                    continue

                event_type = event.get("type")
                if event_type == "content_block_delta":
                    delta = event.get("delta") or {}
                    if delta.get("type") == "text_delta" and delta.get("text"):
                        yield delta["text"]
                elif event_type == "message_stop":
                    break
                elif event_type == "error":
                    message = (event.get("error") or {}).get("message", "stream error")
                    raise CompletionProviderError(UNAVAILABLE, self.name, message)
        finally:
            response.close()


def build_chat_providers(settings) -> List[ChatProvider]:
    """Chat backends in fallback order."""
    return [
        GroqProvider(settings.groq_api_key, settings.groq_model),
        OpenAIProvider(settings.openai_api_key, settings.openai_model),
        AnthropicProvider(settings.anthropic_api_key, settings.anthropic_model),
    ]
