# api/services/chat/__init__.py
"""Streaming chat: backend selection, retry, and verse grounding."""

from .completion_selector import CompletionSelector, CompletionStream, get_selector, validate_messages
from .grounding import extract_verse_references, fetch_grounding_context
from .llm_service import (
    AnthropicProvider,
    ChatProvider,
    CompletionProviderError,
    GroqProvider,
    OpenAIProvider,
    build_chat_providers,
)
from .prompts import LANGUAGE_CONFIG, build_system_prompt

__all__ = [
    "CompletionSelector",
    "CompletionStream",
    "get_selector",
    "validate_messages",
    "extract_verse_references",
    "fetch_grounding_context",
    "AnthropicProvider",
    "ChatProvider",
    "CompletionProviderError",
    "GroqProvider",
    "OpenAIProvider",
    "build_chat_providers",
    "LANGUAGE_CONFIG",
    "build_system_prompt",
]
