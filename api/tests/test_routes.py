# api/tests/test_routes.py
"""
Tests for the HTTP surface - status codes and payload shapes.

Service singletons are swapped for scripted fakes; nothing leaves the process.
"""

import os
import sys
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# Add api directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings
from fakes import ScriptedProvider
from routes import bible_api, chat_api
from routes.bible_api import reference_from_segments
from server import create_app
from services.bible.fallback import FallbackOrchestrator
from services.bible.namespaces import ProviderNamespace as NS
from services.bible.search import SearchAggregator
from services.bible.translations import TranslationRegistry, load_translations
from services.chat.completion_selector import CompletionStream
from services.chat.llm_service import CompletionProviderError

REGISTRY = TranslationRegistry(load_translations())

TOPICS = {"topics": {"text": ["John 3:1-2"]}, "generic": [], "verse_of_the_day": ["John 3:2"]}


def make_orchestrator(behaviours=None):
    behaviours = behaviours or {}
    providers = {
        namespace: ScriptedProvider(
            namespace,
            behaviours.get(namespace, "ok"),
            configured=namespace is not NS.API_BIBLE,
        )
        for namespace in NS
    }
    return FallbackOrchestrator(REGISTRY, providers, settings=Settings())


@pytest.fixture
def client():
    return create_app().test_client()


@pytest.fixture
def orchestrator(monkeypatch):
    orch = make_orchestrator()
    monkeypatch.setattr(bible_api, "_orchestrator", orch)
    monkeypatch.setattr(bible_api, "_search", SearchAggregator(orch, topics=TOPICS))
    return orch


# =============================================================================
# Bible
# =============================================================================

def test_reference_from_segments():
    assert reference_from_segments("John/3/16") == "John 3:16"
    assert reference_from_segments("1 John/4/7-9") == "1 John 4:7-9"
    assert reference_from_segments("1/John/4/7") == "1 John 4:7"
    assert reference_from_segments("Romans/8") == "Romans 8"
    assert reference_from_segments("John 3:16") == "John 3:16"


def test_status(client):
    response = client.get("/status")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_chapter(client, orchestrator):
    response = client.get("/api/bible/chapter/John/3?translation=bolls:WEB&lang=en")
    assert response.status_code == 200
    data = response.get_json()
    assert set(data) == {
        "book", "chapter", "translation", "translationName",
        "verses", "isNativeTranslation", "language", "source",
    }
    assert data["source"] == "bolls"
    assert data["translation"] == "WEB"
    assert data["verses"][0] == {"verse": 1, "text": "John 3:1 text"}
    assert data["isNativeTranslation"] is True


def test_chapter_bible_id_wins_over_translation(client, orchestrator):
    response = client.get("/api/bible/chapter/John/3?translation=bolls:WEB&bibleId=bolls:YLT")
    assert response.get_json()["translation"] == "YLT"


def test_chapter_bad_reference(client, orchestrator):
    assert client.get("/api/bible/chapter/Hezekiah/1").status_code == 400
    assert client.get("/api/bible/chapter/John/abc").status_code == 400
    response = client.get("/api/bible/chapter/John/99")
    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_reference"


def test_chapter_not_found_when_exhausted(client, monkeypatch):
    orch = make_orchestrator({namespace: "error" for namespace in NS})
    monkeypatch.setattr(bible_api, "_orchestrator", orch)

    response = client.get("/api/bible/chapter/John/3")
    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_chapter_unexpected_error(client, monkeypatch):
    broken = MagicMock()
    broken.get_chapter.side_effect = RuntimeError("bug")
    monkeypatch.setattr(bible_api, "_orchestrator", broken)
    assert client.get("/api/bible/chapter/John/3").status_code == 500


def test_verse_path_formats(client, orchestrator):
    data = client.get("/api/bible/verse/1/John/4/2-3").get_json()
    assert [(v["book"], v["chapter"], v["verse"]) for v in data["verses"]] == [("1 John", 4, 2), ("1 John", 4, 3)]

    data = client.get("/api/bible/verse/John%203:1").get_json()
    assert [v["verse"] for v in data["verses"]] == [1]

    data = client.get("/api/bible/verse/Romans/8").get_json()
    assert len(data["verses"]) == 3


def test_verse_unparseable(client, orchestrator):
    assert client.get("/api/bible/verse/Nowhere/1/1").status_code == 400


def test_search(client, orchestrator):
    response = client.get("/api/bible/search?q=text&filter=nt")
    assert response.status_code == 200
    data = response.get_json()
    assert data["filter"] == "nt"
    assert data["totalCount"] == 2
    assert data["ntCount"] == 2
    assert data["bookCounts"] == {"John": 2}


def test_search_requires_query(client, orchestrator):
    response = client.get("/api/bible/search")
    assert response.status_code == 400
    assert response.get_json()["error"] == "q_required"


def test_translations(client):
    data = client.get("/api/bible/translations?lang=es").get_json()
    assert data["language"] == "es"
    assert data["default"] == "bolls:RV1960"
    assert data["translations"][0]["id"] == "bolls:RV1960"

    data = client.get("/api/bible/translations?lang=xx").get_json()
    assert data["language"] == "en"


def test_verse_of_the_day(client, orchestrator, monkeypatch):
    monkeypatch.setattr(bible_api, "verse_of_the_day_reference", lambda: "John 3:2")
    data = client.get("/api/bible/verse-of-the-day?lang=es").get_json()
    assert data["reference"] == "John 3:2"
    assert data["text"] == "John 3:2 text"


def test_books(client, monkeypatch):
    bolls = MagicMock()
    bolls.fetch_books.return_value = [{"bookId": 1, "name": "Genesis", "chapters": 50, "canonicalName": "Genesis"}]
    orch = MagicMock()
    orch.providers = {NS.BOLLS: bolls}
    monkeypatch.setattr(bible_api, "_orchestrator", orch)

    data = client.get("/api/bible/books/KJV").get_json()
    assert data["books"][0]["name"] == "Genesis"

    bolls.fetch_books.return_value = None
    assert client.get("/api/bible/books/NOPE").status_code == 404


def test_health(client, monkeypatch):
    orch = make_orchestrator({NS.BIBLE_ORG: "error"})
    monkeypatch.setattr(bible_api, "_orchestrator", orch)

    response = client.get("/api/bible/health")
    assert response.status_code == 200
    assert response.get_json() == {
        "getBible": True,
        "bibleApi": True,
        "bibleOrg": False,
        "bolls": True,
        "apiBible": False,
    }


# =============================================================================
# Chat
# =============================================================================

class FakeSelector:
    def __init__(self, outcome=None, providers=("groq",)):
        self.outcome = outcome
        self.providers = providers
        self.requests = []

    def configured_providers(self):
        return [SimpleNamespace(name=name) for name in self.providers]

    def complete(self, messages, target_language="en"):
        self.requests.append((messages, target_language))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return CompletionStream("groq", iter(["Grace ", "and ", "peace"]))


def _use_selector(monkeypatch, selector):
    monkeypatch.setattr(chat_api, "get_selector", lambda: selector)
    return selector


def test_chat_streams_text(client, monkeypatch):
    selector = _use_selector(monkeypatch, FakeSelector())
    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}], "lang": "fr"})

    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    assert response.headers["X-Chat-Provider"] == "groq"
    assert response.get_data(as_text=True) == "Grace and peace"
    assert selector.requests[0][1] == "fr"


def test_chat_requires_messages(client, monkeypatch):
    _use_selector(monkeypatch, FakeSelector())
    response = client.post("/api/chat", json={"messages": []})
    assert response.status_code == 400
    assert response.get_json()["retryable"] is False


@pytest.mark.parametrize("body", [[{"role": "user", "content": "hi"}], "hello", 42])
def test_chat_rejects_non_object_body(client, monkeypatch, body):
    selector = _use_selector(monkeypatch, FakeSelector())
    response = client.post("/api/chat", json=body)

    assert response.status_code == 400
    assert response.get_json() == {
        "error": "invalid_body",
        "detail": "Request body must be a JSON object",
        "retryable": False,
    }
    assert selector.requests == []


def test_chat_non_string_lang_defaults_to_english(client, monkeypatch):
    selector = _use_selector(monkeypatch, FakeSelector())
    client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}], "lang": 7})
    assert selector.requests[0][1] == "en"


def test_chat_invalid_messages(client, monkeypatch):
    _use_selector(monkeypatch, FakeSelector(ValueError("messages[0].role must be 'user' or 'assistant'")))
    response = client.post("/api/chat", json={"messages": [{"role": "system", "content": "x"}]})
    assert response.status_code == 400


@pytest.mark.parametrize("kind, status, retryable", [
    ("rate_limited", 429, True),
    ("auth", 503, False),
    ("not_configured", 503, False),
    ("unavailable", 503, True),
])
def test_chat_provider_errors(client, monkeypatch, kind, status, retryable):
    _use_selector(monkeypatch, FakeSelector(CompletionProviderError(kind, "groq", "failed")))
    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})

    assert response.status_code == status
    body = response.get_json()
    assert body["retryable"] is retryable
    assert body["error"]
    assert body["detail"]


def test_chat_get_lists_configured_providers(client, monkeypatch):
    _use_selector(monkeypatch, FakeSelector(providers=("groq", "anthropic")))
    data = client.get("/api/chat").get_json()
    assert data["status"] == "ok"
    assert len(data["providers"]) == 2
