# api/tests/test_translations.py
"""
Tests for translations.py - the translation registry.
"""

import os
import sys

import pytest

# Add api directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.bible.namespaces import ProviderNamespace
from services.bible.translations import (
    TranslationRegistry,
    get_default_translations,
    load_translations,
    parse_translation_id,
)


@pytest.fixture
def registry():
    return TranslationRegistry(load_translations())


def test_config_loads():
    """The shipped YAML has every supported locale."""
    data = load_translations()
    assert data["default_locale"] == "en"
    assert set(data["locales"]) == {"en", "es", "de", "fr", "pt", "zh", "it"}


def test_config_files_ship_with_the_packages():
    """Both YAML tables sit in config/ beside services/, and the build installs them."""
    tomllib = pytest.importorskip("tomllib")
    from services.bible import search, translations

    api_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    for path in (translations.CONFIG_PATH, search.CONFIG_PATH):
        assert os.path.isfile(path)
        assert os.path.samefile(os.path.dirname(path), os.path.join(api_dir, "config"))

    with open(os.path.join(os.path.dirname(api_dir), "pyproject.toml"), "rb") as f:
        setuptools = tomllib.load(f)["tool"]["setuptools"]
    assert "config" in setuptools["packages"]["find"]["include"]
    assert setuptools["package-data"]["config"] == ["*.yml"]


def test_parse_translation_id():
    assert parse_translation_id("bolls:RV1960") == (ProviderNamespace.BOLLS, "RV1960")
    assert parse_translation_id("06125adad2d5898a-01") == (ProviderNamespace.API_BIBLE, "06125adad2d5898a-01")


def test_default_descriptor_per_locale(registry):
    en = registry.default_descriptor("en")
    assert en.namespace is ProviderNamespace.API_BIBLE
    assert en.display_abbreviation == "ASV"

    es = registry.default_descriptor("es")
    assert es.translation_id == "bolls:RV1960"
    assert es.namespace is ProviderNamespace.BOLLS
    assert es.provider_translation_code == "RV1960"


def test_unknown_locale_falls_back_to_default(registry):
    assert registry.list_translations("xx") == registry.list_translations("en")
    assert not registry.is_supported_locale("xx")
    assert registry.is_supported_locale("zh")


def test_resolve_descriptor(registry):
    """Known ids resolve exactly; ids the locale doesn't offer give its default."""
    ylt = registry.resolve_descriptor("en", "bolls:YLT")
    assert ylt.display_name == "Young's Literal Translation"

    assert registry.resolve_descriptor("es", "bolls:YLT").translation_id == "bolls:RV1960"
    assert registry.resolve_descriptor("de").translation_id == "bolls:HFA"


def test_descriptor_to_dict(registry):
    payload = registry.resolve_descriptor("en", "bolls:WEB").to_dict()
    assert payload == {
        "id": "bolls:WEB",
        "name": "World English Bible",
        "abbreviation": "WEB",
        "source": "bolls",
        "requiresKey": False,
    }
    assert registry.default_descriptor("en").to_dict()["requiresKey"] is True


def test_find_descriptor(registry):
    descriptor = registry.find_descriptor(ProviderNamespace.BOLLS, "FRLSG")
    assert descriptor.locale_tag == "fr"
    assert registry.find_descriptor(ProviderNamespace.BOLLS, "NOPE") is None


def test_is_external_namespace(registry):
    assert registry.is_external_namespace("bolls:KJV")
    assert not registry.is_external_namespace("06125adad2d5898a-01")
    assert not registry.is_external_namespace(None)


def test_getbible_tables(registry):
    assert registry.getbible_translation("de").code == "schlachter"
    assert registry.getbible_translation("en").code == "kjv"
    # Unknown locale uses the default locale's table
    assert registry.getbible_translation("xx").code == "kjv"
    assert registry.getbible_translation_by_code("ls1910").locale == "fr"
    assert registry.getbible_translation_by_code("missing") is None


def test_bible_api_codes(registry):
    assert registry.normalize_bible_api_code("ASV") == "asv"
    assert registry.normalize_bible_api_code("NIV") == "kjv"
    assert registry.normalize_bible_api_code(None) == "kjv"
    assert registry.bible_api_name("web") == "World English Bible"
    assert registry.bible_api_name("zzz") == "King James Version"


def test_normalize_locale(registry):
    assert registry.normalize_locale("es") == "es"
    assert registry.normalize_locale("xx") == "en"
    assert registry.normalize_locale("") == "en"
    assert registry.normalize_locale(None) == "en"


def test_default_tables_are_usable():
    """The built-in fallback tables stand up a working registry."""
    registry = TranslationRegistry(get_default_translations())
    assert registry.default_descriptor("fr").translation_id == "bolls:KJV"


def test_empty_default_locale_rejected():
    with pytest.raises(ValueError):
        TranslationRegistry({"default_locale": "en", "locales": {}})
