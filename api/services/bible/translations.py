# api/services/bible/translations.py
"""
Translation Registry

Static mapping from (locale, translation id) to the provider that serves
it and its display metadata. Loaded once from config/translations.yml;
nothing here makes a network call.

Public translation IDs come in two shapes:
    "bolls:RV1960"          Bolls.life code, credential-free
    "06125adad2d5898a-01"   API.Bible bible id, needs API_BIBLE_KEY
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .namespaces import ProviderNamespace

logger = logging.getLogger(__name__)


CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    'config',
    'translations.yml'
)

BOLLS_PREFIX = "bolls:"
DEFAULT_BIBLE_API_CODE = "kjv"


@lru_cache(maxsize=1)
def load_translations() -> Dict[str, Any]:
    """Load the translation tables from YAML config."""
    if not os.path.exists(CONFIG_PATH):
        logger.warning(f"Translation config not found at {CONFIG_PATH}, using defaults")
        return get_default_translations()

    with open(CONFIG_PATH, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def get_default_translations() -> Dict[str, Any]:
    """Return a minimal English-only registry if the config file is missing."""
    return {
        'version': '1.0',
        'default_locale': 'en',
        'locales': {
            'en': [
                {'id': 'bolls:KJV', 'abbreviation': 'KJV', 'name': 'King James Version'},
            ],
        },
        'getbible': {
            'en': [{'id': 'kjv', 'abbreviation': 'KJV', 'name': 'King James Version'}],
        },
        'bible_api': {'kjv': 'King James Version'},
    }


def reload_translations():
    """Clear cache and reload the tables."""
    load_translations.cache_clear()
    return load_translations()


def parse_translation_id(translation_id: str) -> Tuple[ProviderNamespace, str]:
    """Split a public translation id into (namespace, provider code)."""
    if translation_id.startswith(BOLLS_PREFIX):
        return ProviderNamespace.BOLLS, translation_id[len(BOLLS_PREFIX):]
    return ProviderNamespace.API_BIBLE, translation_id


@dataclass(frozen=True)
class TranslationDescriptor:
    """
    One translation offered for a locale.

    Attributes:
        locale_tag: App locale ("en", "es", ...)
        namespace: Provider that serves it
        provider_translation_code: The provider's own code or bible id
        display_abbreviation: Short name ("KJV")
        display_name: Full name ("King James Version")
    """
    locale_tag: str
    namespace: ProviderNamespace
    provider_translation_code: str
    display_abbreviation: str
    display_name: str

    @property
    def translation_id(self) -> str:
        if self.namespace is ProviderNamespace.BOLLS:
            return f"{BOLLS_PREFIX}{self.provider_translation_code}"
        return self.provider_translation_code

    def to_dict(self) -> dict:
        return {
            "id": self.translation_id,
            "name": self.display_name,
            "abbreviation": self.display_abbreviation,
            "source": str(self.namespace),
            "requiresKey": self.namespace is ProviderNamespace.API_BIBLE,
        }


@dataclass(frozen=True)
class SecondaryTranslation:
    """A translation on one of the fallback providers (GetBible, bible-api.com)."""
    code: str
    abbreviation: str
    name: str
    locale: str = "en"


class TranslationRegistry:
    """
    Read-only lookups over the translation tables.

    Usage:
        registry = TranslationRegistry()
        descriptor = registry.resolve_descriptor("es")
        descriptor.translation_id   # "bolls:RV1960"
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        data = data if data is not None else load_translations()
        self.default_locale = data.get('default_locale', 'en')

        self._locales: Dict[str, List[TranslationDescriptor]] = {}
        for locale, entries in (data.get('locales') or {}).items():
            descriptors = []
            for entry in entries or []:
                namespace, code = parse_translation_id(str(entry['id']))
                descriptors.append(TranslationDescriptor(
                    locale_tag=locale,
                    namespace=namespace,
                    provider_translation_code=code,
                    display_abbreviation=entry.get('abbreviation', code),
                    display_name=entry.get('name', code),
                ))
            if descriptors:
                self._locales[locale] = descriptors

        if self.default_locale not in self._locales:
            raise ValueError(f"Default locale {self.default_locale!r} has no translations")

        self._getbible = {
            locale: [
                SecondaryTranslation(
                    str(e["id"]), e.get("abbreviation", e["id"]), e.get("name", e["id"]), locale
                )
                for e in entries or []
            ]
            for locale, entries in (data.get('getbible') or {}).items()
        }
        self._bible_api = {str(k).lower(): v for k, v in (data.get('bible_api') or {}).items()}

    # ------------------------------------------------------------------
    # Primary registry
    # ------------------------------------------------------------------

    def supported_locales(self) -> List[str]:
        return list(self._locales)

    def is_supported_locale(self, locale: Optional[str]) -> bool:
        return locale in self._locales

    def normalize_locale(self, locale: Optional[str]) -> str:
        """The locale itself when supported, otherwise the default locale."""
        return locale if locale in self._locales else self.default_locale

    def list_translations(self, locale: Optional[str]) -> List[TranslationDescriptor]:
        """Descriptors for a locale; unknown locales get the default locale's list."""
        return list(self._locales.get(locale) or self._locales[self.default_locale])

    def default_descriptor(self, locale: Optional[str]) -> TranslationDescriptor:
        return self.list_translations(locale)[0]

    def resolve_descriptor(self, locale: Optional[str], translation_id: Optional[str] = None) -> TranslationDescriptor:
        """
        Pick the translation to serve.

        No id, or an id the locale doesn't offer, gives the locale's
        default. The returned descriptor may therefore differ from the
        one asked for.
        """
        candidates = self.list_translations(locale)
        if translation_id:
            for descriptor in candidates:
                if descriptor.translation_id == translation_id:
                    return descriptor
            logger.debug(f"Translation {translation_id} not offered for {locale}, using default")
        return candidates[0]

    def is_external_namespace(self, translation_id: Optional[str]) -> bool:
        """True for ids served by the credential-free namespace (Bolls)."""
        if not translation_id:
            return False
        return parse_translation_id(translation_id)[0] is ProviderNamespace.BOLLS

    def find_descriptor(self, namespace: ProviderNamespace, code: str) -> Optional[TranslationDescriptor]:
        """Find a descriptor in any locale by its provider code."""
        for descriptors in self._locales.values():
            for descriptor in descriptors:
                if descriptor.namespace is namespace and descriptor.provider_translation_code == code:
                    return descriptor
        return None

    # ------------------------------------------------------------------
    # Secondary tables
    # ------------------------------------------------------------------

    def getbible_translations(self, locale: Optional[str]) -> List[SecondaryTranslation]:
        return list(self._getbible.get(locale) or self._getbible.get(self.default_locale) or [])

    def getbible_translation(self, locale: Optional[str]) -> SecondaryTranslation:
        """The GetBible translation used for a locale (first listed), kjv otherwise."""
        translations = self.getbible_translations(locale)
        if translations:
            return translations[0]
        return SecondaryTranslation("kjv", "KJV", "King James Version")

    def getbible_translation_by_code(self, code: str) -> Optional[SecondaryTranslation]:
        for translations in self._getbible.values():
            for translation in translations:
                if translation.code == code:
                    return translation
        return None

    def normalize_bible_api_code(self, code: Optional[str]) -> str:
        """Map any code to one bible-api.com serves; unknown codes become kjv."""
        code = (code or "").lower()
        return code if code in self._bible_api else DEFAULT_BIBLE_API_CODE

    def bible_api_name(self, code: str) -> str:
        return self._bible_api.get(self.normalize_bible_api_code(code), "King James Version")


_registry: Optional[TranslationRegistry] = None


def get_registry() -> TranslationRegistry:
    """Get or create the shared TranslationRegistry."""
    global _registry
    if _registry is None:
        _registry = TranslationRegistry()
    return _registry
