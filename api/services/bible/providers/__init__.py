"""
Upstream Bible content providers.

Each adapter wraps one HTTP API and returns a ProviderResult; see base.py
for the shared contract.
"""

from .base import (
    BibleProvider,
    ProviderAttempt,
    ProviderOutcome,
    ProviderResult,
)
from .bolls import BollsProvider
from .api_bible import ApiBibleProvider
from .getbible import GetBibleProvider
from .bible_api_com import BibleApiComProvider
from .bible_org import BibleOrgProvider

__all__ = [
    "BibleProvider",
    "ProviderAttempt",
    "ProviderOutcome",
    "ProviderResult",
    "BollsProvider",
    "ApiBibleProvider",
    "GetBibleProvider",
    "BibleApiComProvider",
    "BibleOrgProvider",
    "build_providers",
]


def build_providers(settings, registry=None) -> dict:
    """Create one adapter per namespace, keyed by ProviderNamespace."""
    timeout = settings.provider_timeout_seconds
    providers = [
        BollsProvider(registry=registry, timeout=timeout),
        ApiBibleProvider(api_key=settings.api_bible_key, registry=registry, timeout=timeout),
        GetBibleProvider(registry=registry, timeout=settings.getbible_timeout_seconds),
        BibleApiComProvider(registry=registry, timeout=timeout),
        BibleOrgProvider(timeout=timeout),
    ]
    return {provider.namespace: provider for provider in providers}
