# api/services/bible/namespaces.py
"""Identifiers for the upstream Bible content providers."""

from enum import Enum


class ProviderNamespace(str, Enum):
    """
    Which upstream provider a translation code or book id belongs to.

    The value doubles as the ``source`` tag reported to callers.
    """
    BOLLS = "bolls"
    API_BIBLE = "api-bible"
    GETBIBLE = "getbible"
    BIBLE_API = "bible-api"
    BIBLE_ORG = "bible-org"

    def __str__(self) -> str:
        return self.value
