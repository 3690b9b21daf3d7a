# api/services/bible/errors.py
"""Exceptions raised by the scripture content services."""

from .reference_parser import ReferenceParseError


class ContentNotFoundError(Exception):
    """Every provider in the fallback chain came back empty or failed."""

    def __init__(self, reference: str, attempts=None):
        self.reference = reference
        self.attempts = list(attempts or [])
        super().__init__(f"No provider could serve {reference}")


__all__ = ["ContentNotFoundError", "ReferenceParseError"]
