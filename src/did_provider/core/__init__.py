"""Configuration for the D-ID client."""

from .config import DEFAULT_BASE_URL, DidSettings

__all__ = ["DEFAULT_BASE_URL", "DidSettings"]
