"""Credential lookup for the D-ID basic-auth secret."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Protocol

from .errors import ConfigurationError


class CredentialSource(Protocol):
    """Resolve a configured key name to the ``"username:password"`` secret."""

    def resolve(self, key_name: str) -> str | None:
        ...


@dataclass(slots=True)
class EnvCredentialSource:
    """Read the secret from the environment variable named ``key_name``."""

    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)

    def resolve(self, key_name: str) -> str | None:
        value = self.environ.get(key_name)
        return value.strip() if value else None


@dataclass(slots=True)
class StaticCredentialSource:
    """In-memory key store, mostly for tests and embedding."""

    secrets: Mapping[str, str] = field(default_factory=dict)

    def resolve(self, key_name: str) -> str | None:
        return self.secrets.get(key_name)


def require_credential(source: CredentialSource, key_name: str) -> str:
    secret = source.resolve(key_name)
    if not secret:
        raise ConfigurationError(f"D-ID credential '{key_name}' is not configured")
    return secret


def split_basic_auth(secret: str) -> tuple[str, str]:
    """Split ``secret`` on the first colon into ``(username, password)``."""

    username, _, password = secret.partition(":")
    return username, password


__all__ = [
    "CredentialSource",
    "EnvCredentialSource",
    "StaticCredentialSource",
    "require_credential",
    "split_basic_auth",
]
