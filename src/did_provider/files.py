"""File reference resolution and output persistence.

References are either ``http(s)://`` URLs, scheme-prefixed managed paths
(``public://``, ``private://``, ``temporary://``) or plain filesystem paths.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Protocol
from urllib.parse import urlparse

import httpx

from .core.config import DidSettings
from .errors import DidError

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = frozenset({"http", "https"})
MANAGED_SCHEMES = ("public", "private", "temporary")


class FileReferenceError(DidError):
    """Raised when a reference cannot be resolved or read."""

    reason = "source_unavailable"


@dataclass(slots=True)
class MediaSource:
    """Bytes behind a file reference plus what is known about their origin."""

    reference: str
    data: bytes
    path: Path | None = None

    @property
    def extension(self) -> str:
        return reference_extension(self.reference)


def reference_extension(reference: str) -> str:
    """Return the extension of ``reference`` without dot, ignoring query strings."""

    parsed = urlparse(reference)
    path = parsed.path if parsed.scheme in REMOTE_SCHEMES else reference.split("?", 1)[0]
    _, ext = posixpath.splitext(path)
    return ext[1:] if ext.startswith(".") else ""


def is_remote(reference: str) -> bool:
    return urlparse(reference).scheme in REMOTE_SCHEMES


class FileStore(Protocol):
    def read(self, reference: str) -> MediaSource:
        ...

    def save(self, data: bytes, reference: str) -> Path:
        ...


@dataclass(slots=True)
class LocalFileStore:
    """Map managed schemes onto local directories and fetch remote URLs."""

    roots: Mapping[str, Path]
    http_client: httpx.Client | None = None
    fetch_timeout_seconds: float = 60.0
    log: logging.Logger = field(default_factory=lambda: logger)

    @classmethod
    def from_settings(
        cls, settings: DidSettings, *, http_client: httpx.Client | None = None
    ) -> "LocalFileStore":
        return cls(
            roots={
                "public": settings.public_root,
                "private": settings.private_root,
                "temporary": settings.temporary_root,
            },
            http_client=http_client,
        )

    def resolve_path(self, reference: str) -> Path | None:
        """Return the filesystem path for ``reference``; ``None`` for URLs."""

        if is_remote(reference):
            return None
        scheme, sep, rest = reference.partition("://")
        if not sep:
            return Path(reference)
        root = self.roots.get(scheme)
        if root is None:
            raise FileReferenceError(f"Unsupported file scheme '{scheme}' in {reference}")
        path = Path(root) / rest.lstrip("/")
        if not path.resolve().is_relative_to(Path(root).resolve()):
            raise FileReferenceError(f"Reference {reference} escapes the {scheme} root")
        return path

    def read(self, reference: str) -> MediaSource:
        if is_remote(reference):
            return MediaSource(reference=reference, data=self._fetch(reference))
        path = self.resolve_path(reference) or Path(reference)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise FileReferenceError(f"Cannot read {reference}: {exc}") from exc
        return MediaSource(reference=reference, data=data, path=path)

    def save(self, data: bytes, reference: str) -> Path:
        path = self.resolve_path(reference)
        if path is None:
            raise FileReferenceError(f"Cannot save to remote reference {reference}")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self.log.info("did.files.saved", extra={"reference": reference, "bytes": len(data)})
        return path

    def _fetch(self, url: str) -> bytes:
        client = self.http_client
        try:
            if client is not None:
                response = client.get(url, follow_redirects=True)
            else:
                with httpx.Client(timeout=self.fetch_timeout_seconds) as owned:
                    response = owned.get(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise FileReferenceError(f"Cannot fetch {url}: {exc}") from exc
        if response.status_code != 200:
            raise FileReferenceError(f"Fetching {url} failed with status {response.status_code}")
        return response.content


__all__ = [
    "FileReferenceError",
    "FileStore",
    "LocalFileStore",
    "MANAGED_SCHEMES",
    "MediaSource",
    "is_remote",
    "reference_extension",
]
