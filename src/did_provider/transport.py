"""HTTP transports for the D-ID REST API.

Both transports forward status and body to the caller instead of raising on
non-2xx responses; only failures of the exchange itself are raised, as
:class:`~did_provider.errors.TransportError`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import httpx

from .core.config import DEFAULT_BASE_URL
from .credentials import split_basic_auth
from .errors import TransportError

logger = logging.getLogger(__name__)

MultipartFiles = Sequence[tuple[str, tuple[str, bytes, str]]]


@dataclass(slots=True)
class TransportResponse:
    """Raw status and body of an API call."""

    status_code: int
    content: bytes
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Return the decoded JSON body, or ``None`` when it is not JSON."""
        if not self.content:
            return None
        try:
            return json.loads(self.content)
        except ValueError:
            return None


def _build_timeout(connect_seconds: float, read_seconds: float) -> httpx.Timeout:
    return httpx.Timeout(read_seconds, connect=connect_seconds)


def _join_url(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def _request_kwargs(
    *,
    query: Mapping[str, Any] | None,
    json_body: Any,
    files: MultipartFiles | None,
    headers: Mapping[str, str] | None,
) -> dict[str, Any]:
    merged_headers = dict(headers or {})
    kwargs: dict[str, Any] = {}
    if query:
        kwargs["params"] = dict(query)
    if json_body is not None:
        merged_headers.setdefault("Content-Type", "application/json")
        kwargs["content"] = json.dumps(json_body).encode("utf-8")
    if files:
        kwargs["files"] = list(files)
    merged_headers.setdefault("Accept", "application/json")
    kwargs["headers"] = merged_headers
    return kwargs


class _TransportBase:
    def __init__(
        self,
        secret: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        connect_timeout_seconds: float = 600.0,
        read_timeout_seconds: float = 600.0,
    ) -> None:
        self._base_url = base_url
        self._auth = httpx.BasicAuth(*split_basic_auth(secret))
        self._timeout = _build_timeout(connect_timeout_seconds, read_timeout_seconds)

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, path: str) -> str:
        return _join_url(self._base_url, path)


class DidTransport(_TransportBase):
    """Blocking transport built on :class:`httpx.Client`."""

    def __init__(
        self,
        secret: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        connect_timeout_seconds: float = 600.0,
        read_timeout_seconds: float = 600.0,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(
            secret,
            base_url=base_url,
            connect_timeout_seconds=connect_timeout_seconds,
            read_timeout_seconds=read_timeout_seconds,
        )
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self._timeout)

    def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        json: Any = None,
        files: MultipartFiles | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        url = self.url_for(path)
        kwargs = _request_kwargs(query=query, json_body=json, files=files, headers=headers)
        try:
            response = self._client.request(
                method, url, auth=self._auth, timeout=self._timeout, **kwargs
            )
        except httpx.HTTPError as exc:
            logger.error("did.transport.error method=%s path=%s error=%s", method, path, exc)
            raise TransportError(f"D-ID request {method} {path} failed: {exc}") from exc
        logger.debug(
            "did.transport.response",
            extra={"method": method, "path": path, "status_code": response.status_code},
        )
        return TransportResponse(
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "DidTransport":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class AsyncDidTransport(_TransportBase):
    """Non-blocking transport built on :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        secret: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        connect_timeout_seconds: float = 600.0,
        read_timeout_seconds: float = 600.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            secret,
            base_url=base_url,
            connect_timeout_seconds=connect_timeout_seconds,
            read_timeout_seconds=read_timeout_seconds,
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        json: Any = None,
        files: MultipartFiles | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        url = self.url_for(path)
        kwargs = _request_kwargs(query=query, json_body=json, files=files, headers=headers)
        try:
            response = await self._client.request(
                method, url, auth=self._auth, timeout=self._timeout, **kwargs
            )
        except httpx.HTTPError as exc:
            logger.error("did.transport.error method=%s path=%s error=%s", method, path, exc)
            raise TransportError(f"D-ID request {method} {path} failed: {exc}") from exc
        logger.debug(
            "did.transport.response",
            extra={"method": method, "path": path, "status_code": response.status_code},
        )
        return TransportResponse(
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncDidTransport":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.aclose()


__all__ = ["AsyncDidTransport", "DidTransport", "MultipartFiles", "TransportResponse"]
