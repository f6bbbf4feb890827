"""Presenter directory backed by a TTL cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Protocol, Sequence

from .errors import DidError
from .models import Presenter

logger = logging.getLogger(__name__)

PRESENTERS_CACHE_KEY = "did_provider:presenters"
PRESENTERS_CACHE_TTL = timedelta(minutes=30)


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


class PresenterCache(Protocol):
    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        ...


@dataclass(slots=True)
class _CacheEntry:
    value: Any
    expires_at: datetime

    def is_valid(self, *, now: datetime) -> bool:
        return now < self.expires_at


class MemoryCache:
    """Process-local TTL cache; entries expire, nothing else evicts them."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _default_clock
        self._entries: Dict[str, _CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_valid(now=self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        if ttl <= timedelta(0):
            return
        self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + ttl)

    def clear(self) -> None:
        self._entries.clear()


class _DirectoryBase:
    def __init__(
        self,
        *,
        cache: PresenterCache | None = None,
        ttl: timedelta = PRESENTERS_CACHE_TTL,
        logger: logging.Logger | None = None,
    ) -> None:
        if ttl < timedelta(0):
            raise ValueError("ttl must be non-negative")
        self._cache = cache if cache is not None else MemoryCache()
        self._ttl = ttl
        self._logger = logger or logging.getLogger(__name__)

    def _cached(self) -> list[Presenter] | None:
        cached = self._cache.get(PRESENTERS_CACHE_KEY)
        return list(cached) if cached is not None else None

    def _store(self, presenters: Sequence[Presenter]) -> list[Presenter]:
        self._cache.set(PRESENTERS_CACHE_KEY, tuple(presenters), self._ttl)
        self._logger.info("did.presenters.fetched", extra={"count": len(presenters)})
        return list(presenters)

    def _fetch_failed(self, exc: DidError) -> list[Presenter]:
        # Empty results are not cached so the next lookup retries the fetch.
        self._logger.error("did.presenters.fetch_failed error=%s", exc, exc_info=exc)
        return []

    @staticmethod
    def _find(presenters: Sequence[Presenter], presenter_id: str) -> Presenter | None:
        for presenter in presenters:
            if presenter.presenter_id == presenter_id:
                return presenter
        return None


class PresenterDirectory(_DirectoryBase):
    """Lazily fetch and cache the selectable presenters.

    Fetch failures degrade to an empty directory, so ``False`` from
    :meth:`is_valid_presenter_id` means either an unknown id or an
    unavailable directory.
    """

    def __init__(
        self,
        fetch: Callable[[], Sequence[Presenter]],
        *,
        cache: PresenterCache | None = None,
        ttl: timedelta = PRESENTERS_CACHE_TTL,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(cache=cache, ttl=ttl, logger=logger)
        self._fetch = fetch

    def list_presenters(self) -> list[Presenter]:
        cached = self._cached()
        if cached is not None:
            return cached
        try:
            presenters = self._fetch()
        except DidError as exc:
            return self._fetch_failed(exc)
        return self._store(presenters)

    def get_presenter(self, presenter_id: str) -> Presenter | None:
        if not presenter_id:
            return None
        return self._find(self.list_presenters(), presenter_id)

    def is_valid_presenter_id(self, presenter_id: str) -> bool:
        return self.get_presenter(presenter_id) is not None


class AsyncPresenterDirectory(_DirectoryBase):
    """Async counterpart of :class:`PresenterDirectory`."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Sequence[Presenter]]],
        *,
        cache: PresenterCache | None = None,
        ttl: timedelta = PRESENTERS_CACHE_TTL,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(cache=cache, ttl=ttl, logger=logger)
        self._fetch = fetch

    async def list_presenters(self) -> list[Presenter]:
        cached = self._cached()
        if cached is not None:
            return cached
        try:
            presenters = await self._fetch()
        except DidError as exc:
            return self._fetch_failed(exc)
        return self._store(presenters)

    async def get_presenter(self, presenter_id: str) -> Presenter | None:
        if not presenter_id:
            return None
        return self._find(await self.list_presenters(), presenter_id)

    async def is_valid_presenter_id(self, presenter_id: str) -> bool:
        return await self.get_presenter(presenter_id) is not None


__all__ = [
    "AsyncPresenterDirectory",
    "MemoryCache",
    "PRESENTERS_CACHE_KEY",
    "PRESENTERS_CACHE_TTL",
    "PresenterCache",
    "PresenterDirectory",
]
