"""Non-blocking D-ID client for event-loop hosts.

Mirrors :class:`~did_provider.client.DidClient`; waiting between status
fetches uses ``asyncio.sleep`` so a pending job does not hold a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import timedelta
from typing import Awaitable, Callable

import httpx

from .client import GENERATION_TARGET_ERROR, image_limits_from
from .core.config import DidSettings
from .credentials import CredentialSource, EnvCredentialSource, require_credential
from .files import FileStore, LocalFileStore
from .media import AsyncMediaUploader
from .models import Asset, Expression, Job, JobKind, Presenter
from .payloads import (
    build_clip_payload,
    build_talk_payload,
    parse_job,
    parse_job_list,
    parse_presenters,
    parse_submission,
)
from .polling import AsyncPoller
from .presenters import AsyncPresenterDirectory, PresenterCache
from .transport import AsyncDidTransport


class AsyncDidClient:
    def __init__(
        self,
        transport: AsyncDidTransport,
        *,
        file_store: FileStore,
        settings: DidSettings | None = None,
        cache: PresenterCache | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings or DidSettings()
        self._transport = transport
        self._file_store = file_store
        self._clock = clock
        self._sleep = sleep
        self._log = logger or logging.getLogger(__name__)
        self._uploader = AsyncMediaUploader(
            transport=transport,
            file_store=file_store,
            limits=image_limits_from(self._settings),
            log=self._log,
        )
        self._presenters = AsyncPresenterDirectory(
            self._fetch_presenters,
            cache=cache,
            ttl=timedelta(seconds=self._settings.presenter_cache_ttl_seconds),
            logger=self._log,
        )

    @classmethod
    def from_settings(
        cls,
        settings: DidSettings | None = None,
        *,
        credentials: CredentialSource | None = None,
        file_store: FileStore | None = None,
        cache: PresenterCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> "AsyncDidClient":
        settings = settings or DidSettings.build_default()
        secret = require_credential(credentials or EnvCredentialSource(), settings.api_key_name)
        transport = AsyncDidTransport(
            secret,
            base_url=settings.base_url,
            connect_timeout_seconds=settings.connect_timeout_seconds,
            read_timeout_seconds=settings.read_timeout_seconds,
            client=http_client,
        )
        return cls(
            transport,
            file_store=file_store or LocalFileStore.from_settings(settings),
            settings=settings,
            cache=cache,
            logger=logger,
        )

    async def upload_image(self, reference: str) -> Asset:
        return await self._uploader.upload_image(reference)

    async def upload_audio(self, reference: str) -> Asset:
        return await self._uploader.upload_audio(reference)

    async def submit_talk(
        self, *, source_url: str, audio_url: str, expression: Expression | str = Expression.NEUTRAL
    ) -> Job:
        body = build_talk_payload(source_url=source_url, audio_url=audio_url, expression=expression)
        return await self._submit(JobKind.TALK, body)

    async def submit_clip(
        self, *, presenter_id: str, audio_url: str, expression: Expression | str = Expression.NEUTRAL
    ) -> Job:
        body = build_clip_payload(
            presenter_id=presenter_id, audio_url=audio_url, expression=expression
        )
        return await self._submit(JobKind.CLIP, body)

    async def _submit(self, kind: JobKind, body: dict) -> Job:
        response = await self._transport.request("POST", kind.collection, json=body)
        job = parse_submission(response, kind=kind)
        self._log.info("did.job.submitted", extra={"job_id": job.id, "job_kind": kind.value})
        return job

    async def get_job(self, job_id: str, kind: JobKind = JobKind.TALK) -> Job:
        response = await self._transport.request("GET", f"{kind.collection}/{job_id}")
        return parse_job(response, kind=kind)

    async def get_talk(self, talk_id: str) -> Job:
        return await self.get_job(talk_id, JobKind.TALK)

    async def get_clip(self, clip_id: str) -> Job:
        return await self.get_job(clip_id, JobKind.CLIP)

    async def list_talks(self) -> list[Job]:
        response = await self._transport.request("GET", JobKind.TALK.collection)
        return parse_job_list(response, kind=JobKind.TALK)

    async def poll_until_done(
        self,
        job_id: str,
        timeout_seconds: float | None = None,
        *,
        kind: JobKind = JobKind.TALK,
        started_at: float | None = None,
    ) -> Job:
        async def fetch(identifier: str) -> Job:
            return await self.get_job(identifier, kind)

        poller = AsyncPoller(
            fetch=fetch,
            interval_seconds=self._settings.poll_interval_seconds,
            clock=self._clock,
            sleep=self._sleep,
            log=self._log,
        )
        budget = self._settings.default_timeout_seconds if timeout_seconds is None else timeout_seconds
        return await poller.poll_until_done(job_id, budget, started_at=started_at)

    async def generate_from_image(
        self, audio_ref: str, image_ref: str, expression: Expression | str = Expression.NEUTRAL
    ) -> Job:
        image = await self.upload_image(image_ref)
        audio = await self.upload_audio(audio_ref)
        return await self.submit_talk(source_url=image.url, audio_url=audio.url, expression=expression)

    async def generate_from_image_sync(
        self,
        audio_ref: str,
        image_ref: str,
        expression: Expression | str = Expression.NEUTRAL,
        timeout_seconds: float | None = None,
    ) -> Job:
        started = self._clock()
        job = await self.generate_from_image(audio_ref, image_ref, expression)
        return await self.poll_until_done(job.id, timeout_seconds, kind=job.kind, started_at=started)

    async def generate_from_presenter(
        self, audio_ref: str, presenter_id: str, expression: Expression | str = Expression.NEUTRAL
    ) -> Job:
        audio = await self.upload_audio(audio_ref)
        return await self.submit_clip(
            presenter_id=presenter_id, audio_url=audio.url, expression=expression
        )

    async def generate_from_presenter_sync(
        self,
        audio_ref: str,
        presenter_id: str,
        expression: Expression | str = Expression.NEUTRAL,
        timeout_seconds: float | None = None,
    ) -> Job:
        started = self._clock()
        job = await self.generate_from_presenter(audio_ref, presenter_id, expression)
        return await self.poll_until_done(job.id, timeout_seconds, kind=job.kind, started_at=started)

    async def generate(
        self,
        audio_ref: str,
        *,
        image_ref: str | None = None,
        presenter_id: str | None = None,
        expression: Expression | str = Expression.NEUTRAL,
        wait: bool = False,
        timeout_seconds: float | None = None,
    ) -> Job:
        if image_ref and not presenter_id:
            if wait:
                return await self.generate_from_image_sync(
                    audio_ref, image_ref, expression, timeout_seconds
                )
            return await self.generate_from_image(audio_ref, image_ref, expression)
        if presenter_id and not image_ref:
            if wait:
                return await self.generate_from_presenter_sync(
                    audio_ref, presenter_id, expression, timeout_seconds
                )
            return await self.generate_from_presenter(audio_ref, presenter_id, expression)
        raise ValueError(GENERATION_TARGET_ERROR)

    async def _fetch_presenters(self) -> list[Presenter]:
        response = await self._transport.request("GET", "clips/presenters")
        return parse_presenters(response)

    async def list_presenters(self) -> list[Presenter]:
        return await self._presenters.list_presenters()

    async def get_presenter(self, presenter_id: str) -> Presenter | None:
        return await self._presenters.get_presenter(presenter_id)

    async def is_valid_presenter_id(self, presenter_id: str) -> bool:
        return await self._presenters.is_valid_presenter_id(presenter_id)

    async def download_result(self, result_url: str) -> bytes:
        source = await asyncio.to_thread(self._file_store.read, result_url)
        return source.data

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> "AsyncDidClient":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.aclose()


__all__ = ["AsyncDidClient"]
