"""Blocking D-ID client.

Steps run strictly in sequence: upload image, upload audio, submit the job,
then poll.  The ``*_sync`` operations block the calling thread for up to the
polling budget; :mod:`did_provider.async_client` offers the non-blocking
equivalent.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Callable

import httpx

from .core.config import DidSettings
from .credentials import CredentialSource, EnvCredentialSource, require_credential
from .files import FileStore, LocalFileStore
from .media import ImageLimits, MediaUploader
from .models import Asset, Expression, Job, JobKind, Presenter
from .payloads import (
    build_clip_payload,
    build_talk_payload,
    parse_job,
    parse_job_list,
    parse_presenters,
    parse_submission,
)
from .polling import Poller
from .presenters import PresenterCache, PresenterDirectory
from .transport import DidTransport

logger = logging.getLogger(__name__)


def image_limits_from(settings: DidSettings) -> ImageLimits:
    return ImageLimits(
        max_width=settings.image_max_width,
        max_height=settings.image_max_height,
        max_bytes=settings.image_max_bytes,
        jpeg_quality=settings.jpeg_quality,
    )


GENERATION_TARGET_ERROR = "Exactly one of image_ref or presenter_id must be provided"


class DidClient:
    """Upload media, submit talks or clips and wait for their result."""

    def __init__(
        self,
        transport: DidTransport,
        *,
        file_store: FileStore,
        settings: DidSettings | None = None,
        cache: PresenterCache | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings or DidSettings()
        self._transport = transport
        self._file_store = file_store
        self._clock = clock
        self._sleep = sleep
        self._log = logger or logging.getLogger(__name__)
        self._uploader = MediaUploader(
            transport=transport,
            file_store=file_store,
            limits=image_limits_from(self._settings),
            log=self._log,
        )
        self._presenters = PresenterDirectory(
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
        http_client: httpx.Client | None = None,
        logger: logging.Logger | None = None,
    ) -> "DidClient":
        settings = settings or DidSettings.build_default()
        secret = require_credential(credentials or EnvCredentialSource(), settings.api_key_name)
        transport = DidTransport(
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

    @property
    def file_store(self) -> FileStore:
        return self._file_store

    # Media -----------------------------------------------------------------

    def upload_image(self, reference: str) -> Asset:
        return self._uploader.upload_image(reference)

    def upload_audio(self, reference: str) -> Asset:
        return self._uploader.upload_audio(reference)

    # Jobs ------------------------------------------------------------------

    def submit_talk(
        self, *, source_url: str, audio_url: str, expression: Expression | str = Expression.NEUTRAL
    ) -> Job:
        body = build_talk_payload(source_url=source_url, audio_url=audio_url, expression=expression)
        return self._submit(JobKind.TALK, body)

    def submit_clip(
        self, *, presenter_id: str, audio_url: str, expression: Expression | str = Expression.NEUTRAL
    ) -> Job:
        body = build_clip_payload(
            presenter_id=presenter_id, audio_url=audio_url, expression=expression
        )
        return self._submit(JobKind.CLIP, body)

    def _submit(self, kind: JobKind, body: dict) -> Job:
        response = self._transport.request("POST", kind.collection, json=body)
        job = parse_submission(response, kind=kind)
        self._log.info("did.job.submitted", extra={"job_id": job.id, "job_kind": kind.value})
        return job

    def get_job(self, job_id: str, kind: JobKind = JobKind.TALK) -> Job:
        response = self._transport.request("GET", f"{kind.collection}/{job_id}")
        return parse_job(response, kind=kind)

    def get_talk(self, talk_id: str) -> Job:
        return self.get_job(talk_id, JobKind.TALK)

    def get_clip(self, clip_id: str) -> Job:
        return self.get_job(clip_id, JobKind.CLIP)

    def list_talks(self) -> list[Job]:
        response = self._transport.request("GET", JobKind.TALK.collection)
        return parse_job_list(response, kind=JobKind.TALK)

    def poll_until_done(
        self,
        job_id: str,
        timeout_seconds: float | None = None,
        *,
        kind: JobKind = JobKind.TALK,
        started_at: float | None = None,
    ) -> Job:
        poller = Poller(
            fetch=lambda identifier: self.get_job(identifier, kind),
            interval_seconds=self._settings.poll_interval_seconds,
            clock=self._clock,
            sleep=self._sleep,
            log=self._log,
        )
        budget = self._settings.default_timeout_seconds if timeout_seconds is None else timeout_seconds
        return poller.poll_until_done(job_id, budget, started_at=started_at)

    # Caller-facing operations ----------------------------------------------

    def generate_from_image(
        self, audio_ref: str, image_ref: str, expression: Expression | str = Expression.NEUTRAL
    ) -> Job:
        """Upload both files and submit a talk; returns the freshly created job."""

        image = self.upload_image(image_ref)
        audio = self.upload_audio(audio_ref)
        return self.submit_talk(source_url=image.url, audio_url=audio.url, expression=expression)

    def generate_from_image_sync(
        self,
        audio_ref: str,
        image_ref: str,
        expression: Expression | str = Expression.NEUTRAL,
        timeout_seconds: float | None = None,
    ) -> Job:
        """Like :meth:`generate_from_image` but wait for the ``result_url``.

        Raises :class:`~did_provider.errors.JobTimeoutError` when the budget,
        counted from the start of this call, runs out.
        """

        started = self._clock()
        job = self.generate_from_image(audio_ref, image_ref, expression)
        return self.poll_until_done(job.id, timeout_seconds, kind=job.kind, started_at=started)

    def generate_from_presenter(
        self, audio_ref: str, presenter_id: str, expression: Expression | str = Expression.NEUTRAL
    ) -> Job:
        audio = self.upload_audio(audio_ref)
        return self.submit_clip(presenter_id=presenter_id, audio_url=audio.url, expression=expression)

    def generate_from_presenter_sync(
        self,
        audio_ref: str,
        presenter_id: str,
        expression: Expression | str = Expression.NEUTRAL,
        timeout_seconds: float | None = None,
    ) -> Job:
        started = self._clock()
        job = self.generate_from_presenter(audio_ref, presenter_id, expression)
        return self.poll_until_done(job.id, timeout_seconds, kind=job.kind, started_at=started)

    def generate(
        self,
        audio_ref: str,
        *,
        image_ref: str | None = None,
        presenter_id: str | None = None,
        expression: Expression | str = Expression.NEUTRAL,
        wait: bool = False,
        timeout_seconds: float | None = None,
    ) -> Job:
        """Single entry point: an avatar image or a stock presenter, optionally waiting."""

        if image_ref and not presenter_id:
            if wait:
                return self.generate_from_image_sync(audio_ref, image_ref, expression, timeout_seconds)
            return self.generate_from_image(audio_ref, image_ref, expression)
        if presenter_id and not image_ref:
            if wait:
                return self.generate_from_presenter_sync(
                    audio_ref, presenter_id, expression, timeout_seconds
                )
            return self.generate_from_presenter(audio_ref, presenter_id, expression)
        raise ValueError(GENERATION_TARGET_ERROR)

    # Presenters ------------------------------------------------------------

    def _fetch_presenters(self) -> list[Presenter]:
        response = self._transport.request("GET", "clips/presenters")
        return parse_presenters(response)

    def list_presenters(self) -> list[Presenter]:
        return self._presenters.list_presenters()

    def get_presenter(self, presenter_id: str) -> Presenter | None:
        return self._presenters.get_presenter(presenter_id)

    def is_valid_presenter_id(self, presenter_id: str) -> bool:
        return self._presenters.is_valid_presenter_id(presenter_id)

    # Results ---------------------------------------------------------------

    def download_result(self, result_url: str) -> bytes:
        """Fetch the rendered video; result URLs are pre-signed, no auth is sent."""

        return self._file_store.read(result_url).data

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "DidClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


__all__ = ["DidClient", "GENERATION_TARGET_ERROR", "image_limits_from"]
