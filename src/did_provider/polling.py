"""Bounded status polling for submitted jobs."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from .errors import DidError, JobFailedError, JobTimeoutError
from .models import Job

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


def _settle(job: Job) -> Job | None:
    """Return ``job`` when finished, raise when failed, ``None`` while pending."""

    if job.is_complete:
        return job
    if job.is_failed:
        raise JobFailedError(job)
    return None


@dataclass(slots=True)
class Poller:
    """Fetch job status every ``interval_seconds`` until a result URL appears.

    The elapsed time is checked before each fetch, so no fetch is issued once
    ``timeout_seconds`` have passed since ``started_at``.
    """

    fetch: Callable[[str], Job]
    interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep
    log: logging.Logger = field(default_factory=lambda: logger)

    def poll_until_done(
        self, job_id: str, timeout_seconds: float, *, started_at: float | None = None
    ) -> Job:
        started = self.clock() if started_at is None else started_at
        last_job: Job | None = None
        attempt = 0
        while self.clock() - started < timeout_seconds:
            attempt += 1
            try:
                job = self.fetch(job_id)
            except DidError as exc:
                if not exc.retryable:
                    raise
                self.log.warning(
                    "did.poll.fetch_failed job_id=%s attempt=%s error=%s", job_id, attempt, exc
                )
            else:
                last_job = job
                finished = _settle(job)
                if finished is not None:
                    self.log.info(
                        "did.poll.done",
                        extra={"job_id": job_id, "attempts": attempt, "result_url": job.result_url},
                    )
                    return finished
                self.log.debug(
                    "did.poll.pending",
                    extra={"job_id": job_id, "attempt": attempt, "status": job.status.value},
                )
            self.sleep(self.interval_seconds)

        self.log.warning(
            "did.poll.timeout",
            extra={"job_id": job_id, "attempts": attempt, "timeout_seconds": timeout_seconds},
        )
        raise JobTimeoutError(job_id, timeout_seconds=timeout_seconds, last_job=last_job)


@dataclass(slots=True)
class AsyncPoller:
    """Non-blocking variant of :class:`Poller` with the same timeout semantics."""

    fetch: Callable[[str], Awaitable[Job]]
    interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    log: logging.Logger = field(default_factory=lambda: logger)

    async def poll_until_done(
        self, job_id: str, timeout_seconds: float, *, started_at: float | None = None
    ) -> Job:
        started = self.clock() if started_at is None else started_at
        last_job: Job | None = None
        attempt = 0
        while self.clock() - started < timeout_seconds:
            attempt += 1
            try:
                job = await self.fetch(job_id)
            except DidError as exc:
                if not exc.retryable:
                    raise
                self.log.warning(
                    "did.poll.fetch_failed job_id=%s attempt=%s error=%s", job_id, attempt, exc
                )
            else:
                last_job = job
                finished = _settle(job)
                if finished is not None:
                    self.log.info(
                        "did.poll.done",
                        extra={"job_id": job_id, "attempts": attempt, "result_url": job.result_url},
                    )
                    return finished
            await self.sleep(self.interval_seconds)

        self.log.warning(
            "did.poll.timeout",
            extra={"job_id": job_id, "attempts": attempt, "timeout_seconds": timeout_seconds},
        )
        raise JobTimeoutError(job_id, timeout_seconds=timeout_seconds, last_job=last_job)


__all__ = ["AsyncPoller", "DEFAULT_POLL_INTERVAL_SECONDS", "Poller"]
