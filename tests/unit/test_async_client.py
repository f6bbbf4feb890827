from __future__ import annotations

import httpx
import pytest

from did_provider.async_client import AsyncDidClient
from did_provider.core.config import DidSettings
from did_provider.errors import JobTimeoutError
from did_provider.files import LocalFileStore
from did_provider.models import JobKind
from did_provider.transport import AsyncDidTransport
from tests.mocks.did_api import (
    AUDIO_URL,
    IMAGE_URL,
    RESULT_URL,
    FakeClock,
    FakeDidApi,
)


@pytest.fixture
def async_client(
    settings: DidSettings, did_api: FakeDidApi, file_store: LocalFileStore, clock: FakeClock
) -> AsyncDidClient:
    transport = AsyncDidTransport(
        "user:pw",
        base_url=settings.base_url,
        client=httpx.AsyncClient(transport=did_api.transport()),
    )
    return AsyncDidClient(
        transport,
        file_store=file_store,
        settings=settings,
        clock=clock,
        sleep=clock.async_sleep,
    )


@pytest.mark.asyncio
async def test_async_generate_from_image_sync(
    async_client: AsyncDidClient, did_api: FakeDidApi, clock: FakeClock
) -> None:
    did_api.job_statuses = [
        (200, {"id": "t1", "status": "started"}),
        (200, {"id": "t1", "status": "done", "result_url": RESULT_URL}),
    ]

    job = await async_client.generate_from_image_sync(AUDIO_URL, IMAGE_URL, "happy", 600)

    assert job.result_url == RESULT_URL
    assert did_api.calls()[:3] == [("POST", "/images"), ("POST", "/audios"), ("POST", "/talks")]
    assert clock.sleeps == [2.0]


@pytest.mark.asyncio
async def test_async_timeout_matches_sync_semantics(
    async_client: AsyncDidClient, did_api: FakeDidApi
) -> None:
    did_api.job_statuses = [(200, {"id": "t1", "status": "started"})]

    with pytest.raises(JobTimeoutError):
        await async_client.generate_from_image_sync(AUDIO_URL, IMAGE_URL, "neutral", 4)

    assert did_api.fetch_times == [0.0, 2.0]


@pytest.mark.asyncio
async def test_async_presenter_flow_and_directory(
    async_client: AsyncDidClient, did_api: FakeDidApi
) -> None:
    did_api.submit_response = (201, {"id": "clp_1"})

    job = await async_client.generate(AUDIO_URL, presenter_id="amy-jcwCkr1grs")

    assert job.kind is JobKind.CLIP
    assert await async_client.is_valid_presenter_id("amy-jcwCkr1grs") is True
    assert await async_client.is_valid_presenter_id("") is False
    assert did_api.calls().count(("GET", "/clips/presenters")) == 1


@pytest.mark.asyncio
async def test_async_download_result(async_client: AsyncDidClient) -> None:
    assert await async_client.download_result(RESULT_URL) == b"mp4-bytes"


@pytest.mark.asyncio
async def test_async_generate_requires_exactly_one_target(
    async_client: AsyncDidClient, did_api: FakeDidApi
) -> None:
    with pytest.raises(ValueError, match="Exactly one"):
        await async_client.generate(AUDIO_URL)
    with pytest.raises(ValueError, match="Exactly one"):
        await async_client.generate(AUDIO_URL, image_ref=IMAGE_URL, presenter_id="amy", wait=True)

    assert did_api.requests == []
