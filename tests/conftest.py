from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from did_provider.client import DidClient
from did_provider.core.config import DidSettings
from did_provider.files import LocalFileStore
from did_provider.presenters import MemoryCache
from did_provider.transport import DidTransport
from tests.mocks.did_api import (
    API_BASE_URL,
    AUDIO_URL,
    IMAGE_URL,
    RESULT_URL,
    FakeClock,
    FakeDidApi,
    FakeMediaHost,
    png_bytes,
)

TEST_SECRET = "user@example.com:s3cr3t"


@pytest.fixture
def settings(tmp_path: Path) -> DidSettings:
    return DidSettings(
        base_url=API_BASE_URL,
        public_root=tmp_path / "public",
        private_root=tmp_path / "private",
        temporary_root=tmp_path / "tmp",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def did_api(clock: FakeClock) -> FakeDidApi:
    return FakeDidApi(clock=clock)


@pytest.fixture
def media_host() -> FakeMediaHost:
    return FakeMediaHost(
        files={
            AUDIO_URL: b"ID3-fake-audio",
            IMAGE_URL: png_bytes(),
            RESULT_URL: b"mp4-bytes",
        }
    )


@pytest.fixture
def file_store(settings: DidSettings, media_host: FakeMediaHost) -> LocalFileStore:
    return LocalFileStore.from_settings(
        settings, http_client=httpx.Client(transport=media_host.transport())
    )


@pytest.fixture
def make_client(
    settings: DidSettings,
    did_api: FakeDidApi,
    file_store: LocalFileStore,
    clock: FakeClock,
) -> Callable[..., DidClient]:
    def factory(**overrides) -> DidClient:
        transport = DidTransport(
            TEST_SECRET,
            base_url=settings.base_url,
            client=httpx.Client(transport=did_api.transport()),
        )
        options = {
            "file_store": file_store,
            "settings": settings,
            "cache": MemoryCache(),
            "clock": clock,
            "sleep": clock.sleep,
        }
        options.update(overrides)
        return DidClient(transport, **options)

    return factory


@pytest.fixture
def client(make_client: Callable[..., DidClient]) -> DidClient:
    return make_client()
