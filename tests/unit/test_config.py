from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from did_provider.core.config import DEFAULT_BASE_URL, DidSettings


@pytest.mark.unit
def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DID_BASE_URL", raising=False)

    settings = DidSettings()

    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.poll_interval_seconds == 2.0
    assert settings.default_timeout_seconds == 600.0
    assert settings.presenter_cache_ttl_seconds == 1800
    assert (settings.image_max_width, settings.image_max_height) == (1920, 1080)
    assert settings.image_max_bytes == 1_000_000


@pytest.mark.unit
def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DID_BASE_URL", "https://api.example.test/")
    monkeypatch.setenv("DID_POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("DID_PUBLIC_ROOT", str(tmp_path))

    settings = DidSettings.build_default()

    assert settings.base_url == "https://api.example.test/"
    assert settings.poll_interval_seconds == 0.5
    assert settings.public_root == tmp_path


@pytest.mark.unit
def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        DidSettings(jpeg_quality=0)
    with pytest.raises(ValidationError):
        DidSettings(read_timeout_seconds=0)
