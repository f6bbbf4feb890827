"""Field automator: turn an image and an audio reference into a video URL.

Unlike :class:`~did_provider.provider.DidVideoProvider`, the automator never
raises for remote failures.  It reports them in the result mapping together
with the error ``reason`` and a ``retryable`` flag so queue workers can
decide whether to schedule the item again.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .client import DidClient
from .errors import DidError
from .logging import bind_job_context, clear_job_context
from .models import Expression

logger = logging.getLogger(__name__)


class VideoAutomatorConfig(BaseModel):
    expression: Expression = Field(default=Expression.NEUTRAL)
    wait_for_result: bool = Field(
        default=True,
        description="When false, return the created job so it can be polled later.",
    )
    timeout: int = Field(default=600, ge=30, le=1800, description="Polling budget in seconds.")

    @field_validator("expression", mode="before")
    @classmethod
    def _coerce_expression(cls, value: Any) -> Expression:
        return Expression.coerce(value)


class VideoAutomator:
    def __init__(
        self,
        client: DidClient,
        config: VideoAutomatorConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._config = config or VideoAutomatorConfig()
        self._log = logger or logging.getLogger(__name__)

    @property
    def config(self) -> VideoAutomatorConfig:
        return self._config

    def run(self, image_ref: str, audio_ref: str) -> dict[str, Any]:
        if not image_ref or not audio_ref:
            return {
                "status": "error",
                "message": "Both an image and an audio source are required.",
                "reason": "bad_request",
                "retryable": False,
            }

        config = self._config
        bind_job_context(image_ref=image_ref, audio_ref=audio_ref)
        try:
            if config.wait_for_result:
                job = self._client.generate_from_image_sync(
                    audio_ref, image_ref, config.expression, config.timeout
                )
            else:
                job = self._client.generate_from_image(audio_ref, image_ref, config.expression)
        except DidError as exc:
            self._log.warning(
                "did.automator.failed reason=%s retryable=%s error=%s",
                exc.reason,
                exc.retryable,
                exc,
            )
            return {
                "status": "error",
                "message": f"Failed to create video using D-ID: {exc}",
                "reason": exc.reason,
                "retryable": exc.retryable,
            }
        finally:
            clear_job_context()

        return {
            "status": "ok",
            "video_url": job.result_url,
            "talk_id": job.id,
            "data": dict(job.raw),
        }


__all__ = ["VideoAutomator", "VideoAutomatorConfig"]
