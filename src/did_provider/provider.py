"""``image_and_audio_to_video`` operation built on :class:`DidClient`.

The provider accepts media either as URLs, local paths or raw bytes.  Raw
bytes are first written under ``public://ai_did`` so the client can upload
them like any other reference.  The finished video is downloaded and handed
back as bytes together with the raw job payload.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Mapping

from .client import DidClient
from .core.config import DidSettings
from .credentials import CredentialSource, EnvCredentialSource
from .errors import BadRequestError, DidError
from .files import FileStore, LocalFileStore
from .models import Expression

logger = logging.getLogger(__name__)

OPERATION_IMAGE_AND_AUDIO_TO_VIDEO = "image_and_audio_to_video"
UPLOAD_DIRECTORY = "public://ai_did"


@dataclass(slots=True)
class MediaFile:
    """Input file: at least one of ``url``, ``path`` or ``binary`` is set."""

    filename: str
    binary: bytes | None = None
    url: str | None = None
    path: str | None = None
    mime_type: str | None = None


@dataclass(slots=True)
class VideoFile:
    binary: bytes
    mime_type: str
    filename: str


@dataclass(slots=True)
class VideoOutput:
    files: list[VideoFile]
    raw: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)


class DidVideoProvider:
    """Provider exposing the D-ID image+audio to video operation."""

    provider_id = "did"

    def __init__(
        self,
        *,
        settings: DidSettings | None = None,
        credentials: CredentialSource | None = None,
        file_store: FileStore | None = None,
        client: DidClient | None = None,
        expression: Expression | str = Expression.NEUTRAL,
        save_output: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings or DidSettings.build_default()
        self._credentials = credentials or EnvCredentialSource()
        self._file_store = file_store or LocalFileStore.from_settings(self._settings)
        self._client = client
        self._expression = expression
        self._save_output = save_output
        self._log = logger or logging.getLogger(__name__)

    @property
    def client(self) -> DidClient:
        if self._client is None:
            self._client = DidClient.from_settings(
                self._settings,
                credentials=self._credentials,
                file_store=self._file_store,
                logger=self._log,
            )
        return self._client

    def supported_operation_types(self) -> list[str]:
        return [OPERATION_IMAGE_AND_AUDIO_TO_VIDEO]

    def is_usable(self, operation_type: str | None = None) -> bool:
        if not self._credentials.resolve(self._settings.api_key_name):
            return False
        if operation_type:
            return operation_type in self.supported_operation_types()
        return True

    def configured_models(self) -> dict[str, str]:
        return {"default": "D-ID"}

    def model_settings(self) -> dict[str, dict[str, Any]]:
        return {
            "expression": {
                "label": "Expression",
                "description": "Driver expression applied from the first frame.",
                "type": "string",
                "default": Expression.NEUTRAL.value,
                "options": [member.value for member in Expression],
                "required": False,
            }
        }

    def image_and_audio_to_video(
        self,
        image: MediaFile | None,
        audio: MediaFile | None,
        *,
        expression: Expression | str | None = None,
        timeout_seconds: float | None = None,
    ) -> VideoOutput:
        if image is None or audio is None:
            raise BadRequestError("Both image and audio are required.")

        image_ref = self._reference_for(image, prefix="img")
        audio_ref = self._reference_for(audio, prefix="aud")
        job = self.client.generate_from_image_sync(
            audio_ref,
            image_ref,
            expression or self._expression,
            timeout_seconds,
        )
        if not job.result_url:
            raise BadRequestError("No video returned from D-ID.")

        video_url = job.result_url
        try:
            binary = self.client.download_result(video_url)
        except DidError as exc:
            raise BadRequestError("Failed to download the generated video from D-ID.") from exc

        filename = f"did-video-{hashlib.md5(video_url.encode('utf-8')).hexdigest()}.mp4"
        metadata: dict[str, Any] = {"source_url": video_url}
        if self._save_output:
            saved = self._file_store.save(binary, f"{UPLOAD_DIRECTORY}/{filename}")
            metadata["saved_path"] = str(saved)
        self._log.info(
            "did.provider.video_ready",
            extra={"job_id": job.id, "video_bytes": len(binary), "video_filename": filename},
        )
        return VideoOutput(
            files=[VideoFile(binary=binary, mime_type="video/mp4", filename=filename)],
            raw=job.raw,
            metadata=metadata,
        )

    def _reference_for(self, media: MediaFile, *, prefix: str) -> str:
        if media.url:
            return media.url
        if media.path:
            return media.path
        if not media.binary:
            raise BadRequestError(f"Media file '{media.filename}' has no url, path or content.")
        basename = PurePath(media.filename.replace("\\", "/")).name
        reference = f"{UPLOAD_DIRECTORY}/{prefix}_{uuid.uuid4().hex}-{basename}"
        self._file_store.save(media.binary, reference)
        return reference


__all__ = [
    "DidVideoProvider",
    "MediaFile",
    "OPERATION_IMAGE_AND_AUDIO_TO_VIDEO",
    "VideoFile",
    "VideoOutput",
]
