"""Media uploads to ``/images`` and ``/audios``."""

from __future__ import annotations

import asyncio
import hashlib
import io
import logging
import mimetypes
from dataclasses import dataclass, field

from PIL import Image, UnidentifiedImageError

from .errors import UploadFailedError
from .files import FileStore, MediaSource
from .models import Asset
from .transport import AsyncDidTransport, DidTransport, TransportResponse

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ImageLimits:
    """Bounds above which images are re-encoded before upload."""

    max_width: int = 1920
    max_height: int = 1080
    max_bytes: int = 1_000_000
    jpeg_quality: int = 90


@dataclass(slots=True)
class PreparedUpload:
    """Multipart part ready to be posted."""

    field_name: str
    filename: str
    data: bytes
    content_type: str
    reencoded: bool = False

    def as_files(self) -> list[tuple[str, tuple[str, bytes, str]]]:
        return [(self.field_name, (self.filename, self.data, self.content_type))]


def hashed_filename(reference: str, extension: str) -> str:
    """Short, collision-resistant upload name: SHA-1 of the reference plus extension."""

    digest = hashlib.sha1(reference.encode("utf-8")).hexdigest()
    return f"{digest}.{extension}" if extension else digest


def _guess_content_type(filename: str, fallback: str) -> str:
    mime, _ = mimetypes.guess_type(filename)
    return mime or fallback


def needs_reencode(width: int, height: int, size_bytes: int, limits: ImageLimits) -> bool:
    return width > limits.max_width or height > limits.max_height or size_bytes > limits.max_bytes


def prepare_image(
    source: MediaSource,
    *,
    limits: ImageLimits = ImageLimits(),
    log: logging.Logger = logger,
) -> PreparedUpload:
    """Return the image part, downsized and re-encoded as JPEG when too large.

    Images within ``limits`` are uploaded byte-identical.  Oversized ones are
    scaled to fit the dimension bounds and saved as JPEG at
    ``limits.jpeg_quality``.  Undecodable data is uploaded unchanged and left
    for the remote service to validate.
    """

    original_name = hashed_filename(source.reference, source.extension)
    original = PreparedUpload(
        field_name="image",
        filename=original_name,
        data=source.data,
        content_type=_guess_content_type(original_name, "application/octet-stream"),
    )
    try:
        with Image.open(io.BytesIO(source.data)) as image:
            width, height = image.size
            if not needs_reencode(width, height, len(source.data), limits):
                return original
            image.load()
            converted = image.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        log.warning(
            "did.media.image_decode_failed reference=%s error=%s", source.reference, exc
        )
        return original

    converted.thumbnail((limits.max_width, limits.max_height))
    buffer = io.BytesIO()
    converted.save(buffer, format="JPEG", quality=limits.jpeg_quality)
    log.info(
        "did.media.image_reencoded",
        extra={
            "reference": source.reference,
            "original_size": (width, height),
            "original_bytes": len(source.data),
            "final_size": converted.size,
            "final_bytes": buffer.tell(),
        },
    )
    return PreparedUpload(
        field_name="image",
        filename=hashed_filename(source.reference, "jpg"),
        data=buffer.getvalue(),
        content_type="image/jpeg",
        reencoded=True,
    )


def prepare_audio(source: MediaSource) -> PreparedUpload:
    filename = hashed_filename(source.reference, source.extension)
    return PreparedUpload(
        field_name="audio",
        filename=filename,
        data=source.data,
        content_type=_guess_content_type(filename, "audio/mpeg"),
    )


def parse_asset(kind: str, response: TransportResponse) -> Asset:
    body = response.json()
    url = body.get("url") if isinstance(body, dict) else None
    if not response.ok or not url:
        raise UploadFailedError(kind, status_code=response.status_code, body=body or response.text)
    return Asset(url=str(url))


@dataclass(slots=True)
class MediaUploader:
    """Resolve references through the file store and upload them."""

    transport: DidTransport
    file_store: FileStore
    limits: ImageLimits = field(default_factory=ImageLimits)
    log: logging.Logger = field(default_factory=lambda: logger)

    def upload_image(self, reference: str) -> Asset:
        part = prepare_image(self.file_store.read(reference), limits=self.limits, log=self.log)
        return self._upload("images", "image", reference, part)

    def upload_audio(self, reference: str) -> Asset:
        part = prepare_audio(self.file_store.read(reference))
        return self._upload("audios", "audio", reference, part)

    def _upload(self, path: str, kind: str, reference: str, part: PreparedUpload) -> Asset:
        self.log.info(
            "did.upload.start",
            extra={"kind": kind, "reference": reference, "upload_bytes": len(part.data)},
        )
        response = self.transport.request("POST", path, files=part.as_files())
        asset = parse_asset(kind, response)
        self.log.info("did.upload.done", extra={"kind": kind, "asset_url": asset.url})
        return asset


@dataclass(slots=True)
class AsyncMediaUploader:
    """Async counterpart of :class:`MediaUploader`.

    File reads and image re-encoding run in a worker thread.
    """

    transport: AsyncDidTransport
    file_store: FileStore
    limits: ImageLimits = field(default_factory=ImageLimits)
    log: logging.Logger = field(default_factory=lambda: logger)

    async def upload_image(self, reference: str) -> Asset:
        source = await asyncio.to_thread(self.file_store.read, reference)
        part = await asyncio.to_thread(prepare_image, source, limits=self.limits, log=self.log)
        return await self._upload("images", "image", reference, part)

    async def upload_audio(self, reference: str) -> Asset:
        source = await asyncio.to_thread(self.file_store.read, reference)
        return await self._upload("audios", "audio", reference, prepare_audio(source))

    async def _upload(self, path: str, kind: str, reference: str, part: PreparedUpload) -> Asset:
        self.log.info(
            "did.upload.start",
            extra={"kind": kind, "reference": reference, "upload_bytes": len(part.data)},
        )
        response = await self.transport.request("POST", path, files=part.as_files())
        asset = parse_asset(kind, response)
        self.log.info("did.upload.done", extra={"kind": kind, "asset_url": asset.url})
        return asset


__all__ = [
    "AsyncMediaUploader",
    "ImageLimits",
    "MediaUploader",
    "PreparedUpload",
    "hashed_filename",
    "needs_reencode",
    "parse_asset",
    "prepare_audio",
    "prepare_image",
]
