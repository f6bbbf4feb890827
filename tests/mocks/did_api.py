"""In-process fake of the D-ID REST API for unit and integration tests."""

from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from typing import Any

import httpx
from PIL import Image

API_BASE_URL = "https://api.d-id.test/"
MEDIA_BASE_URL = "https://media.test"
RESULT_URL = "https://x/v.mp4"
AUDIO_URL = f"{MEDIA_BASE_URL}/voice.mp3"
IMAGE_URL = f"{MEDIA_BASE_URL}/face.png"


def png_bytes(size: tuple[int, int] = (64, 64), color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def json_response(status_code: int, payload: Any) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"))


@dataclass
class FakeClock:
    """Monotonic clock advanced only by ``sleep`` and ``advance``."""

    now: float = 0.0
    sleeps: list[float] = field(default_factory=list)

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    async def async_sleep(self, seconds: float) -> None:
        self.sleep(seconds)

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeDidApi:
    """Route requests by method and path; every request is recorded.

    ``job_statuses`` is consumed one entry per status fetch; the last entry
    repeats once the queue is drained.
    """

    clock: FakeClock | None = None
    image_response: tuple[int, Any] = (201, {"url": "s3://d-id-images/face.png"})
    audio_response: tuple[int, Any] = (201, {"url": "s3://d-id-audios/voice.mp3"})
    submit_response: tuple[int, Any] = (201, {"id": "t1", "status": "created"})
    job_statuses: list[tuple[int, Any]] = field(
        default_factory=lambda: [(200, {"id": "t1", "status": "done", "result_url": RESULT_URL})]
    )
    presenters_response: tuple[int, Any] = (
        200,
        {
            "presenters": [
                {"presenter_id": "amy-jcwCkr1grs", "name": "Amy", "owner_id": "d-id"},
                {"presenter_id": "rian-lZC6MmWfC1", "name": "Rian", "owner_id": "d-id"},
            ]
        },
    )
    talks_response: tuple[int, Any] = (200, {"talks": [{"id": "t1", "status": "done"}]})
    requests: list[httpx.Request] = field(default_factory=list)
    fetch_times: list[float] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path
        if method == "POST" and path == "/images":
            return json_response(*self.image_response)
        if method == "POST" and path == "/audios":
            return json_response(*self.audio_response)
        if method == "POST" and path in {"/talks", "/clips"}:
            return json_response(*self.submit_response)
        if method == "GET" and path == "/clips/presenters":
            return json_response(*self.presenters_response)
        if method == "GET" and path == "/talks":
            return json_response(*self.talks_response)
        if method == "GET" and (path.startswith("/talks/") or path.startswith("/clips/")):
            if self.clock is not None:
                self.fetch_times.append(self.clock.now)
            status = self.job_statuses.pop(0) if len(self.job_statuses) > 1 else self.job_statuses[0]
            return json_response(*status)
        return json_response(404, {"kind": "NotFoundError", "description": f"{method} {path}"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self) -> list[tuple[str, str]]:
        return [(request.method, request.url.path) for request in self.requests]

    def status_fetches(self) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == "GET"
            and request.url.path.count("/") == 2
            and not request.url.path.endswith("/presenters")
        ]

    def json_body(self, method: str, path: str) -> Any:
        for request in self.requests:
            if request.method == method and request.url.path == path:
                return json.loads(request.content)
        raise AssertionError(f"No {method} {path} request recorded")


@dataclass
class FakeMediaHost:
    """Serves remote media references used as client inputs."""

    files: dict[str, bytes] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        data = self.files.get(str(request.url))
        if data is None:
            return httpx.Response(404)
        return httpx.Response(200, content=data)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def multipart_part(request: httpx.Request) -> tuple[str, str, bytes]:
    """Return ``(field_name, filename, data)`` of a single-part upload."""

    content_type = request.headers["Content-Type"]
    boundary = content_type.split("boundary=", 1)[1].encode("ascii")
    part = request.content.split(b"--" + boundary)[1]
    headers, _, body = part.partition(b"\r\n\r\n")
    disposition = headers.decode("utf-8")
    field_name = disposition.split('name="', 1)[1].split('"', 1)[0]
    filename = disposition.split('filename="', 1)[1].split('"', 1)[0]
    return field_name, filename, body[: -len(b"\r\n")]


