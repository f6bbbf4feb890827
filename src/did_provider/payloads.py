"""Job request bodies and response parsing for ``/talks`` and ``/clips``."""

from __future__ import annotations

from typing import Any

from .errors import RemoteError, SubmissionFailedError
from .models import Expression, Job, JobKind, Presenter
from .transport import TransportResponse


def _expression_value(expression: Expression | str) -> str:
    # Unknown values pass through verbatim; the remote API validates them.
    return expression.value if isinstance(expression, Expression) else str(expression)


def _job_body(audio_url: str, expression: Expression | str) -> dict[str, Any]:
    return {
        "script": {
            "type": "audio",
            "subtitles": False,
            "audio_url": audio_url,
            "reduce_noise": True,
        },
        "config": {
            "stitch": True,
            "driver_expressions": {
                "expressions": [
                    {
                        "start_frame": 0,
                        "expression": _expression_value(expression),
                        "intensity": 1,
                    }
                ]
            },
        },
    }


def build_talk_payload(
    *, source_url: str, audio_url: str, expression: Expression | str = Expression.NEUTRAL
) -> dict[str, Any]:
    """Image-driven job body posted to ``/talks``."""

    return {"source_url": source_url, **_job_body(audio_url, expression)}


def build_clip_payload(
    *, presenter_id: str, audio_url: str, expression: Expression | str = Expression.NEUTRAL
) -> dict[str, Any]:
    """Presenter-driven job body posted to ``/clips``."""

    return {"presenter_id": presenter_id, **_job_body(audio_url, expression)}


def parse_submission(response: TransportResponse, *, kind: JobKind) -> Job:
    body = response.json()
    if not isinstance(body, dict) or not body.get("id"):
        raise SubmissionFailedError(status_code=response.status_code, body=body or response.text)
    return Job.from_payload(body, kind=kind)


def ensure_ok(response: TransportResponse, *, action: str) -> Any:
    """Return the decoded body of a 2xx response, raise :class:`RemoteError` otherwise."""

    body = response.json()
    if not response.ok:
        raise RemoteError(
            f"D-ID {action} failed (status={response.status_code})",
            status_code=response.status_code,
            body=body if body is not None else response.text,
        )
    if body is None:
        raise RemoteError(
            f"D-ID {action} returned a non-JSON body",
            status_code=response.status_code,
            body=response.text,
        )
    return body


def parse_job(response: TransportResponse, *, kind: JobKind) -> Job:
    body = ensure_ok(response, action=f"{kind.value} status fetch")
    if not isinstance(body, dict):
        raise RemoteError(
            f"D-ID {kind.value} status fetch returned an unexpected body",
            status_code=response.status_code,
            body=body,
        )
    return Job.from_payload(body, kind=kind)


def parse_job_list(response: TransportResponse, *, kind: JobKind) -> list[Job]:
    body = ensure_ok(response, action=f"{kind.value} listing")
    items = body.get(kind.collection, []) if isinstance(body, dict) else body
    return [Job.from_payload(item, kind=kind) for item in items or [] if isinstance(item, dict)]


def parse_presenters(response: TransportResponse) -> list[Presenter]:
    body = ensure_ok(response, action="presenter listing")
    items = body.get("presenters", []) if isinstance(body, dict) else body
    presenters = [
        Presenter.from_payload(item) for item in items or [] if isinstance(item, dict)
    ]
    return [presenter for presenter in presenters if presenter.presenter_id]


__all__ = [
    "build_clip_payload",
    "build_talk_payload",
    "ensure_ok",
    "parse_job",
    "parse_job_list",
    "parse_presenters",
    "parse_submission",
]
