from __future__ import annotations

import json

import pytest

from did_provider.errors import RemoteError, SubmissionFailedError
from did_provider.models import Expression, JobKind
from did_provider.payloads import (
    build_clip_payload,
    build_talk_payload,
    parse_job,
    parse_job_list,
    parse_presenters,
    parse_submission,
)
from did_provider.transport import TransportResponse


def _response(status_code: int, payload) -> TransportResponse:
    return TransportResponse(status_code=status_code, content=json.dumps(payload).encode())


@pytest.mark.unit
def test_talk_payload_shape() -> None:
    body = build_talk_payload(
        source_url="s3://images/face.png", audio_url="s3://audios/voice.mp3", expression="happy"
    )

    assert body == {
        "source_url": "s3://images/face.png",
        "script": {
            "type": "audio",
            "subtitles": False,
            "audio_url": "s3://audios/voice.mp3",
            "reduce_noise": True,
        },
        "config": {
            "stitch": True,
            "driver_expressions": {
                "expressions": [{"start_frame": 0, "expression": "happy", "intensity": 1}]
            },
        },
    }


@pytest.mark.unit
def test_clip_payload_replaces_source_with_presenter() -> None:
    body = build_clip_payload(
        presenter_id="amy-jcwCkr1grs", audio_url="s3://audios/voice.mp3", expression=Expression.SAD
    )

    assert "source_url" not in body
    assert body["presenter_id"] == "amy-jcwCkr1grs"
    assert body["config"]["driver_expressions"]["expressions"][0]["expression"] == "sad"


@pytest.mark.unit
def test_unknown_expression_passes_through_verbatim() -> None:
    body = build_talk_payload(source_url="s", audio_url="a", expression="smirk")

    assert body["config"]["driver_expressions"]["expressions"][0]["expression"] == "smirk"


@pytest.mark.unit
def test_parse_submission_returns_job() -> None:
    job = parse_submission(_response(201, {"id": "t1", "status": "created"}), kind=JobKind.TALK)

    assert job.id == "t1"
    assert job.result_url is None


@pytest.mark.unit
def test_parse_submission_without_id_raises() -> None:
    with pytest.raises(SubmissionFailedError) as excinfo:
        parse_submission(
            _response(400, {"kind": "ValidationError", "description": "bad audio"}),
            kind=JobKind.TALK,
        )

    assert excinfo.value.status_code == 400
    assert excinfo.value.body["kind"] == "ValidationError"
    assert excinfo.value.retryable is False


@pytest.mark.unit
def test_parse_job_raises_remote_error_on_failure_status() -> None:
    with pytest.raises(RemoteError) as excinfo:
        parse_job(_response(503, {"kind": "ServiceUnavailable"}), kind=JobKind.TALK)

    assert excinfo.value.retryable is True


@pytest.mark.unit
def test_parse_job_list_and_presenters() -> None:
    talks = parse_job_list(_response(200, {"talks": [{"id": "a"}, {"id": "b"}]}), kind=JobKind.TALK)
    presenters = parse_presenters(
        _response(200, {"presenters": [{"presenter_id": "p1", "name": "P"}, {"name": "no id"}]})
    )

    assert [job.id for job in talks] == ["a", "b"]
    assert [presenter.presenter_id for presenter in presenters] == ["p1"]
