"""Transient data objects exchanged with the D-ID API."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class JobStatus(str, Enum):
    """Lifecycle states reported by ``/talks/{id}`` and ``/clips/{id}``."""

    CREATED = "created"
    STARTED = "started"
    DONE = "done"
    ERROR = "error"
    REJECTED = "rejected"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "JobStatus":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


class JobKind(str, Enum):
    """Remote job family: talks are image-driven, clips presenter-driven."""

    TALK = "talk"
    CLIP = "clip"

    @property
    def collection(self) -> str:
        return "talks" if self is JobKind.TALK else "clips"


class Expression(str, Enum):
    """Driver expressions accepted by the remote service."""

    NEUTRAL = "neutral"
    HAPPY = "happy"
    SURPRISED = "surprised"
    SERIOUS = "serious"
    ANGRY = "angry"
    SAD = "sad"

    @classmethod
    def coerce(cls, value: "Expression | str") -> "Expression":
        """Return the enum member for ``value`` or raise ``ValueError``."""

        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(f"Unsupported expression '{value}' (allowed: {allowed})") from None


@dataclass(slots=True, frozen=True)
class Asset:
    """Remotely hosted media file returned by ``/images`` or ``/audios``."""

    url: str


@dataclass(slots=True, frozen=True)
class Presenter:
    """Stock avatar identity usable in place of a caller-supplied image."""

    presenter_id: str
    name: str = ""
    owner: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Presenter":
        return cls(
            presenter_id=str(data.get("presenter_id") or ""),
            name=str(data.get("name") or ""),
            owner=str(data.get("owner_id") or data.get("owner") or ""),
            raw=dict(data),
        )


@dataclass(slots=True, frozen=True)
class Job:
    """Snapshot of a remote generation job.

    Instances are only ever built from remote responses; a newer state is
    obtained by fetching the job again.
    """

    id: str
    status: JobStatus = JobStatus.CREATED
    result_url: str | None = None
    kind: JobKind = JobKind.TALK
    error: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.result_url)

    @property
    def is_failed(self) -> bool:
        return self.status in {JobStatus.ERROR, JobStatus.REJECTED}

    @classmethod
    def from_payload(cls, data: Mapping[str, Any], *, kind: JobKind = JobKind.TALK) -> "Job":
        error = data.get("error")
        if isinstance(error, Mapping):
            error = error.get("description") or error.get("kind") or str(dict(error))
        return cls(
            id=str(data.get("id") or ""),
            status=JobStatus.parse(data.get("status") or JobStatus.CREATED.value),
            result_url=data.get("result_url") or None,
            kind=kind,
            error=str(error) if error else None,
            raw=dict(data),
        )


__all__ = ["Asset", "Expression", "Job", "JobKind", "JobStatus", "Presenter"]
