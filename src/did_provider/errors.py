"""Error taxonomy for the D-ID client.

Every failure the client can detect is raised as a subclass of
:class:`DidError`.  The ``retryable`` flag tells queue-based callers whether
repeating the same call later may succeed or whether the request itself is
at fault.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .models import Job

__all__ = [
    "DidError",
    "ConfigurationError",
    "TransportError",
    "RemoteError",
    "UploadFailedError",
    "SubmissionFailedError",
    "JobFailedError",
    "JobTimeoutError",
    "BadRequestError",
]


class DidError(Exception):
    """Base class for D-ID client failures."""

    retryable: bool = False
    reason: str = "error"


class ConfigurationError(DidError):
    """Raised when the credential or settings are missing or malformed."""

    reason = "configuration"


class TransportError(DidError):
    """Raised when the HTTP exchange itself fails (connection or TLS failure)."""

    retryable = True
    reason = "transport"


class RemoteError(DidError):
    """Raised when the remote API rejects a request."""

    reason = "remote_error"

    def __init__(self, message: str, *, status_code: int, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status_code == 429 or self.status_code >= 500


class UploadFailedError(RemoteError):
    """Raised when an upload response does not carry an asset ``url``."""

    reason = "upload_failed"

    def __init__(self, kind: str, *, status_code: int, body: Any = None) -> None:
        super().__init__(
            f"D-ID {kind} upload failed (status={status_code})",
            status_code=status_code,
            body=body,
        )
        self.kind = kind


class SubmissionFailedError(RemoteError):
    """Raised when a job creation response does not carry an ``id``."""

    reason = "submission_failed"

    def __init__(self, *, status_code: int, body: Any = None) -> None:
        super().__init__(
            f"D-ID job submission failed (status={status_code})",
            status_code=status_code,
            body=body,
        )


class JobFailedError(DidError):
    """Raised when the remote service reports the job as failed."""

    reason = "job_failed"

    def __init__(self, job: "Job") -> None:
        detail = job.error or job.status.value
        super().__init__(f"D-ID job {job.id} failed: {detail}")
        self.job = job


class JobTimeoutError(DidError):
    """Raised when polling exhausts its budget without a ``result_url``."""

    retryable = True
    reason = "timeout"

    def __init__(
        self, job_id: str, *, timeout_seconds: float, last_job: "Job | None" = None
    ) -> None:
        super().__init__(
            f"D-ID job {job_id} did not finish within {timeout_seconds:g}s"
        )
        self.job_id = job_id
        self.timeout_seconds = timeout_seconds
        self.last_job = last_job


class BadRequestError(DidError):
    """Raised when a provider operation receives unusable input."""

    reason = "bad_request"
