"""Client for the D-ID talking-avatar video API."""

from .async_client import AsyncDidClient
from .client import DidClient
from .core.config import DidSettings
from .errors import (
    BadRequestError,
    ConfigurationError,
    DidError,
    JobFailedError,
    JobTimeoutError,
    RemoteError,
    SubmissionFailedError,
    TransportError,
    UploadFailedError,
)
from .models import Asset, Expression, Job, JobKind, JobStatus, Presenter

__all__ = [
    "AsyncDidClient",
    "Asset",
    "BadRequestError",
    "ConfigurationError",
    "DidClient",
    "DidError",
    "DidSettings",
    "Expression",
    "Job",
    "JobFailedError",
    "JobKind",
    "JobStatus",
    "JobTimeoutError",
    "Presenter",
    "RemoteError",
    "SubmissionFailedError",
    "TransportError",
    "UploadFailedError",
]
