"""Error taxonomy and classification for the diagnostic pipeline.

Two concerns live here:
- the pipeline's own exceptions (which failures are fatal vs degraded)
- classification of collaborator errors, used for structured logging
  and to decide which failures count against a circuit breaker
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any

import httpx


class PipelineError(Exception):
    """Base class for errors raised by the diagnostic pipeline."""


class InputError(PipelineError):
    """Request is missing code or language; rejected before any remote call."""


class RegistrationError(PipelineError):
    """Quality service refused to register the project (fatal for the session)."""

    def __init__(
        self, message: str, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamDegraded(PipelineError):
    """A non-fatal remote step failed; the session continues with partial data."""

    def __init__(self, step: str, cause: BaseException) -> None:
        super().__init__(f"{step} failed: {cause}")
        self.step = step
        self.cause = cause


class UnrecognizedExecutionResult(PipelineError):
    """Execution response carried none of stdout, stderr, compile_output."""

    def __init__(self, payload: Any) -> None:
        super().__init__("unrecognized execution result")
        self.payload = payload


class ServiceConnectionError(PipelineError):
    """Network failure talking to an external collaborator."""

    def __init__(self, service: str, cause: BaseException) -> None:
        super().__init__(f"Connection error to {service}: {cause}")
        self.service = service
        self.cause = cause


class ErrorClass(Enum):
    TRANSIENT = "transient"  # 429, connect/read errors
    SERVER = "server"  # 500, 502, 503
    TIMEOUT = "timeout"  # deadline exceeded
    CLIENT = "client"  # 400, 401, 403, 404
    UNKNOWN = "unknown"


def _status_code(error: Exception) -> int | None:
    """Pull an HTTP status from httpx errors or any ``status_code`` attribute."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    status_code = getattr(error, "status_code", None)
    return status_code if isinstance(status_code, int) else None


def classify_error(error: Exception) -> ErrorClass:
    """Classify an error to determine handling strategy.

    Checks structured information first (HTTP status, httpx exception
    types), falls back to string matching for untyped exceptions.
    """
    status_code = _status_code(error)
    if status_code is not None:
        if status_code == 429:
            return ErrorClass.TRANSIENT
        if 400 <= status_code < 500:
            return ErrorClass.CLIENT
        if 500 <= status_code < 600:
            return ErrorClass.SERVER

    if isinstance(
        error, (httpx.TimeoutException, TimeoutError, asyncio.TimeoutError)
    ):
        return ErrorClass.TIMEOUT
    if isinstance(error, httpx.TransportError):
        return ErrorClass.TRANSIENT

    msg = str(error).lower()

    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if "econnrefused" in msg or "connection" in msg:
        return ErrorClass.TRANSIENT

    return ErrorClass.UNKNOWN


_UPSTREAM_FAILURES = frozenset({
    ErrorClass.TRANSIENT,
    ErrorClass.SERVER,
    ErrorClass.TIMEOUT,
})


def is_upstream_failure(error: Exception) -> bool:
    """Return True if the error means the remote service itself is unhealthy.

    Client errors (including the project-exists conflict) say nothing
    about service health and must not trip a circuit breaker.
    """
    return classify_error(error) in _UPSTREAM_FAILURES
