"""Remote code execution through a Judge0-compatible service."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from circuitbreaker import (  # pyright: ignore[reportUnknownVariableType]
    CircuitBreaker,
    CircuitBreakerError,
)

from codecoach.config import Settings
from codecoach.constants import (
    CB_JUDGE0_FAILURE_THRESHOLD,
    CB_JUDGE0_RECOVERY_TIMEOUT,
    JUDGE0_LANGUAGE_IDS,
    ExecutionKind,
)
from codecoach.diagnostics.schemas import ExecutionOutput, SourceDocument
from codecoach.resilience.errors import (
    ServiceConnectionError,
    UnrecognizedExecutionResult,
    is_upstream_failure,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "execution service"

# Checked in order; the first non-empty field wins
_OUTPUT_FIELDS: tuple[tuple[str, ExecutionKind], ...] = (
    ("stdout", ExecutionKind.STDOUT),
    ("stderr", ExecutionKind.STDERR),
    ("compile_output", ExecutionKind.COMPILE_ERROR),
)


def _is_upstream_failure(
    thrown_type: type, thrown_value: BaseException
) -> bool:
    return isinstance(thrown_value, Exception) and is_upstream_failure(
        thrown_value
    )


def parse_submission(payload: Any) -> ExecutionOutput:
    """Pick the output field a learner should see.

    Raises UnrecognizedExecutionResult when none of the expected
    fields carries any text.
    """
    if isinstance(payload, dict):
        for field_name, kind in _OUTPUT_FIELDS:
            value = payload.get(field_name)
            if value:
                return ExecutionOutput(kind=kind, text=str(value))
    raise UnrecognizedExecutionResult(payload)


def build_http_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.judge0_url,
        timeout=settings.judge0_timeout_seconds,
        transport=transport,
    )


class Judge0Client:
    """Submits source for synchronous execution (``wait=true``)."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http
        self._breaker = CircuitBreaker(  # pyright: ignore[reportUnknownMemberType]
            failure_threshold=CB_JUDGE0_FAILURE_THRESHOLD,
            recovery_timeout=CB_JUDGE0_RECOVERY_TIMEOUT,
            expected_exception=_is_upstream_failure,
            name=f"judge0_{http.base_url}",
        )

    async def execute(
        self, document: SourceDocument, stdin: str = ""
    ) -> ExecutionOutput:
        """Run the document and interpret the response.

        Network failures (and an open breaker) raise
        ServiceConnectionError. HTTP error statuses are not failures
        here: their body is interpreted like any other response.
        """
        payload = await self._submit(document, stdin)
        try:
            output = parse_submission(payload)
        except UnrecognizedExecutionResult as exc:
            logger.warning(
                "event=execution_unrecognized keys=%s",
                sorted(exc.payload) if isinstance(exc.payload, dict) else None,
            )
            return ExecutionOutput(
                kind=ExecutionKind.UNRECOGNIZED,
                text=json.dumps(exc.payload, indent=2),
            )
        logger.info(
            "event=execution_complete language=%s kind=%s",
            document.language.value,
            output.kind.value,
        )
        return output

    async def _submit(
        self, document: SourceDocument, stdin: str
    ) -> Any:
        breaker = self._breaker
        try:
            if breaker.opened:  # pyright: ignore[reportUnknownMemberType]
                raise CircuitBreakerError(breaker)  # pyright: ignore[reportUnknownArgumentType]
            with breaker:  # pyright: ignore[reportUnknownMemberType]
                response = await self._http.post(
                    "/submissions",
                    params={"base64_encoded": "false", "wait": "true"},
                    json={
                        "source_code": document.text,
                        "language_id": JUDGE0_LANGUAGE_IDS[
                            document.language
                        ],
                        "stdin": stdin,
                    },
                )
            return response.json()
        except (httpx.TransportError, CircuitBreakerError) as exc:
            raise ServiceConnectionError(SERVICE_NAME, exc) from exc
        except ValueError as exc:
            # Body was not JSON; the service is not answering sanely
            raise ServiceConnectionError(SERVICE_NAME, exc) from exc
