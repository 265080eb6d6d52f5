"""Thin async client for a SonarQube-compatible quality service.

Every call goes through a per-service circuit breaker. Only upstream
failures (transport errors, timeouts, 5xx) count against it; a 4xx such
as the project-exists conflict says nothing about service health.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, cast

import httpx
from circuitbreaker import (  # pyright: ignore[reportUnknownVariableType]
    CircuitBreaker,
    CircuitBreakerError,
)

from codecoach.config import Settings
from codecoach.constants import (
    CB_SONAR_FAILURE_THRESHOLD,
    CB_SONAR_RECOVERY_TIMEOUT,
    SONAR_ISSUE_PAGE_SIZE,
    SONAR_PENDING_TASK_STATUSES,
)
from codecoach.diagnostics.schemas import RemoteIssue
from codecoach.resilience.errors import is_upstream_failure

logger = logging.getLogger(__name__)


def _is_upstream_failure(
    thrown_type: type, thrown_value: BaseException
) -> bool:
    """Failure predicate handed to CircuitBreaker(expected_exception=...)."""
    return isinstance(thrown_value, Exception) and is_upstream_failure(
        thrown_value
    )


# One breaker per service base URL, shared by every client instance
# pointing at it.
_breaker_registry: dict[str, CircuitBreaker] = {}  # pyright: ignore[reportUnknownVariableType]


def _get_breaker(base_url: str) -> CircuitBreaker:  # pyright: ignore[reportUnknownParameterType]
    """Get or create the circuit breaker for a quality service URL."""
    if base_url not in _breaker_registry:
        _breaker_registry[base_url] = CircuitBreaker(  # pyright: ignore[reportUnknownMemberType]
            failure_threshold=CB_SONAR_FAILURE_THRESHOLD,
            recovery_timeout=CB_SONAR_RECOVERY_TIMEOUT,
            expected_exception=_is_upstream_failure,
            name=f"sonarqube_{base_url}",
        )
    return _breaker_registry[base_url]


def build_http_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """HTTP client with token basic-auth (token as username, empty password)."""
    return httpx.AsyncClient(
        base_url=settings.sonarqube_url,
        auth=httpx.BasicAuth(settings.sonarqube_token, ""),
        timeout=settings.sonarqube_timeout_seconds,
        transport=transport,
    )


def _json_object(response: httpx.Response) -> dict[str, Any]:
    """Decode a response body that must be a JSON object."""
    body = response.json()
    if not isinstance(body, dict):
        msg = (
            f"expected a JSON object from {response.request.url.path},"
            f" got {type(body).__name__}"
        )
        raise ValueError(msg)
    return cast(dict[str, Any], body)


class SonarQubeClient:
    """The quality-service calls the orchestrator needs, one method each."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http
        self._breaker = _get_breaker(str(http.base_url))

    @property
    def base_url(self) -> str:
        return str(self._http.base_url).rstrip("/")

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        breaker = self._breaker
        if breaker.opened:  # pyright: ignore[reportUnknownMemberType]
            raise CircuitBreakerError(breaker)  # pyright: ignore[reportUnknownArgumentType]
        with breaker:  # pyright: ignore[reportUnknownMemberType]
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
        return response

    async def create_project(self, project_key: str) -> None:
        await self._request(
            "POST",
            "/api/projects/create",
            params={"project": project_key, "name": project_key},
        )
        logger.info("event=project_created project=%s", project_key)

    async def submit_source(
        self, project_key: str, source_file: Path, extension: str
    ) -> None:
        code = source_file.read_text(encoding="utf-8")
        await self._request(
            "POST",
            "/api/sources/raw",
            params={
                "project": project_key,
                "file": f"{project_key}:src/code.{extension}",
            },
            content=code.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        logger.info(
            "event=source_submitted project=%s bytes=%d",
            project_key,
            len(code),
        )

    async def pending_tasks(self, project_key: str) -> int:
        """Number of queued or running background tasks for the project."""
        response = await self._request(
            "GET",
            "/api/ce/component",
            params={"component": project_key},
        )
        body = _json_object(response)
        queue = body.get("queue") or []
        current = body.get("current") or {}
        if not isinstance(queue, list) or not isinstance(current, dict):
            msg = "malformed task status payload"
            raise ValueError(msg)
        pending = len(cast(list[Any], queue))
        status = str(cast(dict[str, Any], current).get("status", ""))
        if status in SONAR_PENDING_TASK_STATUSES:
            pending += 1
        return pending

    async def search_issues(self, project_key: str) -> list[RemoteIssue]:
        response = await self._request(
            "GET",
            "/api/issues/search",
            params={
                "projectKeys": project_key,
                "ps": SONAR_ISSUE_PAGE_SIZE,
            },
        )
        body = _json_object(response)
        raw: list[dict[str, Any]] = body.get("issues") or []
        issues = [RemoteIssue.from_api(r) for r in raw]
        logger.info(
            "event=issues_fetched project=%s count=%d",
            project_key,
            len(issues),
        )
        return issues

    async def get_measures(
        self, project_key: str, metric_keys: list[str]
    ) -> dict[str, str]:
        response = await self._request(
            "GET",
            "/api/measures/component",
            params={
                "component": project_key,
                "metricKeys": ",".join(metric_keys),
            },
        )
        component: dict[str, Any] = (
            _json_object(response).get("component") or {}
        )
        measures: dict[str, str] = {}
        for m in component.get("measures") or []:
            metric = m.get("metric")
            if metric is None or "value" not in m:
                continue
            measures[str(metric)] = str(m["value"])
        return measures

    async def delete_project(self, project_key: str) -> None:
        await self._request(
            "POST",
            "/api/projects/delete",
            params={"project": project_key},
        )
        logger.info("event=project_deleted project=%s", project_key)

    async def system_status(self) -> dict[str, str]:
        response = await self._request("GET", "/api/system/status")
        body = _json_object(response)
        return {
            "status": str(body.get("status", "")),
            "version": str(body.get("version", "")),
        }
