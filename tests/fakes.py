"""In-memory stand-ins for the quality and execution services.

Both fakes are ``httpx.MockTransport`` handlers: they record every
request and answer the way the real services do, unless a test tells
them to fail a path.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx

SONAR_URL = "http://sonar.test"
JUDGE0_URL = "http://judge0.test"


class FakeSonarQube:
    """Answers the quality-service endpoints the orchestrator calls."""

    def __init__(
        self,
        *,
        issues: list[dict[str, Any]] | None = None,
        measures: dict[str, str] | None = None,
        pending: list[int] | None = None,
        pending_default: int = 0,
    ) -> None:
        self.issues = issues or []
        self.measures = (
            measures if measures is not None else {"ncloc": "3"}
        )
        self.pending = list(pending or [])
        self.pending_default = pending_default
        self.statuses: dict[str, int] = {}
        self.connect_errors: set[str] = set()
        self.requests: list[httpx.Request] = []
        self.uploads: dict[str, str] = {}
        self.payloads: dict[str, Any] = {}

    def fail(self, path: str, status: int) -> None:
        """Answer ``path`` with an HTTP error status."""
        self.statuses[path] = status

    def respond(self, path: str, payload: Any) -> None:
        """Answer ``path`` with 200 and an arbitrary JSON payload."""
        self.payloads[path] = payload

    def refuse(self, path: str) -> None:
        """Raise a connection error for ``path``."""
        self.connect_errors.add(path)

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def params_for(self, path: str) -> dict[str, str]:
        for request in self.requests:
            if request.url.path == path:
                return dict(request.url.params)
        msg = f"no request to {path}"
        raise AssertionError(msg)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = dict(request.url.params)

        if path in self.connect_errors:
            raise httpx.ConnectError("connection refused", request=request)
        status = self.statuses.get(path)
        if status is not None:
            return httpx.Response(
                status, json={"errors": [{"msg": f"HTTP {status}"}]}
            )
        if path in self.payloads:
            # json=None would send no body at all
            return httpx.Response(
                200,
                content=json.dumps(self.payloads[path]).encode(),
                headers={"content-type": "application/json"},
            )

        if path == "/api/projects/create":
            return httpx.Response(
                200, json={"project": {"key": params["project"]}}
            )
        if path == "/api/sources/raw":
            self.uploads[params["file"]] = request.content.decode("utf-8")
            return httpx.Response(204)
        if path == "/api/ce/component":
            count = (
                self.pending.pop(0) if self.pending else self.pending_default
            )
            return httpx.Response(
                200,
                json={
                    "queue": [{"id": str(i)} for i in range(count)],
                    "current": {"status": "SUCCESS"},
                },
            )
        if path == "/api/issues/search":
            return httpx.Response(
                200,
                json={"total": len(self.issues), "issues": self.issues},
            )
        if path == "/api/measures/component":
            return httpx.Response(
                200,
                json={
                    "component": {
                        "key": params["component"],
                        "measures": [
                            {"metric": k, "value": v}
                            for k, v in self.measures.items()
                        ],
                    }
                },
            )
        if path == "/api/projects/delete":
            return httpx.Response(204)
        if path == "/api/system/status":
            return httpx.Response(
                200, json={"id": "fake", "version": "10.4", "status": "UP"}
            )
        return httpx.Response(404, json={"errors": [{"msg": "unknown"}]})


class FakeJudge0:
    """Answers ``POST /submissions`` with a canned payload."""

    def __init__(
        self,
        payload: Any = None,
        *,
        status: int = 201,
        text: str | None = None,
        refuse: bool = False,
    ) -> None:
        self.payload = (
            payload if payload is not None else {"stdout": "hello\n"}
        )
        self.status = status
        self.text = text
        self.refuse = refuse
        self.requests: list[httpx.Request] = []

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.refuse:
            raise httpx.ConnectError("connection refused", request=request)
        if self.text is not None:
            return httpx.Response(self.status, text=self.text)
        return httpx.Response(self.status, json=self.payload)


@dataclass
class FakeServices:
    """Both fakes plus the HTTP clients routed to them."""

    sonar: FakeSonarQube
    judge0: FakeJudge0
    sonar_http: httpx.AsyncClient
    judge0_http: httpx.AsyncClient

    async def aclose(self) -> None:
        await self.sonar_http.aclose()
        await self.judge0_http.aclose()


def sonar_http(fake: FakeSonarQube) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=SONAR_URL,
        auth=httpx.BasicAuth("test-token", ""),
        transport=httpx.MockTransport(fake),
    )


def judge0_http(fake: FakeJudge0) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=JUDGE0_URL, transport=httpx.MockTransport(fake)
    )


def fake_services(
    sonar: FakeSonarQube | None = None,
    judge0: FakeJudge0 | None = None,
) -> FakeServices:
    sonar = sonar or FakeSonarQube()
    judge0 = judge0 or FakeJudge0()
    return FakeServices(
        sonar=sonar,
        judge0=judge0,
        sonar_http=sonar_http(sonar),
        judge0_http=judge0_http(judge0),
    )
