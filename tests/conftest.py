"""Shared test fixtures: settings, fake services, typed app state."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from tenacity import wait_none

from codecoach.analysis import orchestrator, sonar_client
from codecoach.api.app_state import build_state
from codecoach.config import Settings
from codecoach.main import app
from tests.fakes import (
    JUDGE0_URL,
    SONAR_URL,
    FakeJudge0,
    FakeServices,
    FakeSonarQube,
    fake_services,
)


@pytest.fixture(autouse=True)
def _reset_breakers() -> None:
    """Each test starts with closed circuit breakers."""
    sonar_client._breaker_registry.clear()


@pytest.fixture(autouse=True)
def _disable_poll_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Status polling retries immediately in tests."""
    monkeypatch.setattr(orchestrator, "_POLL_WAIT", wait_none())


def make_settings(tmp_path: Path, **overrides: Any) -> Settings:
    """Settings pointing at the fakes, with no settling delay."""
    values: dict[str, Any] = {
        "sonarqube_url": SONAR_URL,
        "sonarqube_token": "test-token",
        "sonarqube_settle_seconds": 0.0,
        "judge0_url": JUDGE0_URL,
        "temp_dir": tmp_path / "work",
        "log_dir": tmp_path / "logs",
        "api_key": "",
    }
    values.update(overrides)
    return Settings(**values)


def setup_test_app(
    tmp_path: Path,
    *,
    sonar: FakeSonarQube | None = None,
    judge0: FakeJudge0 | None = None,
    **overrides: Any,
) -> FakeServices:
    """Populate ``app.state.typed`` with clients routed to the fakes.

    Lifespan does not run under ASGITransport, so API fixtures call
    this instead. The caller closes the returned services.
    """
    services = fake_services(sonar, judge0)
    settings = make_settings(tmp_path, **overrides)
    app.state.typed = build_state(
        settings,
        sonar_http=services.sonar_http,
        judge0_http=services.judge0_http,
    )
    return services


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def work_dir(settings: Settings) -> Path:
    """Temp root for analysis workspaces; empty once sessions finish."""
    assert settings.temp_dir is not None
    return settings.temp_dir
