"""Tests for Settings parsing and validators."""

from __future__ import annotations

import logging

import pytest

from codecoach.config import DEFAULT_CONTENT_PATH, Settings
from codecoach.constants import DEFAULT_METRIC_KEYS


class TestMetricKeysParsing:
    def test_default(self) -> None:
        assert Settings().sonarqube_metric_keys == list(DEFAULT_METRIC_KEYS)

    def test_comma_separated_string_parsed_to_list(self) -> None:
        s = Settings(sonarqube_metric_keys="ncloc,bugs")  # type: ignore[arg-type]
        assert s.sonarqube_metric_keys == ["ncloc", "bugs"]

    def test_comma_separated_with_spaces(self) -> None:
        s = Settings(sonarqube_metric_keys=" ncloc , bugs ")  # type: ignore[arg-type]
        assert s.sonarqube_metric_keys == ["ncloc", "bugs"]

    def test_list_passthrough(self) -> None:
        s = Settings(sonarqube_metric_keys=["complexity"])
        assert s.sonarqube_metric_keys == ["complexity"]

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SONARQUBE_METRIC_KEYS", "ncloc,code_smells")
        s = Settings()
        assert s.sonarqube_metric_keys == ["ncloc", "code_smells"]


class TestMetricKeysValidation:
    def test_empty_list_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one metric"):
            Settings(sonarqube_metric_keys=[])

    def test_empty_string_raises(self) -> None:
        with pytest.raises(ValueError, match="at least one metric"):
            Settings(sonarqube_metric_keys="")  # type: ignore[arg-type]

    def test_duplicate_metrics_warn(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="codecoach.config"):
            s = Settings(sonarqube_metric_keys=["ncloc", "ncloc", "bugs"])
        assert "Duplicate metrics in SONARQUBE_METRIC_KEYS" in caplog.text
        assert s.sonarqube_metric_keys == ["ncloc", "ncloc", "bugs"]


class TestServiceSettings:
    def test_trailing_slash_stripped(self) -> None:
        s = Settings(
            sonarqube_url="http://sonar:9000/",
            judge0_url="https://judge0.example//",
        )
        assert s.sonarqube_url == "http://sonar:9000"
        assert s.judge0_url == "https://judge0.example"

    def test_negative_settle_rejected(self) -> None:
        with pytest.raises(ValueError, match=">= 0"):
            Settings(sonarqube_settle_seconds=-1)

    def test_negative_poll_deadline_rejected(self) -> None:
        with pytest.raises(ValueError, match=">= 0"):
            Settings(sonarqube_poll_deadline_seconds=-0.5)

    def test_polling_off_by_default(self) -> None:
        assert Settings().sonarqube_poll_deadline_seconds == 0.0

    def test_default_content_path_exists(self) -> None:
        assert DEFAULT_CONTENT_PATH.is_file()


class TestCorsOrigins:
    def test_split_and_trimmed(self) -> None:
        s = Settings(cors_origins="http://a.test, http://b.test,")
        assert s.cors_origin_list == ["http://a.test", "http://b.test"]
