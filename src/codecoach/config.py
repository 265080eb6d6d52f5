"""Environment-based configuration.

Settings is constructed once at start-up and handed explicitly to the
clients, orchestrator and controller; pipeline code never reads the
environment itself.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from codecoach.constants import DEFAULT_METRIC_KEYS

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_PATH = (
    Path(__file__).resolve().parent / "content" / "lint_content.yaml"
)


class Settings(BaseSettings):
    """Reads from .env file and environment variables."""

    # Quality service (SonarQube-compatible)
    sonarqube_url: str = "http://localhost:9000"
    sonarqube_token: str = ""
    sonarqube_timeout_seconds: float = 10.0
    sonarqube_settle_seconds: float = 3.0
    # 0 = no status polling after the settling delay
    sonarqube_poll_deadline_seconds: float = 0.0
    sonarqube_metric_keys: Annotated[list[str], NoDecode] = list(
        DEFAULT_METRIC_KEYS
    )
    sonarqube_delete_projects: bool = True

    # Execution service (Judge0-compatible)
    judge0_url: str = "https://ce.judge0.com"
    judge0_timeout_seconds: float = 10.0

    # Files
    temp_dir: Path | None = None  # None = system temp directory
    content_path: Path = DEFAULT_CONTENT_PATH
    log_dir: Path = Path("logs")

    # Logging
    log_level: str = "INFO"

    # API
    api_key: str = ""
    cors_origins: str = "http://localhost:5173"

    @field_validator("sonarqube_url", "judge0_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("sonarqube_metric_keys", mode="before")
    @classmethod
    def _parse_metric_keys(cls, v: Any) -> Any:
        """Accept comma-separated string or JSON array."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("sonarqube_metric_keys")
    @classmethod
    def _validate_metric_keys(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError(
                "sonarqube_metric_keys must contain at least one metric"
            )
        seen: set[str] = set()
        dupes: list[str] = []
        for key in v:
            if key in seen:
                dupes.append(key)
            seen.add(key)
        if dupes:
            logger.warning(
                "Duplicate metrics in SONARQUBE_METRIC_KEYS: %s",
                ", ".join(dupes),
            )
        return v

    @field_validator(
        "sonarqube_settle_seconds", "sonarqube_poll_deadline_seconds"
    )
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("delays must be >= 0")
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        return [
            o.strip() for o in self.cors_origins.split(",") if o.strip()
        ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "",
        "extra": "ignore",
    }
