"""Structured JSON logger for pipeline cycles, stages and errors."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from codecoach.constants import ERROR_TRUNCATION_CHARS
from codecoach.logging_config import LOG_DATEFMT, LOG_FORMAT

__all__ = ["PipelineLogger", "LOG_FORMAT", "LOG_DATEFMT"]


class PipelineLogger:
    """Structured JSON logger with run_id correlation."""

    def __init__(self, log_dir: Path, level: str = "INFO") -> None:
        self._log_dir = log_dir
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._logger = logging.getLogger("codecoach.pipeline")
        self._logger.setLevel(getattr(logging, level.upper()))

        if not self._logger.handlers:
            handler = logging.FileHandler(log_dir / "pipeline.log")
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    def log_cycle(
        self,
        run_id: str,
        language: str,
        state: str,
        partial: bool,
        duration_ms: float,
        project_key: str | None = None,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "cycle",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "language": language,
                "state": state,
                "partial": partial,
                "project_key": project_key,
                "duration_ms": duration_ms,
            })
        )

    def log_error(
        self,
        run_id: str,
        component: str,
        error: str,
    ) -> None:
        self._logger.error(
            json.dumps({
                "type": "error",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "component": component,
                "error": error[:ERROR_TRUNCATION_CHARS],
            })
        )

    def log_stage(
        self,
        run_id: str,
        stage_name: str,
        status: str,
        duration_ms: float,
        error: str | None = None,
    ) -> None:
        self._logger.info(
            json.dumps({
                "type": "stage",
                "timestamp": datetime.now(UTC).isoformat(),
                "run_id": run_id,
                "stage": stage_name,
                "status": status,
                "duration_ms": duration_ms,
                "error": error,
            })
        )
