"""Scoped acquisition and release of per-request analysis resources."""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

import httpx
from circuitbreaker import CircuitBreakerError

from codecoach.analysis.sonar_client import SonarQubeClient
from codecoach.constants import (
    FILE_EXTENSIONS,
    PROJECT_KEY_PREFIX,
    SHORT_ID_HEX_LENGTH,
    SOURCE_FILE_STEM,
    Language,
)
from codecoach.diagnostics.schemas import AnalysisSession, SourceDocument

logger = logging.getLogger(__name__)


def make_project_key(language: Language) -> str:
    """Process-unique key: language, nanosecond timestamp, random suffix."""
    suffix = uuid.uuid4().hex[:SHORT_ID_HEX_LENGTH]
    return f"{PROJECT_KEY_PREFIX}-{language.value}-{time.time_ns()}-{suffix}"


def _write_workspace(
    document: SourceDocument, temp_root: Path | None
) -> tuple[Path, Path]:
    if temp_root is not None:
        temp_root.mkdir(parents=True, exist_ok=True)
    workspace = Path(
        tempfile.mkdtemp(prefix=f"{PROJECT_KEY_PREFIX}-", dir=temp_root)
    )
    extension = FILE_EXTENSIONS[document.language]
    source_file = workspace / f"{SOURCE_FILE_STEM}.{extension}"
    try:
        source_file.write_text(document.text, encoding="utf-8")
    except BaseException:
        shutil.rmtree(workspace, ignore_errors=True)
        raise
    return workspace, source_file


@asynccontextmanager
async def analysis_session(
    document: SourceDocument,
    client: SonarQubeClient,
    *,
    temp_root: Path | None = None,
    delete_remote: bool = True,
) -> AsyncIterator[AnalysisSession]:
    """Yield a fresh session; release everything on every exit path.

    The remote project is deleted only if the body marked the session
    as registered. Release failures are logged, never raised, so they
    cannot mask the body's own outcome.
    """
    project_key = make_project_key(document.language)
    workspace, source_file = _write_workspace(document, temp_root)
    session = AnalysisSession(
        project_key=project_key,
        source_file=source_file,
        workspace=workspace,
        created_at=datetime.now(UTC),
    )
    logger.info(
        "event=session_opened project=%s workspace=%s",
        project_key,
        workspace,
    )
    try:
        yield session
    finally:
        if session.registered and delete_remote:
            try:
                await client.delete_project(project_key)
            except (httpx.HTTPError, CircuitBreakerError) as exc:
                logger.warning(
                    "event=project_delete_failed project=%s error=%s",
                    project_key,
                    exc,
                )
        shutil.rmtree(workspace, ignore_errors=True)
        logger.info("event=session_released project=%s", project_key)
