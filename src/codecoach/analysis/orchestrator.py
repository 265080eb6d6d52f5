"""Drive the remote quality service through one analysis session.

Sequence per session:
  1. acquire session (unique project key, isolated temp workspace)
  2. register project (project-exists conflict tolerated; else fatal)
  3. submit source (best-effort)
  4. settle, then optionally poll task status until a deadline
  5. fetch issues and measures concurrently (each degrades to empty)
  6. aggregate stats
  7. release session (remote project + temp workspace) on every path

Only step 2 can fail the session. Nothing is retried here; a caller
that wants fresh data starts a new session.
"""

from __future__ import annotations

import asyncio
import logging
import time

import httpx
from circuitbreaker import CircuitBreakerError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_delay,
    wait_exponential_jitter,
)

from codecoach.analysis.pipeline import ParallelGroup, PipelineStage
from codecoach.analysis.session import analysis_session
from codecoach.analysis.sonar_client import SonarQubeClient
from codecoach.config import Settings
from codecoach.constants import (
    FILE_EXTENSIONS,
    POLL_INITIAL_WAIT,
    POLL_MAX_WAIT,
    SONAR_PROJECT_EXISTS_STATUS,
)
from codecoach.diagnostics.schemas import (
    AnalysisReport,
    AnalysisResult,
    AnalysisSession,
    AnalysisStats,
    RemoteIssue,
    SourceDocument,
)
from codecoach.resilience.errors import (
    RegistrationError,
    UpstreamDegraded,
    classify_error,
)

logger = logging.getLogger(__name__)

STAGE_ISSUES = "issue_search"
STAGE_MEASURES = "measures"

# Module-level so tests can swap in wait_none()
_POLL_WAIT = wait_exponential_jitter(
    initial=POLL_INITIAL_WAIT, max=POLL_MAX_WAIT
)

_REMOTE_ERRORS = (httpx.HTTPError, CircuitBreakerError)


def _still_pending(pending: int) -> bool:
    return pending > 0


class AnalysisOrchestrator:
    """Runs sessions against one quality service; holds no per-session state."""

    def __init__(
        self, client: SonarQubeClient, settings: Settings
    ) -> None:
        self._client = client
        self._settings = settings

    async def analyze(self, document: SourceDocument) -> AnalysisReport:
        """Run one full session and return whatever could be gathered."""
        start = time.monotonic()
        async with analysis_session(
            document,
            self._client,
            temp_root=self._settings.temp_dir,
            delete_remote=self._settings.sonarqube_delete_projects,
        ) as session:
            try:
                await self._register(session)
            except RegistrationError as exc:
                logger.error(
                    "event=registration_failed project=%s status=%s"
                    " error=%s",
                    session.project_key,
                    exc.status_code,
                    exc,
                )
                return AnalysisReport(
                    success=False,
                    project_key=session.project_key,
                    error=str(exc),
                )

            degraded: list[str] = []
            await self._submit(session, document, degraded)
            await self._await_completion(session, degraded)
            issues, measures = await self._fetch(session, degraded)

            result = AnalysisResult(
                issues=issues,
                measures=measures,
                stats=AnalysisStats.from_issues(issues),
                degraded=tuple(degraded),
            )
            logger.info(
                "event=analysis_complete project=%s issues=%d"
                " measures=%d degraded=%d duration_ms=%.0f",
                session.project_key,
                len(issues),
                len(measures),
                len(degraded),
                (time.monotonic() - start) * 1000,
            )
            return AnalysisReport(
                success=True,
                project_key=session.project_key,
                result=result,
            )

    async def _register(self, session: AnalysisSession) -> None:
        try:
            await self._client.create_project(session.project_key)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status != SONAR_PROJECT_EXISTS_STATUS:
                msg = f"project registration failed with HTTP {status}"
                raise RegistrationError(msg, status_code=status) from exc
            logger.info(
                "event=project_exists project=%s", session.project_key
            )
        except _REMOTE_ERRORS as exc:
            msg = f"project registration failed: {exc}"
            raise RegistrationError(msg) from exc
        session.registered = True

    async def _submit(
        self,
        session: AnalysisSession,
        document: SourceDocument,
        degraded: list[str],
    ) -> None:
        try:
            await self._client.submit_source(
                session.project_key,
                session.source_file,
                FILE_EXTENSIONS[document.language],
            )
        except (*_REMOTE_ERRORS, OSError) as exc:
            _note_degraded(degraded, UpstreamDegraded("submit_source", exc))

    async def _await_completion(
        self, session: AnalysisSession, degraded: list[str]
    ) -> None:
        """Fixed settling delay, then optional bounded status polling.

        There is no completion signal from the service, so results may
        still be incomplete after this returns.
        """
        await asyncio.sleep(self._settings.sonarqube_settle_seconds)

        deadline = self._settings.sonarqube_poll_deadline_seconds
        if deadline <= 0:
            return

        retrying = AsyncRetrying(
            stop=stop_after_delay(deadline),
            wait=_POLL_WAIT,
            retry=retry_if_result(_still_pending),
        )
        try:
            await retrying(
                self._client.pending_tasks, session.project_key
            )
        except (RetryError, *_REMOTE_ERRORS, ValueError) as exc:
            _note_degraded(degraded, UpstreamDegraded("await_completion", exc))

    async def _fetch(
        self, session: AnalysisSession, degraded: list[str]
    ) -> tuple[tuple[RemoteIssue, ...], dict[str, str]]:
        group: ParallelGroup[AnalysisSession] = ParallelGroup(
            name="fetch_results",
            stages=[
                PipelineStage(
                    name=STAGE_ISSUES,
                    execute=self._search_issues,
                    fallback=list,
                ),
                PipelineStage(
                    name=STAGE_MEASURES,
                    execute=self._get_measures,
                    fallback=dict,
                ),
            ],
        )
        issues_result, measures_result = await group.execute(session)
        for stage_result in (issues_result, measures_result):
            if not stage_result.ok:
                degraded.append(
                    f"{stage_result.stage_name} failed: {stage_result.error}"
                )
        issues: list[RemoteIssue] = issues_result.output
        measures: dict[str, str] = measures_result.output
        return tuple(issues), measures

    async def _search_issues(
        self, session: AnalysisSession
    ) -> list[RemoteIssue]:
        return await self._client.search_issues(session.project_key)

    async def _get_measures(
        self, session: AnalysisSession
    ) -> dict[str, str]:
        return await self._client.get_measures(
            session.project_key, self._settings.sonarqube_metric_keys
        )


def _note_degraded(degraded: list[str], note: UpstreamDegraded) -> None:
    cause = note.cause
    error_class = (
        classify_error(cause).value
        if isinstance(cause, Exception)
        else "unknown"
    )
    logger.warning(
        "event=upstream_degraded step=%s error_class=%s error=%s",
        note.step,
        error_class,
        cause,
    )
    degraded.append(str(note))
