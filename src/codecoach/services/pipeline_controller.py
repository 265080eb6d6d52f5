"""Run cycle: execute, analyze remotely, classify, map to content.

States per cycle::

    idle -> executing -> analyzing_remote -> classifying -> done
    idle -> executing -> failed

Every cycle is single-pass: a state is never re-entered, and a fresh
PipelineRun is created for each run request. Analysis is attempted
whatever the execution printed; only a connection failure to the
execution service stops the cycle early.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from codecoach.classification.classifier import classify_issues
from codecoach.constants import (
    SHORT_ID_HEX_LENGTH,
    ClassificationKey,
    PipelineState,
    StageProgress,
)
from codecoach.content.mapper import map_diagnostics_to_content
from codecoach.diagnostics.schemas import (
    AnalysisReport,
    Diagnostic,
    EducationalContent,
    EducationalContentEntry,
    ExecutionOutput,
    SourceDocument,
)
from codecoach.lint.engine import analyze as lint_document
from codecoach.logger import PipelineLogger
from codecoach.resilience.errors import ServiceConnectionError
from codecoach.services.events import ProgressCallback, StageEvent

logger = logging.getLogger(__name__)


class CodeExecutor(Protocol):
    async def execute(
        self, document: SourceDocument, stdin: str = ""
    ) -> ExecutionOutput: ...


class QualityAnalyzer(Protocol):
    async def analyze(self, document: SourceDocument) -> AnalysisReport: ...


_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.EXECUTING}),
    PipelineState.EXECUTING: frozenset({
        PipelineState.ANALYZING_REMOTE,
        PipelineState.FAILED,
    }),
    PipelineState.ANALYZING_REMOTE: frozenset({PipelineState.CLASSIFYING}),
    PipelineState.CLASSIFYING: frozenset({PipelineState.DONE}),
    PipelineState.DONE: frozenset(),
    PipelineState.FAILED: frozenset(),
}


@dataclass
class PipelineRun:
    """State and accumulated output of one run cycle."""

    run_id: str
    document: SourceDocument
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(
        default_factory=lambda: [PipelineState.IDLE]
    )
    execution: ExecutionOutput | None = None
    report: AnalysisReport | None = None
    lint: list[Diagnostic] = field(
        default_factory=lambda: list[Diagnostic]()
    )
    diagnostics: list[Diagnostic] = field(
        default_factory=lambda: list[Diagnostic]()
    )
    content: list[EducationalContentEntry] = field(
        default_factory=lambda: list[EducationalContentEntry]()
    )
    error: str | None = None

    def advance(self, target: PipelineState) -> None:
        """Move to ``target``; illegal or repeated transitions raise."""
        if target not in _TRANSITIONS[self.state] or target in self.history:
            msg = f"illegal transition {self.state} -> {target}"
            raise RuntimeError(msg)
        self.state = target
        self.history.append(target)

    @property
    def terminal(self) -> bool:
        return not _TRANSITIONS[self.state]

    @property
    def partial(self) -> bool:
        """Done, but the remote analysis failed or came back degraded."""
        return (
            self.state == PipelineState.DONE
            and self.report is not None
            and self.report.partial
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "runId": self.run_id,
            "state": self.state.value,
            "partial": self.partial,
            "execution": (
                self.execution.to_dict() if self.execution else None
            ),
            "analysis": self.report.to_dict() if self.report else None,
            "lint": [d.to_dict() for d in self.lint],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "content": [c.to_dict() for c in self.content],
            "error": self.error,
        }


class PipelineController:
    """Sequences one run request through every collaborator."""

    def __init__(
        self,
        executor: CodeExecutor,
        analyzer: QualityAnalyzer,
        content: Mapping[ClassificationKey, EducationalContent],
        pipeline_logger: PipelineLogger | None = None,
    ) -> None:
        self._executor = executor
        self._analyzer = analyzer
        self._content = content
        self._pipeline_logger = pipeline_logger

    async def run(
        self,
        document: SourceDocument,
        stdin: str = "",
        on_progress: ProgressCallback | None = None,
    ) -> PipelineRun:
        run = PipelineRun(
            run_id=uuid.uuid4().hex[:SHORT_ID_HEX_LENGTH],
            document=document,
        )
        start = time.monotonic()

        def report(event: StageEvent) -> None:
            if on_progress:
                on_progress(event)

        # Executing
        stage_start = self._enter(run, PipelineState.EXECUTING, report)
        try:
            run.execution = await self._executor.execute(document, stdin)
        except ServiceConnectionError as exc:
            run.advance(PipelineState.FAILED)
            run.error = str(exc)
            logger.error(
                "event=execution_connection_failed run=%s error=%s",
                run.run_id,
                exc.cause,
            )
            self._leave(
                run, PipelineState.EXECUTING, stage_start, report, run.error
            )
            if self._pipeline_logger:
                self._pipeline_logger.log_error(
                    run.run_id, "execution", str(exc)
                )
            self._finish(run, start, report)
            return run
        self._leave(run, PipelineState.EXECUTING, stage_start, report)

        # AnalyzingRemote
        stage_start = self._enter(run, PipelineState.ANALYZING_REMOTE, report)
        run.report = await self._analyzer.analyze(document)
        if not run.report.success:
            run.error = run.report.error
        self._leave(
            run,
            PipelineState.ANALYZING_REMOTE,
            stage_start,
            report,
            run.report.error,
        )

        # Classifying
        stage_start = self._enter(run, PipelineState.CLASSIFYING, report)
        run.diagnostics = classify_issues(
            run.report.result.issues, document
        )
        run.lint = lint_document(document)
        run.content = map_diagnostics_to_content(
            [*run.diagnostics, *run.lint], self._content
        )
        self._leave(run, PipelineState.CLASSIFYING, stage_start, report)

        run.advance(PipelineState.DONE)
        self._finish(run, start, report)
        return run

    def _enter(
        self,
        run: PipelineRun,
        state: PipelineState,
        report: ProgressCallback,
    ) -> float:
        run.advance(state)
        report(StageEvent(state=state, status=StageProgress.RUNNING))
        return time.monotonic()

    def _leave(
        self,
        run: PipelineRun,
        state: PipelineState,
        stage_start: float,
        report: ProgressCallback,
        error: str | None = None,
    ) -> None:
        duration_ms = (time.monotonic() - stage_start) * 1000
        report(
            StageEvent(
                state=state,
                status=StageProgress.ERROR if error else StageProgress.DONE,
                message=error or "",
                duration_ms=duration_ms,
            )
        )
        if self._pipeline_logger:
            self._pipeline_logger.log_stage(
                run.run_id,
                state.value,
                StageProgress.ERROR if error else StageProgress.DONE,
                duration_ms,
                error,
            )

    def _finish(
        self,
        run: PipelineRun,
        start: float,
        report: ProgressCallback,
    ) -> None:
        duration_ms = (time.monotonic() - start) * 1000
        report(
            StageEvent(
                state=run.state,
                status=(
                    StageProgress.ERROR
                    if run.state == PipelineState.FAILED
                    else StageProgress.DONE
                ),
                message=run.error or "",
                duration_ms=duration_ms,
            )
        )
        logger.info(
            "event=cycle_complete run=%s state=%s partial=%s"
            " duration_ms=%.0f",
            run.run_id,
            run.state.value,
            run.partial,
            duration_ms,
        )
        if self._pipeline_logger:
            self._pipeline_logger.log_cycle(
                run.run_id,
                run.document.language.value,
                run.state.value,
                run.partial,
                duration_ms,
                project_key=(
                    run.report.project_key if run.report else None
                ),
            )
