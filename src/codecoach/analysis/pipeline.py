"""Fault-isolated async stages with parallel fan-out.

A failing stage never raises: it yields its fallback output and is
marked DEGRADED, so siblings and downstream aggregation keep going.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from codecoach.constants import StageOutcome
from codecoach.resilience.errors import classify_error

logger = logging.getLogger(__name__)


@dataclass
class StageResult[TOutput]:
    """Outcome of a single stage execution."""

    stage_name: str
    output: TOutput
    duration_ms: float
    status: StageOutcome
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == StageOutcome.COMPLETED


@dataclass
class PipelineStage[TInput, TOutput]:
    """A named async stage whose failures degrade to ``fallback()``."""

    name: str
    execute: Callable[[TInput], Awaitable[TOutput]]
    fallback: Callable[[], TOutput]

    async def run(
        self, input_data: TInput
    ) -> StageResult[TOutput]:
        """Execute the stage, capturing timing and errors."""
        start = time.monotonic()
        try:
            output = await self.execute(input_data)
            elapsed = (time.monotonic() - start) * 1000
            return StageResult(
                stage_name=self.name,
                output=output,
                duration_ms=elapsed,
                status=StageOutcome.COMPLETED,
            )
        except Exception as exc:
            elapsed = (time.monotonic() - start) * 1000
            logger.warning(
                "event=stage_degraded stage=%s error_class=%s error=%s",
                self.name,
                classify_error(exc).value,
                exc,
            )
            return StageResult(
                stage_name=self.name,
                output=self.fallback(),
                duration_ms=elapsed,
                status=StageOutcome.DEGRADED,
                error=str(exc) or type(exc).__name__,
            )


@dataclass
class ParallelGroup[TInput]:
    """Run multiple stages concurrently on the same input."""

    name: str
    stages: list[PipelineStage[TInput, Any]] = field(
        default_factory=lambda: list[PipelineStage[Any, Any]]()
    )

    async def execute(
        self, input_data: TInput
    ) -> list[StageResult[Any]]:
        """Run all stages concurrently; results keep declaration order.

        Stages never raise (see PipelineStage.run), so one stage's
        failure cannot cancel or block its siblings.
        """
        if not self.stages:
            return []
        results = await asyncio.gather(
            *(stage.run(input_data) for stage in self.stages)
        )
        return list(results)
