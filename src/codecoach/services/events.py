"""Shared event types for pipeline progress reporting."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from codecoach.constants import STAGE_LABELS, PipelineState, StageProgress


@dataclass(frozen=True)
class StageEvent:
    """Typed event emitted when the controller enters or leaves a state."""

    state: PipelineState
    status: StageProgress
    message: str = ""
    duration_ms: float = 0.0

    @property
    def label(self) -> str:
        """User-friendly display label from STAGE_LABELS."""
        return STAGE_LABELS.get(self.state, self.state.value)


type ProgressCallback = Callable[[StageEvent], None]
