"""Typed application state (replaces untyped getattr() access)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from codecoach.analysis import sonar_client
from codecoach.analysis.orchestrator import AnalysisOrchestrator
from codecoach.config import Settings
from codecoach.constants import ClassificationKey
from codecoach.content.loader import load_content
from codecoach.diagnostics.schemas import EducationalContent
from codecoach.execution import judge0
from codecoach.logger import PipelineLogger
from codecoach.services.pipeline_controller import PipelineController


@dataclass
class AppState:
    """Typed container for app.state attributes."""

    settings: Settings
    sonar: sonar_client.SonarQubeClient
    orchestrator: AnalysisOrchestrator
    controller: PipelineController
    content: Mapping[ClassificationKey, EducationalContent]


def build_state(
    settings: Settings,
    *,
    sonar_http: httpx.AsyncClient,
    judge0_http: httpx.AsyncClient,
) -> AppState:
    """Wire settings, clients, content and controller into one AppState.

    The caller owns both HTTP clients and must close them.
    """
    sonar = sonar_client.SonarQubeClient(sonar_http)
    content = load_content(settings.content_path)
    orchestrator = AnalysisOrchestrator(sonar, settings)
    controller = PipelineController(
        judge0.Judge0Client(judge0_http),
        orchestrator,
        content,
        pipeline_logger=PipelineLogger(
            log_dir=settings.log_dir, level=settings.log_level
        ),
    )
    return AppState(
        settings=settings,
        sonar=sonar,
        orchestrator=orchestrator,
        controller=controller,
        content=content,
    )
