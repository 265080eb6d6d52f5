"""Lint, analyze and run endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from codecoach.api.app_state import AppState
from codecoach.api.dependencies import get_app_state
from codecoach.api.schemas import CodeRequest, LintResponse, RunRequest
from codecoach.constants import LOG_PREVIEW_CHARS
from codecoach.content.mapper import map_diagnostics_to_content
from codecoach.diagnostics.schemas import SourceDocument
from codecoach.lint.engine import analyze as lint_document
from codecoach.resilience.errors import InputError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["diagnostics"])


def _input_error(exc: InputError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": str(exc)},
    )


@router.post("/lint", response_model=None)
async def lint(
    body: CodeRequest,
    state: AppState = Depends(get_app_state),
) -> LintResponse | JSONResponse:
    """Local heuristic diagnostics; never touches a remote service."""
    try:
        document = SourceDocument.from_request(body.code, body.language)
    except InputError as exc:
        return _input_error(exc)
    diagnostics = lint_document(document)
    content = map_diagnostics_to_content(diagnostics, state.content)
    return LintResponse(
        diagnostics=[d.to_dict() for d in diagnostics],
        content=[c.to_dict() for c in content],
    )


@router.post("/analyze", response_model=None)
async def analyze(
    body: CodeRequest,
    state: AppState = Depends(get_app_state),
) -> JSONResponse:
    """Remote quality analysis: {success, issues, measures, stats, error?}."""
    try:
        document = SourceDocument.from_request(body.code, body.language)
    except InputError as exc:
        return _input_error(exc)

    logger.info(
        "event=analyze_request language=%s preview=%r",
        document.language.value,
        document.text[:LOG_PREVIEW_CHARS],
    )
    report = await state.orchestrator.analyze(document)
    return JSONResponse(
        status_code=200 if report.success else 500,
        content=report.to_dict(),
    )


@router.post("/run", response_model=None)
async def run(
    body: RunRequest,
    state: AppState = Depends(get_app_state),
) -> JSONResponse:
    """Full cycle: execute, analyze, classify and map to content."""
    try:
        document = SourceDocument.from_request(body.code, body.language)
    except InputError as exc:
        return _input_error(exc)

    result = await state.controller.run(document, stdin=body.stdin)
    return JSONResponse(content=result.to_dict())
