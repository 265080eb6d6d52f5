"""Request/response schemas for the HTTP API."""

from typing import Any

from pydantic import BaseModel, Field


class CodeRequest(BaseModel):
    """Request body for POST /api/lint and POST /api/analyze.

    Fields are optional at the schema level so a missing value is
    reported as an input error (400) rather than a validation error.
    """

    code: str | None = Field(default=None, max_length=1_000_000)
    language: str | None = None


class RunRequest(CodeRequest):
    """Request body for POST /api/run."""

    stdin: str = Field(default="", max_length=100_000)


class ErrorResponse(BaseModel):
    """Body returned when a request fails before or during analysis."""

    success: bool = False
    error: str


class LintResponse(BaseModel):
    """Local diagnostics plus the content they map to."""

    diagnostics: list[dict[str, Any]]
    content: list[dict[str, Any]]
