"""Frozen dataclasses shared by the linter, orchestrator and content mapper."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any

from codecoach.constants import (
    ClassificationKey,
    ExecutionKind,
    IssueType,
    Language,
    Severity,
)
from codecoach.resilience.errors import InputError


@dataclass(frozen=True)
class SourceDocument:
    """One revision of the learner's code. Never mutated in place."""

    text: str
    language: Language

    @classmethod
    def from_request(
        cls, code: str | None, language: str | None
    ) -> SourceDocument:
        """Validate raw request fields, raising InputError on bad input."""
        if not code or not language:
            msg = "code and language are required"
            raise InputError(msg)
        try:
            lang = Language(language.strip().lower())
        except ValueError:
            msg = (
                f"unsupported language {language!r}; expected one of: "
                f"{', '.join(lang.value for lang in Language)}"
            )
            raise InputError(msg) from None
        try:
            code.encode("utf-8")
        except UnicodeEncodeError:
            msg = "code is not valid UTF-8 text"
            raise InputError(msg) from None
        return cls(text=code, language=lang)


@dataclass(frozen=True)
class Diagnostic:
    """A positioned finding about a span of source text."""

    classification: ClassificationKey
    severity: Severity
    range_start: int
    range_end: int
    message: str
    source_line: int | None = None  # 1-based

    def __post_init__(self) -> None:
        if not 0 <= self.range_start <= self.range_end:
            msg = (
                f"invalid range [{self.range_start}, {self.range_end}]"
            )
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.classification.value,
            "severity": self.severity.value,
            "from": self.range_start,
            "to": self.range_end,
            "message": self.message,
            "line": self.source_line,
        }


def _parse_line(value: object) -> int | None:
    """Issue lines arrive as ints, numeric strings, or not at all."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


@dataclass(frozen=True)
class RemoteIssue:
    """An issue as reported by the quality service's issue search."""

    type: str
    message: str
    severity: str = ""
    line: int | None = None
    rule: str = ""
    key: str = ""

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> RemoteIssue:
        return cls(
            type=str(raw.get("type", "")),
            message=str(raw.get("message", "")),
            severity=str(raw.get("severity", "")),
            line=_parse_line(raw.get("line")),
            rule=str(raw.get("rule", "")),
            key=str(raw.get("key", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "rule": self.rule,
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
            "line": self.line,
        }


@dataclass(frozen=True)
class AnalysisStats:
    """Issue counts by type."""

    total: int = 0
    bugs: int = 0
    vulnerabilities: int = 0
    code_smells: int = 0

    @classmethod
    def from_issues(cls, issues: tuple[RemoteIssue, ...]) -> AnalysisStats:
        return cls(
            total=len(issues),
            bugs=sum(1 for i in issues if i.type == IssueType.BUG),
            vulnerabilities=sum(
                1 for i in issues if i.type == IssueType.VULNERABILITY
            ),
            code_smells=sum(
                1 for i in issues if i.type == IssueType.CODE_SMELL
            ),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "bugs": self.bugs,
            "vulnerabilities": self.vulnerabilities,
            "codeSmells": self.code_smells,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Aggregated issues and measures for one session."""

    issues: tuple[RemoteIssue, ...] = ()
    measures: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    stats: AnalysisStats = field(default_factory=AnalysisStats)
    degraded: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Read-only view over a private copy of the caller's mapping
        object.__setattr__(
            self, "measures", MappingProxyType(dict(self.measures))
        )

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded)


@dataclass(frozen=True)
class AnalysisReport:
    """Orchestrator output: result plus whether the session could be created."""

    success: bool
    project_key: str
    result: AnalysisResult = field(default_factory=AnalysisResult)
    error: str | None = None

    @property
    def partial(self) -> bool:
        return not self.success or self.result.is_degraded

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": self.success,
            "projectKey": self.project_key,
            "issues": [i.to_dict() for i in self.result.issues],
            "measures": dict(self.result.measures),
            "stats": self.result.stats.to_dict(),
            "degraded": list(self.result.degraded),
        }
        if self.error is not None:
            body["error"] = self.error
        return body


@dataclass
class AnalysisSession:
    """Per-request remote analysis state; released on every exit path."""

    project_key: str
    source_file: Path
    workspace: Path
    created_at: datetime
    registered: bool = False


@dataclass(frozen=True)
class EducationalContent:
    """Beginner-facing explanation for one classification key."""

    title: str
    explanation: str
    example: str
    fix: str


@dataclass(frozen=True)
class EducationalContentEntry:
    """Content attached to the first diagnostic seen for a key."""

    key: ClassificationKey
    severity: Severity
    line: int | None
    title: str
    explanation: str
    example: str
    fix: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key.value,
            "severity": self.severity.value,
            "line": self.line,
            "title": self.title,
            "explanation": self.explanation,
            "example": self.example,
            "fix": self.fix,
        }


@dataclass(frozen=True)
class ExecutionOutput:
    """Interpreted response of the execution service."""

    kind: ExecutionKind
    text: str

    @property
    def display(self) -> str:
        """Text as shown in the learner's output pane."""
        if self.kind == ExecutionKind.STDERR:
            return f"Error:\n{self.text}"
        if self.kind == ExecutionKind.COMPILE_ERROR:
            return f"Compilation error:\n{self.text}"
        return self.text

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind.value,
            "text": self.text,
            "display": self.display,
        }
