"""Map quality-service issues onto the shared ClassificationKey space.

Matching on message substrings ("Unexpected", "undefined") is brittle
against upstream wording changes; it mirrors what the service emits
today. Issues that match no rule are dropped rather than bucketed,
so a learner never sees an explanation for the wrong problem.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from codecoach.constants import (
    REMOTE_SEVERITY_MAP,
    ClassificationKey,
    IssueType,
    Severity,
)
from codecoach.diagnostics.schemas import (
    Diagnostic,
    RemoteIssue,
    SourceDocument,
)
from codecoach.lint.positions import PositionIndex

logger = logging.getLogger(__name__)

# (message substring, key) checked in order for BUG issues
_BUG_MESSAGE_RULES: tuple[tuple[str, ClassificationKey], ...] = (
    ("Unexpected", ClassificationKey.SYNTAX_ERROR),
    ("undefined", ClassificationKey.UNDEFINED_VARIABLE),
)

_TYPE_RULES: dict[str, ClassificationKey] = {
    IssueType.VULNERABILITY: ClassificationKey.SECURITY_ISSUE,
    IssueType.CODE_SMELL: ClassificationKey.CODE_QUALITY,
}


def classify(issue: RemoteIssue) -> ClassificationKey | None:
    """Classification key for an issue, or None when it should be dropped."""
    if issue.type == IssueType.BUG:
        for needle, key in _BUG_MESSAGE_RULES:
            if needle in issue.message:
                return key
        return None
    return _TYPE_RULES.get(issue.type)


def remote_severity(severity: str) -> Severity:
    return REMOTE_SEVERITY_MAP.get(severity.upper(), Severity.WARNING)


def classify_issues(
    issues: Iterable[RemoteIssue], document: SourceDocument
) -> list[Diagnostic]:
    """Convert classifiable issues to diagnostics, preserving order.

    A diagnostic spans the issue's (1-based) line. Issues without a
    usable line get a zero-width range at the start of the document.
    """
    index = PositionIndex(document.text)
    diagnostics: list[Diagnostic] = []
    dropped = 0
    for issue in issues:
        key = classify(issue)
        if key is None:
            dropped += 1
            continue
        start, end = 0, 0
        line = issue.line
        if line is not None and 1 <= line <= index.line_count:
            start, end = index.line_span(line - 1)
        else:
            line = None
        diagnostics.append(
            Diagnostic(
                classification=key,
                severity=remote_severity(issue.severity),
                range_start=start,
                range_end=end,
                message=issue.message,
                source_line=line,
            )
        )
    if dropped:
        logger.debug("event=issues_unclassified count=%d", dropped)
    return diagnostics
