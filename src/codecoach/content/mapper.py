"""Attach educational content to diagnostics, one entry per key."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from codecoach.constants import ClassificationKey
from codecoach.diagnostics.schemas import (
    Diagnostic,
    EducationalContent,
    EducationalContentEntry,
)


def map_diagnostics_to_content(
    diagnostics: Iterable[Diagnostic],
    table: Mapping[ClassificationKey, EducationalContent],
) -> list[EducationalContentEntry]:
    """First diagnostic per key wins; keys without content are skipped.

    Output keeps first-seen order rather than ranking by severity.
    """
    seen: set[ClassificationKey] = set()
    entries: list[EducationalContentEntry] = []
    for diagnostic in diagnostics:
        key = diagnostic.classification
        if key in seen:
            continue
        seen.add(key)
        content = table.get(key)
        if content is None:
            continue
        entries.append(
            EducationalContentEntry(
                key=key,
                severity=diagnostic.severity,
                line=diagnostic.source_line,
                title=content.title,
                explanation=content.explanation,
                example=content.example,
                fix=content.fix,
            )
        )
    return entries
