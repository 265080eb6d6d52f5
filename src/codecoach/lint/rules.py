"""Named lint rules composed by concatenation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from codecoach.diagnostics.schemas import Diagnostic, SourceDocument

type RuleCheck = Callable[[SourceDocument], list[Diagnostic]]


@dataclass(frozen=True)
class LintRule:
    """A heuristic check over one document.

    ``check`` must be pure and must not depend on other rules' output.
    """

    name: str
    check: RuleCheck

    def __call__(self, document: SourceDocument) -> list[Diagnostic]:
        return self.check(document)
