"""Whole-document bracket balance rules for JavaScript sources.

Counting cannot tell which bracket is the culprit, so both rules
report a single diagnostic spanning the entire document.
"""

from __future__ import annotations

from codecoach.constants import ClassificationKey, Severity
from codecoach.diagnostics.schemas import Diagnostic, SourceDocument
from codecoach.lint.rules import LintRule, RuleCheck


def _balance_rule(
    opener: str,
    closer: str,
    key: ClassificationKey,
    label: str,
) -> RuleCheck:
    def check(document: SourceDocument) -> list[Diagnostic]:
        text = document.text
        opened = text.count(opener)
        closed = text.count(closer)
        if opened == closed:
            return []
        return [
            Diagnostic(
                classification=key,
                severity=Severity.ERROR,
                range_start=0,
                range_end=len(text),
                message=(
                    f"Unmatched {label}: {opened} opened, {closed} closed"
                ),
            )
        ]

    return check


check_unmatched_braces = _balance_rule(
    "{", "}", ClassificationKey.UNMATCHED_BRACES, "braces"
)
check_unmatched_parens = _balance_rule(
    "(", ")", ClassificationKey.UNMATCHED_PARENS, "parentheses"
)

JAVASCRIPT_RULES: tuple[LintRule, ...] = (
    LintRule("unmatched_braces", check_unmatched_braces),
    LintRule("unmatched_parens", check_unmatched_parens),
)
