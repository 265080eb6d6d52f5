"""Local lint engine: runs every rule for the document's language."""

from __future__ import annotations

import logging

from codecoach.constants import Language
from codecoach.diagnostics.schemas import Diagnostic, SourceDocument
from codecoach.lint.javascript_rules import JAVASCRIPT_RULES
from codecoach.lint.python_rules import PYTHON_RULES
from codecoach.lint.rules import LintRule

logger = logging.getLogger(__name__)

RULESETS: dict[Language, tuple[LintRule, ...]] = {
    Language.PYTHON: PYTHON_RULES,
    Language.JAVASCRIPT: JAVASCRIPT_RULES,
}


def analyze(document: SourceDocument) -> list[Diagnostic]:
    """Lint one document.

    Output order is rule-declaration order, then ascending line
    within a rule. Rules are independent; none suppresses another.
    """
    diagnostics: list[Diagnostic] = []
    for rule in RULESETS.get(document.language, ()):
        found = rule(document)
        if found:
            logger.debug(
                "event=lint_rule_hit rule=%s count=%d",
                rule.name,
                len(found),
            )
        diagnostics.extend(found)
    return diagnostics
