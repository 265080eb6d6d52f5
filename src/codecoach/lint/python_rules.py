"""Heuristic line-scan rules for Python sources.

These are deliberately conservative: a teaching tool loses trust faster
through false alarms than through missed errors, so each rule only
fires on patterns a beginner almost certainly did not intend.
"""

from __future__ import annotations

import re

from codecoach.constants import ClassificationKey, Severity
from codecoach.diagnostics.schemas import Diagnostic, SourceDocument
from codecoach.lint.positions import PositionIndex
from codecoach.lint.rules import LintRule

_PRINT_CALL = re.compile(r"\bprint\(")
_BLOCK_OPENER = re.compile(r"(?:if|for|while|def|class)\s+\S")

PRINT_TOKEN_LENGTH = len("print(")


def unmatched_open_parens(text: str) -> list[int]:
    """Offsets of every ``(`` left open, found with one stack pass."""
    stack: list[int] = []
    for offset, char in enumerate(text):
        if char == "(":
            stack.append(offset)
        elif char == ")" and stack:
            stack.pop()
    return stack


def has_unbalanced_quotes(line: str) -> bool:
    """True when a line holds an odd number of ``'`` or of ``"``."""
    return line.count("'") % 2 != 0 or line.count('"') % 2 != 0


def lacks_block_colon(line: str) -> bool:
    """True for ``if x``-style block openers that don't end in ``:``."""
    trimmed = line.strip()
    return (
        _BLOCK_OPENER.match(trimmed) is not None
        and not trimmed.endswith(":")
    )


def check_unclosed_print(document: SourceDocument) -> list[Diagnostic]:
    """``print(`` calls whose opening parenthesis is never closed."""
    text = document.text
    open_parens = set(unmatched_open_parens(text))
    if not open_parens:
        return []

    index = PositionIndex(text)
    diagnostics: list[Diagnostic] = []
    for match in _PRINT_CALL.finditer(text):
        paren = match.end() - 1
        if paren not in open_parens:
            continue
        diagnostics.append(
            Diagnostic(
                classification=ClassificationKey.SYNTAX_ERROR,
                severity=Severity.ERROR,
                range_start=match.start(),
                range_end=match.start() + PRINT_TOKEN_LENGTH,
                message="Syntax error: missing closing parenthesis.",
                source_line=index.line_of(match.start()) + 1,
            )
        )
    return diagnostics


def check_unterminated_strings(
    document: SourceDocument,
) -> list[Diagnostic]:
    index = PositionIndex(document.text)
    diagnostics: list[Diagnostic] = []
    for line_no, line in enumerate(index.lines):
        if not has_unbalanced_quotes(line):
            continue
        start, end = index.line_span(line_no)
        diagnostics.append(
            Diagnostic(
                classification=ClassificationKey.UNTERMINATED_STRING,
                severity=Severity.ERROR,
                range_start=start,
                range_end=end,
                message="Unclosed quotes.",
                source_line=line_no + 1,
            )
        )
    return diagnostics


def check_missing_block_colons(
    document: SourceDocument,
) -> list[Diagnostic]:
    index = PositionIndex(document.text)
    diagnostics: list[Diagnostic] = []
    for line_no, line in enumerate(index.lines):
        if not lacks_block_colon(line):
            continue
        start, end = index.line_span(line_no)
        diagnostics.append(
            Diagnostic(
                classification=ClassificationKey.MISSING_BLOCK_COLON,
                severity=Severity.ERROR,
                range_start=start,
                range_end=end,
                message="Missing ':' at the end of the line.",
                source_line=line_no + 1,
            )
        )
    return diagnostics


PYTHON_RULES: tuple[LintRule, ...] = (
    LintRule("unclosed_print_call", check_unclosed_print),
    LintRule("unterminated_string", check_unterminated_strings),
    LintRule("missing_block_colon", check_missing_block_colons),
)
