"""Tests for the Python heuristic rules."""

from __future__ import annotations

import pytest

from codecoach.constants import ClassificationKey, Language, Severity
from codecoach.diagnostics.schemas import SourceDocument
from codecoach.lint.python_rules import (
    check_missing_block_colons,
    check_unclosed_print,
    check_unterminated_strings,
    has_unbalanced_quotes,
    lacks_block_colon,
    unmatched_open_parens,
)


def _doc(text: str) -> SourceDocument:
    return SourceDocument(text=text, language=Language.PYTHON)


class TestUnmatchedOpenParens:
    def test_balanced(self) -> None:
        assert unmatched_open_parens("f(g(x))") == []

    def test_reports_offsets_left_open(self) -> None:
        assert unmatched_open_parens("f(g(x)") == [1]

    def test_stray_closer_is_ignored(self) -> None:
        assert unmatched_open_parens(")(") == [1]


class TestUnclosedPrint:
    def test_flags_print_token(self) -> None:
        found = check_unclosed_print(_doc("print('hi'"))
        assert len(found) == 1
        diag = found[0]
        assert diag.classification == ClassificationKey.SYNTAX_ERROR
        assert diag.severity == Severity.ERROR
        assert (diag.range_start, diag.range_end) == (0, 6)
        assert diag.source_line == 1

    def test_closed_print_is_clean(self) -> None:
        assert check_unclosed_print(_doc("print('hi')")) == []

    def test_inner_call_closes_but_print_does_not(self) -> None:
        found = check_unclosed_print(_doc("x = 1\nprint(len(x)\n"))
        assert len(found) == 1
        assert (found[0].range_start, found[0].range_end) == (6, 12)
        assert found[0].source_line == 2

    def test_only_the_unclosed_call_is_flagged(self) -> None:
        found = check_unclosed_print(_doc("print(a)\nprint(b"))
        assert [d.source_line for d in found] == [2]
        assert found[0].range_start == 9

    def test_other_unclosed_paren_does_not_blame_print(self) -> None:
        assert check_unclosed_print(_doc("foo(\nprint(x)")) == []

    def test_identifier_containing_print_is_ignored(self) -> None:
        assert check_unclosed_print(_doc("sprint(x")) == []


class TestUnterminatedStrings:
    @pytest.mark.parametrize(
        "line", ["x = 'abc", 'x = "abc', "a = '''", "s = 'it's'"]
    )
    def test_odd_quote_count(self, line: str) -> None:
        assert has_unbalanced_quotes(line)

    @pytest.mark.parametrize("line", ["x = 'abc'", 'x = "a" + "b"', ""])
    def test_even_quote_count(self, line: str) -> None:
        assert not has_unbalanced_quotes(line)

    def test_one_diagnostic_per_offending_line(self) -> None:
        text = "x = 'abc\ny = \"ok\"\nz = ''' + 'q'"
        found = check_unterminated_strings(_doc(text))
        assert [d.source_line for d in found] == [1, 3]
        lines = text.split("\n")
        for diag in found:
            assert diag.classification == ClassificationKey.UNTERMINATED_STRING
            line = lines[diag.source_line - 1]  # type: ignore[operator]
            assert diag.range_end - diag.range_start == len(line)
            assert text[diag.range_start : diag.range_end] == line


class TestMissingBlockColon:
    @pytest.mark.parametrize(
        "line",
        [
            "if x > 1",
            "    for i in range(3)",
            "while True",
            "def main()",
            "class Foo",
        ],
    )
    def test_block_opener_without_colon(self, line: str) -> None:
        assert lacks_block_colon(line)

    @pytest.mark.parametrize(
        "line",
        [
            "if x > 1:",
            "define = 3",
            "iffy = 1",
            "if",
            "print('if x')",
            "else",
            "",
        ],
    )
    def test_not_flagged(self, line: str) -> None:
        assert not lacks_block_colon(line)

    def test_spans_full_line_including_indent(self) -> None:
        text = "x = 1\n    if x\n        pass"
        found = check_missing_block_colons(_doc(text))
        assert len(found) == 1
        diag = found[0]
        assert diag.classification == ClassificationKey.MISSING_BLOCK_COLON
        assert diag.source_line == 2
        assert text[diag.range_start : diag.range_end] == "    if x"
