"""Conversion between (line, column) positions and absolute offsets."""

from __future__ import annotations

from bisect import bisect_right


def offset_of_line_start(text: str, line_index: int) -> int:
    """Absolute offset of the first character of zero-based ``line_index``.

    Sums the lengths of all preceding lines plus one per newline.
    Raises IndexError when the line does not exist.
    """
    lines = text.split("\n")
    if not 0 <= line_index < len(lines):
        msg = f"line {line_index} out of range (0..{len(lines) - 1})"
        raise IndexError(msg)
    return sum(len(line) + 1 for line in lines[:line_index])


class PositionIndex:
    """Line-start table for one document, built once in linear time.

    Lines are split on ``\\n`` only, so a ``\\r`` before the newline
    stays part of its line, matching what the editor reports.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._lines = text.split("\n")
        starts: list[int] = []
        offset = 0
        for line in self._lines:
            starts.append(offset)
            offset += len(line) + 1
        self._starts = starts

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_start(self, line_index: int) -> int:
        if not 0 <= line_index < len(self._starts):
            msg = (
                f"line {line_index} out of range "
                f"(0..{len(self._starts) - 1})"
            )
            raise IndexError(msg)
        return self._starts[line_index]

    def line_span(self, line_index: int) -> tuple[int, int]:
        """(start, end) offsets covering the whole line, newline excluded."""
        start = self.line_start(line_index)
        return start, start + len(self._lines[line_index])

    def offset_of(self, line_index: int, column: int) -> int:
        start, end = self.line_span(line_index)
        if not 0 <= column <= end - start:
            msg = f"column {column} out of range on line {line_index}"
            raise IndexError(msg)
        return start + column

    def line_of(self, offset: int) -> int:
        """Zero-based line containing ``offset``."""
        if not 0 <= offset <= len(self._text):
            msg = f"offset {offset} out of range (0..{len(self._text)})"
            raise IndexError(msg)
        return bisect_right(self._starts, offset) - 1

    def position_of(self, offset: int) -> tuple[int, int]:
        """(line, column) for an absolute offset."""
        line = self.line_of(offset)
        return line, offset - self._starts[line]
