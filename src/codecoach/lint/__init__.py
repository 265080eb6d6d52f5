"""Heuristic, parser-free linting for the embedded editor."""

from codecoach.lint.engine import RULESETS, analyze
from codecoach.lint.positions import PositionIndex, offset_of_line_start

__all__ = ["RULESETS", "PositionIndex", "analyze", "offset_of_line_start"]
