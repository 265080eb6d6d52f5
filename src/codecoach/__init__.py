"""Beginner-friendly diagnostics for code written in an embedded editor."""

__version__ = "0.1.0"
