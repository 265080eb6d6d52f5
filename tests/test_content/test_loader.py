"""Tests for loading the educational content table."""

from __future__ import annotations

from pathlib import Path

import pytest

from codecoach.config import DEFAULT_CONTENT_PATH
from codecoach.constants import ClassificationKey
from codecoach.content.loader import load_content

ENTRY = """\
  title: Syntax error
  explanation: Something is off.
  example: |
    print("hi"
  fix: Close the bracket.
"""


def _write(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "content.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_bundled_content_covers_every_key() -> None:
    table = load_content(DEFAULT_CONTENT_PATH)
    assert set(table) == set(ClassificationKey)
    for content in table.values():
        assert content.title
        assert content.explanation
        assert content.example
        assert content.fix


def test_loads_entry(tmp_path: Path) -> None:
    table = load_content(_write(tmp_path, f"syntax_error:\n{ENTRY}"))
    content = table[ClassificationKey.SYNTAX_ERROR]
    assert content.title == "Syntax error"
    assert content.example == 'print("hi"'


def test_table_is_read_only(tmp_path: Path) -> None:
    table = load_content(_write(tmp_path, f"syntax_error:\n{ENTRY}"))
    with pytest.raises(TypeError):
        table[ClassificationKey.CODE_QUALITY] = table[  # type: ignore[index]
            ClassificationKey.SYNTAX_ERROR
        ]


def test_empty_file_gives_empty_table(tmp_path: Path) -> None:
    assert len(load_content(_write(tmp_path, ""))) == 0


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Content file not found"):
        load_content(tmp_path / "nope.yaml")


def test_unknown_key_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Unknown classification key"):
        load_content(_write(tmp_path, f"type_error:\n{ENTRY}"))


def test_missing_field_raises(tmp_path: Path) -> None:
    body = "code_quality:\n  title: Quality\n  explanation: Tidy up.\n"
    with pytest.raises(ValueError, match="missing: example, fix"):
        load_content(_write(tmp_path, body))


def test_non_mapping_entry_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="must be a mapping"):
        load_content(_write(tmp_path, "code_quality: just text\n"))
