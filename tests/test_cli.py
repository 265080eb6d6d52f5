"""Tests for CLI argument parsing and commands."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from codecoach import __version__
from codecoach.analysis import sonar_client
from codecoach.cli import _build_parser, _load_document, main
from codecoach.config import Settings
from codecoach.constants import Language
from codecoach.resilience.errors import InputError
from tests.fakes import FakeSonarQube, sonar_http


class TestArgParser:
    def test_version_flag(self) -> None:
        args = _build_parser().parse_args(["--version"])
        assert args.version is True

    def test_lint_defaults(self) -> None:
        args = _build_parser().parse_args(["lint", "main.py"])
        assert args.command == "lint"
        assert args.file == "main.py"
        assert args.language is None
        assert args.verbose is False

    def test_run_with_options(self) -> None:
        args = _build_parser().parse_args(
            ["run", "app.txt", "-l", "javascript", "--stdin", "5", "-v"]
        )
        assert args.language == "javascript"
        assert args.stdin == "5"
        assert args.verbose is True

    def test_unknown_language_rejected(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["lint", "a.rb", "-l", "ruby"])

    def test_serve_defaults(self) -> None:
        args = _build_parser().parse_args(["serve"])
        assert args.host == "127.0.0.1"
        assert args.port == 5000


class TestLoadDocument:
    def test_language_from_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "app.js"
        path.write_text("let x = 1;", encoding="utf-8")
        doc = _load_document(path, None)
        assert doc.language == Language.JAVASCRIPT
        assert doc.text == "let x = 1;"

    def test_explicit_language_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "snippet.txt"
        path.write_text("print(1)", encoding="utf-8")
        assert _load_document(path, "python").language == Language.PYTHON

    def test_unknown_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "snippet.txt"
        path.write_text("print(1)", encoding="utf-8")
        with pytest.raises(InputError, match="cannot infer language"):
            _load_document(path, None)

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.py"
        path.write_text("", encoding="utf-8")
        with pytest.raises(InputError):
            _load_document(path, None)


class TestMain:
    def test_version(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr("sys.argv", ["codecoach", "--version"])
        main()
        assert capsys.readouterr().out.strip() == f"codecoach {__version__}"

    def test_lint_prints_json(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "broken.py"
        path.write_text("if x print(x", encoding="utf-8")
        monkeypatch.setattr("sys.argv", ["codecoach", "lint", str(path)])
        main()
        body = json.loads(capsys.readouterr().out)
        assert [d["key"] for d in body["diagnostics"]] == [
            "syntax_error",
            "missing_block_colon",
        ]
        assert len(body["content"]) == 2

    def test_missing_file_exits(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(
            "sys.argv", ["codecoach", "lint", str(tmp_path / "nope.py")]
        )
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_analyze_prints_report(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        fake = FakeSonarQube(
            issues=[{"type": "CODE_SMELL", "message": "Rename"}]
        )

        def _client(settings: Settings) -> httpx.AsyncClient:
            return sonar_http(fake)

        monkeypatch.setattr(sonar_client, "build_http_client", _client)
        monkeypatch.setenv("SONARQUBE_SETTLE_SECONDS", "0")
        monkeypatch.setenv("TEMP_DIR", str(tmp_path / "work"))
        path = tmp_path / "main.py"
        path.write_text("x = 1\n", encoding="utf-8")
        monkeypatch.setattr("sys.argv", ["codecoach", "analyze", str(path)])

        main()

        body = json.loads(capsys.readouterr().out)
        assert body["success"] is True
        assert body["stats"]["codeSmells"] == 1
        assert list((tmp_path / "work").iterdir()) == []
