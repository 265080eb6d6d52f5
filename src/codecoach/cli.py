"""CLI entry point: ``codecoach lint``, ``analyze``, ``run``, ``serve``."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from codecoach import __version__
from codecoach.config import Settings
from codecoach.constants import EXTENSION_MAP, Language, StageProgress
from codecoach.content.loader import load_content
from codecoach.content.mapper import map_diagnostics_to_content
from codecoach.diagnostics.schemas import SourceDocument
from codecoach.lint.engine import analyze as lint_document
from codecoach.logging_config import setup_logging
from codecoach.resilience.errors import InputError
from codecoach.services.events import StageEvent


def main() -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.version:
        print(f"codecoach {__version__}")
        return

    if args.command is None:
        parser.print_help()
        return

    settings = Settings()

    if args.command == "serve":
        import uvicorn

        setup_logging(settings.log_level)
        uvicorn.run("codecoach.main:app", host=args.host, port=args.port)
        return

    setup_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        document = _load_document(Path(args.file), args.language)
    except (InputError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.command == "lint":
        body = _run_lint(document, settings)
    elif args.command == "analyze":
        body = asyncio.run(_run_analyze(document, settings))
    else:
        body = asyncio.run(
            _run_pipeline(document, settings, args.stdin, args.verbose)
        )
    print(json.dumps(body, indent=2))


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="codecoach",
        description=(
            "Lint, run and quality-check beginner code "
            "with educational explanations."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    for name, help_text in (
        ("lint", "Run the local heuristic linter"),
        ("analyze", "Analyze with the remote quality service"),
        ("run", "Execute, analyze and explain"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("file", type=str, help="Source file")
        cmd.add_argument(
            "--language",
            "-l",
            choices=[lang.value for lang in Language],
            default=None,
            help="Source language (default: from file extension)",
        )
        cmd.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Enable verbose output",
        )
        if name == "run":
            cmd.add_argument(
                "--stdin",
                default="",
                help="Text passed to the program's standard input",
            )

    serve = sub.add_parser("serve", help="Start the HTTP API")
    serve.add_argument(
        "--host",
        default="127.0.0.1",
        help="Bind address (default: 127.0.0.1)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=5000,
        help="Port (default: 5000)",
    )

    return parser


def _load_document(path: Path, language: str | None) -> SourceDocument:
    """Read a source file; infer the language from its extension."""
    if language is None:
        detected = EXTENSION_MAP.get(path.suffix.lower())
        if detected is None:
            msg = (
                f"cannot infer language from '{path.suffix}'; "
                "pass --language"
            )
            raise InputError(msg)
        language = detected.value
    return SourceDocument.from_request(
        path.read_text(encoding="utf-8"), language
    )


def _run_lint(
    document: SourceDocument, settings: Settings
) -> dict[str, Any]:
    diagnostics = lint_document(document)
    content = map_diagnostics_to_content(
        diagnostics, load_content(settings.content_path)
    )
    return {
        "diagnostics": [d.to_dict() for d in diagnostics],
        "content": [c.to_dict() for c in content],
    }


async def _run_analyze(
    document: SourceDocument, settings: Settings
) -> dict[str, Any]:
    from codecoach.analysis import sonar_client
    from codecoach.analysis.orchestrator import AnalysisOrchestrator

    async with sonar_client.build_http_client(settings) as http:
        orchestrator = AnalysisOrchestrator(
            sonar_client.SonarQubeClient(http), settings
        )
        report = await orchestrator.analyze(document)
    return report.to_dict()


async def _run_pipeline(
    document: SourceDocument,
    settings: Settings,
    stdin: str,
    verbose: bool,
) -> dict[str, Any]:
    from codecoach.analysis import sonar_client
    from codecoach.api.app_state import build_state
    from codecoach.execution import judge0

    def on_progress(event: StageEvent) -> None:
        if verbose and event.status == StageProgress.RUNNING:
            print(f"  {event.label}...", file=sys.stderr)

    async with (
        sonar_client.build_http_client(settings) as sonar_http,
        judge0.build_http_client(settings) as judge0_http,
    ):
        state = build_state(
            settings, sonar_http=sonar_http, judge0_http=judge0_http
        )
        result = await state.controller.run(
            document, stdin=stdin, on_progress=on_progress
        )
    return result.to_dict()


if __name__ == "__main__":
    main()
