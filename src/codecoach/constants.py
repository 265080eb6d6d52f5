"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON payloads,
log lines, YAML keys) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class Language(StrEnum):
    """Languages the editor, linter and remote services understand."""

    JAVASCRIPT = "javascript"
    PYTHON = "python"


class Severity(StrEnum):
    """Severity of a positioned diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ClassificationKey(StrEnum):
    """Join key between diagnostics and educational content.

    Shared by the local linter and the remote classifier, so a value
    must never be renamed without migrating lint_content.yaml.
    """

    SYNTAX_ERROR = "syntax_error"
    UNDEFINED_VARIABLE = "undefined_variable"
    SECURITY_ISSUE = "security_issue"
    CODE_QUALITY = "code_quality"
    UNMATCHED_BRACES = "unmatched_braces"
    UNMATCHED_PARENS = "unmatched_parens"
    UNTERMINATED_STRING = "unterminated_string"
    MISSING_BLOCK_COLON = "missing_block_colon"


class IssueType(StrEnum):
    """Issue kinds reported by the quality service."""

    BUG = "BUG"
    VULNERABILITY = "VULNERABILITY"
    CODE_SMELL = "CODE_SMELL"
    SECURITY_HOTSPOT = "SECURITY_HOTSPOT"


class PipelineState(StrEnum):
    """States of one run cycle in the pipeline controller."""

    IDLE = "idle"
    EXECUTING = "executing"
    ANALYZING_REMOTE = "analyzing_remote"
    CLASSIFYING = "classifying"
    DONE = "done"
    FAILED = "failed"


class StageProgress(StrEnum):
    """Progress status for pipeline stage events."""

    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


class StageOutcome(StrEnum):
    """Outcome of an individual remote stage execution."""

    COMPLETED = "completed"
    DEGRADED = "degraded"


class ExecutionKind(StrEnum):
    """Which field of an execution response carried the output."""

    STDOUT = "stdout"
    STDERR = "stderr"
    COMPILE_ERROR = "compile_error"
    UNRECOGNIZED = "unrecognized"


# ── Language Tables ──────────────────────────────────────

FILE_EXTENSIONS: dict[Language, str] = {
    Language.JAVASCRIPT: "js",
    Language.PYTHON: "py",
}

# File extension → language, used by the CLI when --language is omitted
EXTENSION_MAP: dict[str, Language] = {
    ".py": Language.PYTHON,
    ".pyw": Language.PYTHON,
    ".js": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
}

# Judge0 language identifiers
JUDGE0_LANGUAGE_IDS: dict[Language, int] = {
    Language.JAVASCRIPT: 63,  # Node.js
    Language.PYTHON: 71,  # Python 3
}

# ── Quality Service ──────────────────────────────────────

# Status returned by project-create when the key already exists
SONAR_PROJECT_EXISTS_STATUS = 400
SONAR_ISSUE_PAGE_SIZE = 500
SONAR_PENDING_TASK_STATUSES = frozenset({"PENDING", "IN_PROGRESS"})

DEFAULT_METRIC_KEYS: tuple[str, ...] = (
    "ncloc",
    "bugs",
    "vulnerabilities",
    "code_smells",
    "complexity",
    "cognitive_complexity",
    "duplicated_lines_density",
)

# Remote severity → diagnostic severity
REMOTE_SEVERITY_MAP: dict[str, Severity] = {
    "BLOCKER": Severity.ERROR,
    "CRITICAL": Severity.ERROR,
    "MAJOR": Severity.WARNING,
    "MINOR": Severity.WARNING,
    "INFO": Severity.INFO,
}

PROJECT_KEY_PREFIX = "codecoach"
SHORT_ID_HEX_LENGTH = 8
SOURCE_FILE_STEM = "code"

# ── Circuit Breaker Configuration ────────────────────────

CB_SONAR_FAILURE_THRESHOLD = 5
CB_SONAR_RECOVERY_TIMEOUT = 30
CB_JUDGE0_FAILURE_THRESHOLD = 3
CB_JUDGE0_RECOVERY_TIMEOUT = 30

# ── Status Polling ───────────────────────────────────────

POLL_INITIAL_WAIT = 0.5
POLL_MAX_WAIT = 4.0

# ── Misc ─────────────────────────────────────────────────

ERROR_TRUNCATION_CHARS = 200
LOG_PREVIEW_CHARS = 50

# ── Auth ─────────────────────────────────────────────────

API_KEY_HEADER = "X-API-Key"

AUTH_EXEMPT_PATHS = frozenset({
    "/api/health",
    "/api/docs",
    "/api/redoc",
    "/api/openapi.json",
})

AUTH_EXEMPT_PREFIXES = ("/api/health",)

# ── Stage Labels (user-facing) ─────────────────────────

STAGE_LABELS: dict[str, str] = {
    PipelineState.EXECUTING: "Running your code",
    PipelineState.ANALYZING_REMOTE: "Checking code quality",
    PipelineState.CLASSIFYING: "Preparing explanations",
    PipelineState.DONE: "Finished",
    PipelineState.FAILED: "Stopped",
}
