"""Load and validate the educational content table."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from codecoach.constants import ClassificationKey
from codecoach.diagnostics.schemas import EducationalContent

type ContentTable = MappingProxyType[ClassificationKey, EducationalContent]

_REQUIRED_FIELDS = ("title", "explanation", "example", "fix")


def load_content(path: Path) -> ContentTable:
    """Load ``ClassificationKey -> EducationalContent`` from a YAML file.

    Raises ``FileNotFoundError`` if the file doesn't exist and
    ``ValueError`` for unknown keys or entries missing a field.
    The returned mapping is read-only.
    """
    if not path.exists():
        msg = f"Content file not found: {path}"
        raise FileNotFoundError(msg)

    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}

    table: dict[ClassificationKey, EducationalContent] = {}
    for name, entry in raw.items():
        try:
            key = ClassificationKey(name)
        except ValueError:
            msg = (
                f"Unknown classification key '{name}' in {path.name}. "
                f"Must be one of: {sorted(k.value for k in ClassificationKey)}"
            )
            raise ValueError(msg) from None
        if not isinstance(entry, dict):
            msg = f"Content entry '{name}' must be a mapping"
            raise ValueError(msg)
        missing = [f for f in _REQUIRED_FIELDS if not entry.get(f)]
        if missing:
            msg = (
                f"Content entry '{name}' is missing: {', '.join(missing)}"
            )
            raise ValueError(msg)
        table[key] = EducationalContent(
            title=str(entry["title"]).strip(),
            explanation=str(entry["explanation"]).strip(),
            example=str(entry["example"]).rstrip(),
            fix=str(entry["fix"]).strip(),
        )
    return MappingProxyType(table)
