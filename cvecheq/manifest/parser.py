"""Parser for the minimal pyproject dialect used to find declared dependencies.

Only a subset of TOML is understood: ``[section.name]`` headers and
``key = value`` lines, with single- or double-quoted values unwrapped.
There is no escape processing and no support for arrays, inline tables
or arrays of tables. Lines that match none of the recognised shapes are
skipped without error.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from cvecheq.errors import ConfigError

DEPENDENCY_TABLE = "tool.poetry.dependencies"

_SECTION_RE = re.compile(r"^\[([^\]]+)\]$")
# Whitespace on both sides of "=" is required; keys never contain "=".
_KEY_VALUE_RE = re.compile(r"^([^=]+)\s=\s(.+)$")

Document = dict[str, Any]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _iter_entries(text: str) -> Iterator[tuple[int, str, str, str]]:
    """Yield ``(lineno, kind, name, value)`` for every recognised line.

    *kind* is ``"section"`` (value is empty) or ``"key"``.
    """
    for lineno, raw in enumerate(text.splitlines()):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        m = _SECTION_RE.match(line)
        if m:
            yield lineno, "section", m.group(1), ""
            continue

        m = _KEY_VALUE_RE.match(line)
        if m:
            yield lineno, "key", m.group(1).strip(), _unquote(m.group(2).strip())


def parse_document(text: str) -> Document:
    """Parse *text* into a flat mapping of section name -> table.

    Section names are kept verbatim (``"tool.poetry.dependencies"`` is a
    single key, not a nested path). Keys seen before any section header
    are stored at the top level. A repeated header starts the section over.
    """
    result: Document = {}
    section: dict[str, str] | None = None

    for _, kind, name, value in _iter_entries(text):
        if kind == "section":
            section = {}
            result[name] = section
        elif section is not None:
            section[name] = value
        else:
            result[name] = value

    return result


def extract_dependencies(document: Document) -> dict[str, str]:
    """Return the declared dependencies as ``{name: constraint}`` in document order.

    Raises :class:`ConfigError` if the dependency table is missing or empty.
    """
    table = document.get(DEPENDENCY_TABLE)
    if not isinstance(table, dict) or not table:
        raise ConfigError(f"No dependencies found: [{DEPENDENCY_TABLE}] is missing or empty")
    return dict(table)


def dependency_lines(text: str) -> dict[str, int]:
    """Map each dependency name to its 0-based line number in *text*."""
    lines: dict[str, int] = {}
    in_table = False
    for lineno, kind, name, _ in _iter_entries(text):
        if kind == "section":
            in_table = name == DEPENDENCY_TABLE
            if in_table:
                lines.clear()
        elif in_table:
            lines.setdefault(name, lineno)
    return lines


def read_manifest(path: Path) -> str:
    """Read the whole manifest file. Raises :class:`ConfigError` if unreadable."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
