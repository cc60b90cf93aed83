"""Presentation sinks: where resolved records end up."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import click

from cvecheq.models import MetadataRecord


@runtime_checkable
class PresentationSink(Protocol):
    """Interface every sink must satisfy."""

    def notice(self, message: str) -> None: ...

    def emit(self, name: str, record: MetadataRecord) -> None: ...


def format_record(name: str, record: MetadataRecord) -> list[str]:
    """Render a record as the line-oriented report block."""
    lines = [f"Dependency: {name}", f"- PyPI URL: {record.registry_url}"]
    if record.source_repository_url:
        lines.append(f"- GitHub URL: {record.source_repository_url}")
    elif record.homepage_url:
        lines.append(f"- Homepage: {record.homepage_url}")

    if record.advisories:
        for advisory in record.advisories:
            lines.append(f"- CVE: {advisory.id} | Fix Version: {advisory.fix_version}")
    else:
        lines.append("- No advisories found")
    return lines


def format_annotation(record: MetadataRecord) -> str | None:
    """One-line inline annotation, or ``None`` when there is nothing to flag."""
    if not record.advisories:
        return None
    return " | ".join(f"CVE: {a.id} (Fix: {a.fix_version})" for a in record.advisories)


class ConsoleSink:
    """Print notices and report blocks to stdout."""

    def notice(self, message: str) -> None:
        click.echo(message)

    def emit(self, name: str, record: MetadataRecord) -> None:
        for line in format_record(name, record):
            click.echo(line)


class JsonSink:
    """Collect one row per dependency; :meth:`dump` renders them as a JSON array.

    Notices go to stderr so stdout stays a single JSON document.
    """

    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []

    def notice(self, message: str) -> None:
        click.echo(message, err=True)

    def emit(self, name: str, record: MetadataRecord) -> None:
        row: dict[str, Any] = {"name": name}
        row.update(record.to_dict())
        self.rows.append(row)

    def dump(self) -> str:
        return json.dumps(self.rows, indent=2)


class AnnotationSink:
    """Build ``{line_number: text}`` inline annotations for flagged dependencies.

    *lines* maps dependency names to 0-based line numbers in the source
    document (see :func:`cvecheq.manifest.dependency_lines`). Dependencies
    without a known line are not annotated.
    """

    def __init__(self, lines: Mapping[str, int]) -> None:
        self._lines = dict(lines)
        self.annotations: dict[int, str] = {}

    def notice(self, message: str) -> None:
        pass

    def emit(self, name: str, record: MetadataRecord) -> None:
        line = self._lines.get(name)
        text = format_annotation(record)
        if line is None or text is None:
            return
        self.annotations[line] = text


class MultiSink:
    """Fan every call out to several sinks, in order."""

    def __init__(self, *sinks: PresentationSink) -> None:
        self._sinks = sinks

    def notice(self, message: str) -> None:
        for sink in self._sinks:
            sink.notice(message)

    def emit(self, name: str, record: MetadataRecord) -> None:
        for sink in self._sinks:
            sink.emit(name, record)
