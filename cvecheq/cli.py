"""CLI entry point: cvecheq.

Subcommands:
    cvecheq list pyproject.toml          # Print declared dependencies
    cvecheq check pyproject.toml         # Resolve metadata + advisories
    cvecheq check pyproject.toml --json  # Same, as a JSON array
    cvecheq cache path                   # Show the cache file location
    cvecheq cache clear                  # Forget every cached result
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import signal
import sys
from pathlib import Path
from typing import NoReturn

import click

from cvecheq.cache.store import ResultCache
from cvecheq.core.config import Settings
from cvecheq.core.logging import setup_logging
from cvecheq.errors import ConfigError
from cvecheq.manifest.parser import (
    dependency_lines,
    extract_dependencies,
    parse_document,
    read_manifest,
)
from cvecheq.models import RunSummary
from cvecheq.orchestrator.runner import BatchOrchestrator
from cvecheq.registry.client import RegistryClient
from cvecheq.sinks import AnnotationSink, ConsoleSink, JsonSink, MultiSink, PresentationSink

MANIFEST_NAME = "pyproject.toml"

_manifest_argument = click.argument(
    "manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
_cache_file_option = click.option(
    "--cache-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Cache file (default: $CVECHEQ_CACHE_FILE or the per-user cache dir)",
)


def _load_dependencies(manifest: Path) -> tuple[str, dict[str, str]]:
    """Read *manifest* and return its text plus the declared dependencies."""
    if manifest.name != MANIFEST_NAME:
        raise ConfigError(f"cvecheq only works with {MANIFEST_NAME} files, got {manifest.name}")
    text = read_manifest(manifest)
    return text, extract_dependencies(parse_document(text))


def _settings() -> Settings:
    """Settings from the environment; exits with an error message when they are invalid."""
    try:
        return Settings.from_env()
    except ConfigError as e:
        _fail(str(e))


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


async def _resolve_all(
    names: list[str],
    cache: ResultCache,
    sink: PresentationSink,
    settings: Settings,
) -> RunSummary:
    async with RegistryClient(settings.registry_url, timeout=settings.timeout) as client:
        orchestrator = BatchOrchestrator(client, delay=settings.delay)
        loop = asyncio.get_running_loop()
        # Finish the current dependency, then stop.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(signal.SIGTERM, orchestrator.cancel)
        try:
            return await orchestrator.run(names, cache, sink)
        finally:
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.remove_signal_handler(signal.SIGTERM)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """cvecheq: registry metadata and advisories for pyproject dependencies."""
    setup_logging("DEBUG" if verbose else None)


@main.command("list")
@_manifest_argument
def list_dependencies(manifest: Path) -> None:
    """Print the dependencies declared in [tool.poetry.dependencies]."""
    try:
        _, dependencies = _load_dependencies(manifest)
    except ConfigError as e:
        _fail(str(e))

    click.echo("Dependencies found:")
    for name, constraint in dependencies.items():
        click.echo(f"{name} : {constraint}")


@main.command("check")
@_manifest_argument
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--annotate", is_flag=True, help="Print per-line advisory annotations (console output only)")
@click.option("--no-cache", is_flag=True, help="Ignore and do not update the cache file")
@click.option("--delay", type=click.IntRange(min=0), default=None, help="Delay between lookups (ms)")
@click.option("--registry-url", default=None, help="Package registry base URL")
@_cache_file_option
def check(
    manifest: Path,
    as_json: bool,
    annotate: bool,
    no_cache: bool,
    delay: int | None,
    registry_url: str | None,
    cache_file: Path | None,
) -> None:
    """Resolve registry metadata and advisories for every declared dependency."""
    try:
        text, dependencies = _load_dependencies(manifest)
    except ConfigError as e:
        _fail(str(e))

    settings = _settings()
    overrides: dict[str, object] = {}
    if delay is not None:
        overrides["delay_ms"] = delay
    if registry_url:
        overrides["registry_url"] = registry_url.rstrip("/")
    if cache_file is not None:
        overrides["cache_file"] = cache_file
    settings = dataclasses.replace(settings, **overrides)

    cache = ResultCache(None if no_cache else settings.cache_file)
    cache.load()

    json_sink = JsonSink() if as_json else None
    annotation_sink = AnnotationSink(dependency_lines(text)) if annotate and not as_json else None
    sinks: list[PresentationSink] = [json_sink or ConsoleSink()]
    if annotation_sink is not None:
        sinks.append(annotation_sink)
    sink = MultiSink(*sinks)

    summary = asyncio.run(_resolve_all(list(dependencies), cache, sink, settings))

    if json_sink is not None:
        click.echo(json_sink.dump())
    if annotation_sink is not None and annotation_sink.annotations:
        click.echo("\nAnnotations:")
        for line, annotation in sorted(annotation_sink.annotations.items()):
            click.echo(f"  {manifest.name}:{line + 1}: {annotation}")

    if summary.flush_failures:
        click.echo(
            f"Warning: cache file {settings.cache_file} could not be written; "
            "results were kept in memory only.",
            err=True,
        )
    if summary.cancelled:
        click.echo("Stopped before all dependencies were checked.", err=True)


@main.group("cache")
def cache_group() -> None:
    """Inspect or reset the result cache."""


@cache_group.command("path")
@_cache_file_option
def cache_path(cache_file: Path | None) -> None:
    """Print the cache file location."""
    click.echo(str(cache_file or _settings().cache_file))


@cache_group.command("clear")
@_cache_file_option
def cache_clear(cache_file: Path | None) -> None:
    """Delete every cached result."""
    path = cache_file or _settings().cache_file
    if not ResultCache(path).clear():
        _fail(f"could not delete {path}")
    click.echo(f"Cleared {path}")
