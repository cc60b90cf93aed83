"""Manifest parsing: minimal section/key-value dialect and dependency extraction."""

from cvecheq.manifest.parser import (
    DEPENDENCY_TABLE,
    dependency_lines,
    extract_dependencies,
    parse_document,
    read_manifest,
)

__all__ = [
    "DEPENDENCY_TABLE",
    "dependency_lines",
    "extract_dependencies",
    "parse_document",
    "read_manifest",
]
