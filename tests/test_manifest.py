"""Tests for the manifest parser and dependency extraction."""

from __future__ import annotations

import pytest

from cvecheq.errors import ConfigError
from cvecheq.manifest import (
    DEPENDENCY_TABLE,
    dependency_lines,
    extract_dependencies,
    parse_document,
    read_manifest,
)

POETRY_DOC = """\
[tool.poetry]
name = "demo"
version = "0.1.0"

# runtime deps
[tool.poetry.dependencies]
python = "^3.10"
requests = "^2.31"
flask = '>=2.0'

[tool.poetry.group.dev.dependencies]
pytest = "^8.0"
"""


# ── parse_document ───────────────────────────────────────────────────────


class TestParseDocument:
    def test_top_level_quoted_value(self):
        assert parse_document('key = "value"') == {"key": "value"}

    def test_single_quotes_stripped(self):
        assert parse_document("key = 'value'") == {"key": "value"}

    def test_section_is_flat_key(self):
        assert parse_document("[a.b]\nx = 1") == {"a.b": {"x": "1"}}

    def test_unquoted_value_kept_verbatim(self):
        assert parse_document("[s]\nn = 42") == {"s": {"n": "42"}}

    def test_comments_and_blank_lines_ignored(self):
        doc = parse_document("# comment\n\n   \n  # indented comment\nk = v\n")
        assert doc == {"k": "v"}

    def test_whitespace_trimmed(self):
        assert parse_document("   [sec]   \n   key   =   value   ") == {"sec": {"key": "value"}}

    def test_malformed_lines_silently_ignored(self):
        doc = parse_document("[s]\nno_equals_here\nk=v\n[broken\nok = yes\n")
        assert doc == {"s": {"ok": "yes"}}

    def test_array_of_tables_header_ignored(self):
        doc = parse_document("[[tool.items]]\nname = x\n")
        assert doc == {"name": "x"}

    def test_keys_after_section_go_into_section(self):
        doc = parse_document("top = 1\n[s]\ninner = 2\n")
        assert doc == {"top": "1", "s": {"inner": "2"}}

    def test_repeated_section_starts_over(self):
        doc = parse_document("[s]\na = 1\n[s]\nb = 2\n")
        assert doc == {"s": {"b": "2"}}

    def test_value_with_equals_sign(self):
        assert parse_document("url = a = b") == {"url": "a = b"}

    def test_no_escape_processing(self):
        assert parse_document(r'k = "a\nb"') == {"k": r"a\nb"}

    def test_mismatched_quotes_kept(self):
        assert parse_document("k = \"abc'") == {"k": "\"abc'"}

    def test_lone_quote_kept(self):
        assert parse_document('k = "') == {"k": '"'}

    def test_inline_table_kept_as_text(self):
        doc = parse_document('[d]\nx = { version = "1.0" }')
        assert doc == {"d": {"x": '{ version = "1.0" }'}}

    def test_empty_document(self):
        assert parse_document("") == {}

    def test_crlf_line_endings(self):
        assert parse_document("[s]\r\na = 1\r\n") == {"s": {"a": "1"}}


# ── extract_dependencies ─────────────────────────────────────────────────


class TestExtractDependencies:
    def test_extracts_poetry_dependencies_in_order(self):
        deps = extract_dependencies(parse_document(POETRY_DOC))
        assert list(deps) == ["python", "requests", "flask"]
        assert deps["requests"] == "^2.31"
        assert deps["flask"] == ">=2.0"

    def test_missing_table_raises(self):
        with pytest.raises(ConfigError):
            extract_dependencies(parse_document("[tool.poetry]\nname = x\n"))

    def test_empty_table_raises(self):
        with pytest.raises(ConfigError):
            extract_dependencies(parse_document(f"[{DEPENDENCY_TABLE}]\n# nothing\n"))

    def test_non_table_value_raises(self):
        with pytest.raises(ConfigError):
            extract_dependencies({DEPENDENCY_TABLE: "oops"})

    def test_returns_copy(self):
        document = parse_document(POETRY_DOC)
        deps = extract_dependencies(document)
        deps["injected"] = "1"
        assert "injected" not in document[DEPENDENCY_TABLE]


# ── dependency_lines ─────────────────────────────────────────────────────


class TestDependencyLines:
    def test_maps_names_to_zero_based_lines(self):
        lines = dependency_lines(POETRY_DOC)
        assert lines == {"python": 6, "requests": 7, "flask": 8}

    def test_other_sections_excluded(self):
        assert "pytest" not in dependency_lines(POETRY_DOC)

    def test_no_table(self):
        assert dependency_lines("[tool.poetry]\nname = x\n") == {}


# ── read_manifest ────────────────────────────────────────────────────────


class TestReadManifest:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "pyproject.toml"
        path.write_text(POETRY_DOC)
        assert read_manifest(path) == POETRY_DOC

    def test_missing_file_raises_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            read_manifest(tmp_path / "nope.toml")
