"""JSON-file result cache keyed by dependency name."""

from __future__ import annotations

import contextlib
import json
import os
from collections.abc import Mapping
from pathlib import Path

import structlog

from cvecheq.errors import CacheWriteError
from cvecheq.models import MetadataRecord

log = structlog.get_logger("cvecheq.cache")


class ResultCache:
    """Durable name -> :class:`MetadataRecord` store backed by a single JSON file.

    A present entry means "resolved, do not refetch". Entries never expire.
    With ``path=None`` the cache lives in memory only and :meth:`flush` is a
    no-op, which keeps tests away from the user's real cache file.

    Only one writer per file is assumed; there is no locking.
    """

    def __init__(self, path: str | Path | None) -> None:
        self.path = Path(path) if path is not None else None
        self._entries: dict[str, MetadataRecord] = {}

    # ── read ───────────────────────────────────────────────────────────────

    def load(self) -> dict[str, MetadataRecord]:
        """Read the backing file into memory and return a copy of the entries.

        A missing, unreadable or corrupt file yields an empty cache.
        """
        self._entries = self._read()
        return dict(self._entries)

    def get(self, name: str) -> MetadataRecord | None:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ── write ──────────────────────────────────────────────────────────────

    def put(self, name: str, record: MetadataRecord) -> None:
        self._entries[name] = record

    def flush(self, entries: Mapping[str, MetadataRecord] | None = None) -> bool:
        """Write *entries* (default: the in-memory entries) to the backing file.

        The document is written to a sibling temp file and moved into place,
        so readers only ever see a complete file. Returns ``False`` if the
        write failed; the failure is logged and the caller keeps going with
        its in-memory state.
        """
        if self.path is None:
            return True
        payload = entries if entries is not None else self._entries
        try:
            self._write(self.path, payload)
        except CacheWriteError as exc:
            log.warning("cache.flush_failed", path=exc.path, error=exc.reason)
            return False
        log.debug("cache.flushed", path=str(self.path), entries=len(payload))
        return True

    def clear(self) -> bool:
        """Drop all entries and delete the backing file."""
        self._entries = {}
        if self.path is None:
            return True
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            log.warning("cache.clear_failed", path=str(self.path), error=str(exc))
            return False
        return True

    # ── internal ───────────────────────────────────────────────────────────

    def _read(self) -> dict[str, MetadataRecord]:
        if self.path is None:
            return dict(self._entries)
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("cache.read_failed", path=str(self.path), error=str(exc))
            return {}

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            log.warning("cache.corrupt", path=str(self.path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            log.warning("cache.corrupt", path=str(self.path), error="document is not an object")
            return {}

        entries: dict[str, MetadataRecord] = {}
        for name, value in data.items():
            # null means "not resolved"
            if value is None:
                continue
            if not isinstance(value, dict):
                log.warning("cache.entry_skipped", name=name, error="entry is not an object")
                continue
            try:
                entries[name] = MetadataRecord.from_dict(value)
            except ValueError as exc:
                log.warning("cache.entry_skipped", name=name, error=str(exc))
        return entries

    @staticmethod
    def _write(path: Path, entries: Mapping[str, MetadataRecord]) -> None:
        document = {name: record.to_dict() for name, record in entries.items()}
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise CacheWriteError(str(path), str(exc)) from exc
