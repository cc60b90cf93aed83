"""Runtime settings, read from ``CVECHEQ_*`` environment variables."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from cvecheq.errors import ConfigError

DEFAULT_REGISTRY_URL = "https://pypi.org"
DEFAULT_DELAY_MS = 500
DEFAULT_TIMEOUT = 15.0
CACHE_FILENAME = "cve_checker_cache.json"


def default_cache_file() -> Path:
    """Per-user cache location: ``$XDG_CACHE_HOME/cvecheq/`` or ``~/.cache/cvecheq/``."""
    base = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(base) / "cvecheq" / CACHE_FILENAME


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None
    if not math.isfinite(value) or value < 0:
        raise ConfigError(f"{key} must be a non-negative number, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    registry_url: str = DEFAULT_REGISTRY_URL
    cache_file: Path = field(default_factory=default_cache_file)
    delay_ms: float = DEFAULT_DELAY_MS
    timeout: float = DEFAULT_TIMEOUT

    @property
    def delay(self) -> float:
        """Inter-dependency delay in seconds."""
        return self.delay_ms / 1000

    @classmethod
    def from_env(cls) -> Settings:
        """Raises :class:`ConfigError` for a non-numeric or negative delay or timeout."""
        cache_file = os.environ.get("CVECHEQ_CACHE_FILE")
        return cls(
            registry_url=os.environ.get("CVECHEQ_REGISTRY_URL", DEFAULT_REGISTRY_URL).rstrip("/"),
            cache_file=Path(cache_file).expanduser() if cache_file else default_cache_file(),
            delay_ms=_env_float("CVECHEQ_DELAY_MS", DEFAULT_DELAY_MS),
            timeout=_env_float("CVECHEQ_TIMEOUT", DEFAULT_TIMEOUT),
        )
