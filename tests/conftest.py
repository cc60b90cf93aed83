"""Shared pytest fixtures for cvecheq tests.

No network access is needed: registry traffic goes through
``httpx.MockTransport`` handlers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
import pytest
import structlog

from cvecheq.registry.client import RegistryClient

Handler = Callable[[httpx.Request], httpx.Response]


def _structlog_via_stdlib() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture(autouse=True, scope="session")
def structlog_via_stdlib():
    """Route structlog through stdlib logging so pytest captures it and stdout stays clean."""
    _structlog_via_stdlib()
    yield
    structlog.reset_defaults()


@pytest.fixture
def restore_logging():
    """Undo a real setup_logging() call: root handlers, levels and structlog config."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    for name, saved in quiet.items():
        logging.getLogger(name).setLevel(saved)
    _structlog_via_stdlib()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep every test away from the real per-user cache and env settings."""
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    for key in (
        "CVECHEQ_CACHE_FILE",
        "CVECHEQ_REGISTRY_URL",
        "CVECHEQ_DELAY_MS",
        "CVECHEQ_TIMEOUT",
        "CVECHEQ_LOG_LEVEL",
        "CVECHEQ_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)


def _pypi_payload(home_page: object = "", source: object = None, **info: object) -> dict:
    body: dict = {"home_page": home_page, **info}
    if source is not None:
        body["project_urls"] = {"Source": source}
    return {"info": body}


@pytest.fixture
def pypi_payload():
    """Builder for PyPI JSON API documents."""
    return _pypi_payload


@pytest.fixture
def make_client():
    """Factory: RegistryClient whose HTTP traffic is served by *handler*."""

    def _make(handler: Handler, base_url: str = "https://pypi.org") -> RegistryClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RegistryClient(base_url, client=http)

    return _make
