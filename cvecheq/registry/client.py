"""Async PyPI client: package metadata plus advisory discovery, best effort."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from cvecheq import __version__
from cvecheq.core.config import DEFAULT_REGISTRY_URL, DEFAULT_TIMEOUT
from cvecheq.errors import NetworkError, ParseError, RegistryError
from cvecheq.models import MetadataRecord, Resolution

log = structlog.get_logger("cvecheq.registry")

# Appended verbatim to the source repository URL.
ADVISORY_SUFFIX = "security"


def advisory_url(source_url: str) -> str:
    """Advisory-discovery URL for a source repository (plain concatenation)."""
    return source_url + ADVISORY_SUFFIX


def _string_field(mapping: dict[str, Any], key: str) -> str:
    value = mapping.get(key)
    return value if isinstance(value, str) else ""


def _source_url(info: dict[str, Any]) -> str:
    project_urls = info.get("project_urls")
    if not isinstance(project_urls, dict):
        return ""
    return _string_field(project_urls, "Source")


class RegistryClient:
    """Resolve a dependency name into a :class:`MetadataRecord`.

    Every failure is absorbed: a broken metadata lookup yields a record with
    only ``registry_url`` set, a broken advisory lookup leaves
    ``advisories`` empty. Nothing network- or parse-related is raised.

    The advisory-discovery response is fetched but not decoded, so
    ``advisories`` is always empty for freshly resolved records.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers={
                "Accept": "application/json",
                "User-Agent": f"cvecheq/{__version__}",
            },
            timeout=timeout,
            follow_redirects=True,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RegistryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    def project_url(self, name: str) -> str:
        """Human-facing project page; always derivable from the name."""
        return f"{self.base_url}/project/{name}"

    def metadata_url(self, name: str) -> str:
        """Machine JSON API endpoint for *name*."""
        return f"{self.base_url}/pypi/{name}/json"

    async def resolve(self, name: str) -> MetadataRecord:
        return (await self.lookup(name)).record

    async def lookup(self, name: str) -> Resolution:
        """Run both lookups for *name* and report how far they got."""
        record = MetadataRecord(registry_url=self.project_url(name))

        try:
            info = await self._fetch_info(name)
        except RegistryError as exc:
            log.warning(
                "registry.metadata_failed",
                name=name,
                kind=type(exc).__name__,
                error=exc.reason,
            )
            return Resolution(record=record, status="failed", errors=[str(exc)])

        record.homepage_url = _string_field(info, "home_page")
        record.source_repository_url = _source_url(info)
        resolution = Resolution(record=record)

        if record.source_repository_url:
            error = await self._probe_advisories(name, record.source_repository_url)
            if error is not None:
                resolution.status = "partial"
                resolution.errors.append(error)

        log.debug(
            "registry.resolved",
            name=name,
            status=resolution.status,
            source=record.source_repository_url,
            homepage=record.homepage_url,
        )
        return resolution

    # ── internal ───────────────────────────────────────────────────────────

    async def _fetch_info(self, name: str) -> dict[str, Any]:
        """GET the JSON API document and return its ``info`` object.

        Raises :class:`NetworkError` or :class:`ParseError`. A document
        without a usable ``info`` object yields ``{}``.
        """
        url = self.metadata_url(name)
        try:
            resp = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(name, f"request to {url} failed: {exc}") from exc

        if not resp.is_success:
            raise NetworkError(name, f"HTTP {resp.status_code} from {url}")
        if not resp.content.strip():
            raise NetworkError(name, f"empty response body from {url}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise ParseError(name, f"invalid JSON from {url}: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError(name, f"expected a JSON object from {url}")

        info = data.get("info")
        return info if isinstance(info, dict) else {}

    async def _probe_advisories(self, name: str, source_url: str) -> str | None:
        """Hit the advisory-discovery URL. Returns an error string on failure."""
        url = advisory_url(source_url)
        try:
            resp = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.debug("registry.advisory_lookup_failed", name=name, url=url, error=str(exc))
            return f"advisory lookup {url} failed: {exc}"
        if not resp.is_success:
            log.debug("registry.advisory_lookup_failed", name=name, url=url, status=resp.status_code)
            return f"advisory lookup {url} failed: HTTP {resp.status_code}"
        return None
