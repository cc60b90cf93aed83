"""Data models shared by the cache, registry client and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ResolutionStatus = Literal["complete", "partial", "failed"]


@dataclass
class AdvisoryRecord:
    """A single known vulnerability for a dependency."""

    id: str
    fix_version: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "fix_version": self.fix_version}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdvisoryRecord:
        advisory_id = data.get("id")
        if not isinstance(advisory_id, str):
            raise ValueError(f"advisory id must be a string, got {advisory_id!r}")
        fix_version = data.get("fix_version") or ""
        if not isinstance(fix_version, str):
            raise ValueError(f"fix_version must be a string, got {fix_version!r}")
        return cls(id=advisory_id, fix_version=fix_version)


@dataclass
class MetadataRecord:
    """Resolved registry metadata for one dependency.

    An empty ``advisories`` list means "no known issues"; an unresolved
    dependency has no record at all.
    """

    registry_url: str
    source_repository_url: str = ""
    homepage_url: str = ""
    advisories: list[AdvisoryRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the cache-file shape."""
        return {
            "pypi_url": self.registry_url,
            "github_url": self.source_repository_url,
            "homepage": self.homepage_url,
            "cves": [a.to_dict() for a in self.advisories],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetadataRecord:
        """Inverse of :meth:`to_dict`. Raises ``ValueError`` on a malformed entry."""
        registry_url = data.get("pypi_url")
        if not isinstance(registry_url, str) or not registry_url:
            raise ValueError("pypi_url must be a non-empty string")
        source = data.get("github_url") or ""
        homepage = data.get("homepage") or ""
        if not isinstance(source, str) or not isinstance(homepage, str):
            raise ValueError("github_url and homepage must be strings")
        cves = data.get("cves") or []
        if not isinstance(cves, list):
            raise ValueError("cves must be a list")
        advisories = []
        for item in cves:
            if not isinstance(item, dict):
                raise ValueError(f"cve entry must be an object, got {item!r}")
            advisories.append(AdvisoryRecord.from_dict(item))
        return cls(
            registry_url=registry_url,
            source_repository_url=source,
            homepage_url=homepage,
            advisories=advisories,
        )


@dataclass
class Resolution:
    """Outcome of the chained registry lookups for one dependency.

    ``failed`` — metadata lookup failed, only ``registry_url`` is set.
    ``partial`` — metadata resolved but advisory discovery failed.
    """

    record: MetadataRecord
    status: ResolutionStatus = "complete"
    errors: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    """Summary of a single orchestrator run."""

    results: list[tuple[str, MetadataRecord]] = field(default_factory=list)
    cache_hits: int = 0
    fetched: int = 0
    degraded: int = 0
    flush_failures: int = 0
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False
