"""BatchOrchestrator: cache lookup, registry fetch, write-back, presentation."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from typing import Protocol

import structlog

from cvecheq.cache.store import ResultCache
from cvecheq.core.config import DEFAULT_DELAY_MS
from cvecheq.models import MetadataRecord, Resolution, RunSummary
from cvecheq.orchestrator.throttle import RateLimiter
from cvecheq.sinks import PresentationSink

log = structlog.get_logger("cvecheq.orchestrator")


class Resolver(Protocol):
    """What the orchestrator needs from a registry client."""

    def project_url(self, name: str) -> str: ...

    async def lookup(self, name: str) -> Resolution: ...


def unique_names(names: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping first-occurrence order."""
    return list(dict.fromkeys(names))


class BatchOrchestrator:
    """Drive the per-dependency pipeline over a whole dependency set.

    Dependencies are processed one at a time, in input order. Only cache
    misses go through the rate limiter, and a dependency counts as one
    rate-limited unit no matter how many HTTP calls it takes.
    """

    def __init__(
        self,
        client: Resolver,
        delay: float = DEFAULT_DELAY_MS / 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._limiter = RateLimiter(delay, clock=clock)
        self._cancelled = asyncio.Event()

    def cancel(self) -> None:
        """Stop before the next dependency. In-flight lookups are not interrupted."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def run(
        self,
        names: Iterable[str],
        cache: ResultCache,
        sink: PresentationSink,
    ) -> RunSummary:
        """Resolve every name and hand each record to *sink*.

        One sink entry per unique name, in first-occurrence order. A failure
        in one dependency never stops the ones after it.
        """
        summary = RunSummary()
        pending = unique_names(names)

        for index, name in enumerate(pending):
            if self._cancelled.is_set():
                summary.cancelled = True
                log.info("orchestrator.cancelled", remaining=len(pending) - index)
                break

            record = cache.get(name)
            if record is not None:
                summary.cache_hits += 1
                self._present(summary, name, sink.notice, f"Using cached results for {name}")
            else:
                record = await self._resolve(name, cache, summary)

            summary.results.append((name, record))
            self._present(summary, name, sink.emit, name, record)

        log.info(
            "orchestrator.done",
            total=len(summary.results),
            cache_hits=summary.cache_hits,
            fetched=summary.fetched,
            degraded=summary.degraded,
            errors=len(summary.errors),
            flush_failures=summary.flush_failures,
            cancelled=summary.cancelled,
        )
        return summary

    async def _resolve(self, name: str, cache: ResultCache, summary: RunSummary) -> MetadataRecord:
        """Fetch *name* from the registry, then store and flush the result."""
        await self._limiter.wait()
        summary.fetched += 1

        try:
            resolution = await self._client.lookup(name)
        except Exception as exc:
            # Not cached, so the next run retries it.
            log.exception("orchestrator.dependency_failed", name=name)
            summary.errors.append(f"{name}: {exc}")
            return MetadataRecord(registry_url=self._client.project_url(name))

        if resolution.status != "complete":
            summary.degraded += 1

        cache.put(name, resolution.record)
        if not cache.flush():
            summary.flush_failures += 1
        return resolution.record

    @staticmethod
    def _present(
        summary: RunSummary, name: str, call: Callable[..., None], *args: object
    ) -> None:
        """Invoke a sink method; a raising sink is logged and the batch goes on."""
        try:
            call(*args)
        except Exception as exc:
            log.exception("orchestrator.sink_failed", name=name)
            summary.errors.append(f"{name}: presentation failed: {exc}")
