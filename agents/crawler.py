"""
Crawler Agent — gym data ingestion.

Polls every CrawlSource through its own CircuitBreaker and publishes one
CrawlResult per source per round to the EventBus.

A source that keeps failing trips its breaker; while the breaker is open the
source is not called at all and the round publishes error="circuit_open"
for it. Other sources are unaffected.

Per-source CrawlMetrics (requests, successes, failures, skips, latency) are
reported next to the breaker state by breaker_status().
"""

from __future__ import annotations
import asyncio
import logging
import time
from typing import Callable, Sequence

from bus.event_bus import EventBus
from crawling.base import CrawlSource
from models.events import CrawlResult
from models.state import CrawlMetrics
from utils.circuit_breaker import CircuitBreaker, CircuitOpenError

log = logging.getLogger(__name__)

BreakerFactory = Callable[[str], CircuitBreaker]


class CrawlerAgent:

    def __init__(
        self,
        bus: EventBus,
        sources: Sequence[CrawlSource],
        breaker_factory: BreakerFactory,
        interval_s: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        names = [s.name for s in sources]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate crawl source names: {duplicates}")
        self._bus = bus
        self._sources = sources
        self._interval_s = interval_s
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {n: breaker_factory(n) for n in names}
        self._metrics: dict[str, CrawlMetrics] = {n: CrawlMetrics() for n in names}

    def breaker(self, source_name: str) -> CircuitBreaker:
        return self._breakers[source_name]

    def metrics(self, source_name: str) -> CrawlMetrics:
        return self._metrics[source_name]

    def reset_metrics(self) -> None:
        for name in self._metrics:
            self._metrics[name] = CrawlMetrics()

    def breaker_status(self) -> dict[str, dict[str, object]]:
        """Per-source breaker and metrics snapshot, e.g. for a health endpoint."""
        return {
            name: {
                "state": b.state.value,
                "failure_count": b.failure_count,
                "metrics": self._metrics[name].snapshot(),
            }
            for name, b in self._breakers.items()
        }

    async def startup(self) -> None:
        for source in self._sources:
            await source.startup()
        log.info("Crawler started %d source(s): %s", len(self._sources), [s.name for s in self._sources])

    async def shutdown(self) -> None:
        for source in self._sources:
            await source.shutdown()

    async def run(self) -> None:
        log.info("Crawler agent running (interval=%.0fs)", self._interval_s)
        while True:
            try:
                await self.poll_once()
                await asyncio.sleep(self._interval_s)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                log.exception("Crawler unexpected error: %s", exc)
                await asyncio.sleep(self._interval_s)

    async def poll_once(self) -> list[CrawlResult]:
        """Poll every source concurrently; one result per source, in source order."""
        results = await asyncio.gather(*(self._poll_source(s) for s in self._sources))
        for result in results:
            self._bus.publish_crawl_result(result)
        return list(results)

    async def _poll_source(self, source: CrawlSource) -> CrawlResult:
        breaker = self._breakers[source.name]
        metrics = self._metrics[source.name]
        started = self._clock()
        try:
            records = await breaker.execute(source.fetch)
        except CircuitOpenError as exc:
            metrics.record_skip()
            log.info("Crawler: %s skipped (%s)", source.name, exc.reason)
            return CrawlResult(source=source.name, error="circuit_open")
        except Exception as exc:
            metrics.record_failure((self._clock() - started) * 1000)
            log.warning(
                "Crawler: %s fetch failed (failures=%d state=%s): %s",
                source.name, breaker.failure_count, breaker.state.value, exc,
            )
            return CrawlResult(source=source.name, error=str(exc) or type(exc).__name__)

        latency_ms = (self._clock() - started) * 1000
        metrics.record_success(latency_ms)
        log.debug("Crawler: %s returned %d records in %.0fms", source.name, len(records), latency_ms)
        return CrawlResult(source=source.name, records=tuple(records))
