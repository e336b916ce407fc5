"""
Catalog Agent — merges crawl results into the in-memory gym catalog.

Dedup key: (normalized name, normalized address).
When two sources report the same gym, the higher-confidence record wins;
ties keep the record seen first.
Failed results (error set) never remove gyms already in the catalog.
"""

from __future__ import annotations
import asyncio
import logging
import re

from bus.event_bus import EventBus
from models.events import CrawlResult, GymRecord

log = logging.getLogger(__name__)

_WS = re.compile(r"\s+")


def gym_key(gym: GymRecord) -> tuple[str, str]:
    return (_WS.sub("", gym.name).lower(), _WS.sub(" ", gym.address).strip().lower())


class CatalogAgent:

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._gyms: dict[tuple[str, str], GymRecord] = {}

    def __len__(self) -> int:
        return len(self._gyms)

    def gyms(self) -> list[GymRecord]:
        return list(self._gyms.values())

    async def run(self) -> None:
        log.info("Catalog agent running")
        while True:
            try:
                result: CrawlResult = await self._bus.crawl_results.get()
                self.merge(result)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                log.exception("Catalog unexpected error: %s", exc)

    def merge(self, result: CrawlResult) -> int:
        """Merge one result; returns how many catalog entries were added or replaced."""
        if not result.ok:
            return 0
        changed = 0
        for gym in result.records:
            key = gym_key(gym)
            current = self._gyms.get(key)
            if current is None or gym.confidence > current.confidence:
                self._gyms[key] = gym
                changed += 1
        log.info(
            "Catalog: merged %d/%d record(s) from %s (catalog size=%d)",
            changed, len(result.records), result.source, len(self._gyms),
        )
        return changed
