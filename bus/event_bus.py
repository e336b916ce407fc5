"""
Typed multi-channel event bus.

All inter-agent communication goes through this module.
Plain asyncio.Queue channels, in-process only.

Queue sizing:
  crawl_results: 50  — one result per source per round; 50 rounds behind is a stuck consumer
  exp_events:    500 — bursts of likes/comments arrive much faster than crawl results
  level_ups:     100 — notification consumers are slow but level-ups are rare
"""

from __future__ import annotations
import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.events import CrawlResult, ExpEvent, LevelUpEvent

log = logging.getLogger(__name__)


class EventBus:
    __slots__ = (
        "crawl_results",
        "exp_events",
        "level_ups",
    )

    def __init__(self) -> None:
        self.crawl_results: asyncio.Queue[CrawlResult] = asyncio.Queue(maxsize=50)
        self.exp_events: asyncio.Queue[ExpEvent] = asyncio.Queue(maxsize=500)
        self.level_ups: asyncio.Queue[LevelUpEvent] = asyncio.Queue(maxsize=100)

    def publish_crawl_result(self, result: "CrawlResult") -> None:
        """Non-blocking publish. Drops and logs if queue is full."""
        try:
            self.crawl_results.put_nowait(result)
        except asyncio.QueueFull:
            log.warning("crawl_results queue full — dropping result for source=%s", result.source)

    def publish_exp_event(self, event: "ExpEvent") -> None:
        try:
            self.exp_events.put_nowait(event)
        except asyncio.QueueFull:
            log.warning(
                "exp_events queue full — dropping %s/%s for user=%d",
                event.action, event.reason, event.user_id,
            )

    def publish_level_up(self, event: "LevelUpEvent") -> None:
        try:
            self.level_ups.put_nowait(event)
        except asyncio.QueueFull:
            log.error(
                "level_ups queue full — level-up %d->%d for user=%d DROPPED",
                event.old_level, event.new_level, event.user_id,
            )
