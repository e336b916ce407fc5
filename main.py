"""
Deukgeun core — Main Entrypoint

Boots the asyncio event loop, wires the crawler and reward agents together,
and runs until SIGINT/SIGTERM is received.

Startup sequence:
  1. Load .env and settings
  2. Load the level config (thresholds, exp values, rewards)
  3. Build sources, one circuit breaker per source, and the agents
  4. Start Crawler, Catalog, Reward agents as asyncio tasks
  5. Wait for shutdown signal

Shutdown sequence:
  1. Cancel running tasks
  2. Close source sessions
"""

from __future__ import annotations
import asyncio
import logging
import signal

from dotenv import load_dotenv

from agents.catalog import CatalogAgent
from agents.crawler import CrawlerAgent
from agents.rewarder import RewardAgent
from bus.event_bus import EventBus
from config.level_config import load_level_config
from config.settings import Settings, load_settings
from crawling.seoul_open_api import SeoulOpenApiSource
from models.state import UserLevelStore
from utils.circuit_breaker import CircuitBreaker
from utils.logger import setup_logging

log = logging.getLogger(__name__)


def build_breaker_factory(settings: Settings):
    def factory(name: str) -> CircuitBreaker:
        return CircuitBreaker(
            name=name,
            failure_threshold=settings.breaker_failure_threshold,
            recovery_timeout_ms=settings.breaker_recovery_timeout_ms,
            half_open_max_calls=settings.breaker_half_open_max_calls,
        )
    return factory


async def _drain_level_ups(bus: EventBus) -> None:
    """Stand-in consumer until a notification service subscribes to level-ups."""
    while True:
        try:
            event = await bus.level_ups.get()
        except asyncio.CancelledError:
            break
        log.info(
            "Level up: user=%d %d -> %d rewards=%s",
            event.user_id, event.old_level, event.new_level, [r.name for r in event.rewards],
        )


async def run(settings: Settings) -> None:
    setup_logging(settings.log_level)
    log.info("Deukgeun core starting")

    engine, rules = load_level_config(settings.level_config_path)

    # -----------------------------------------------------------------------
    # Infrastructure
    # -----------------------------------------------------------------------
    bus = EventBus()
    store = UserLevelStore()

    sources = [
        SeoulOpenApiSource(
            api_key=settings.seoul_openapi_key,
            base_url=settings.seoul_openapi_base_url,
            page_size=settings.seoul_openapi_page_size,
        ),
    ]

    # -----------------------------------------------------------------------
    # Agents
    # -----------------------------------------------------------------------
    crawler = CrawlerAgent(
        bus=bus,
        sources=sources,
        breaker_factory=build_breaker_factory(settings),
        interval_s=settings.crawl_interval_s,
    )
    catalog = CatalogAgent(bus=bus)
    rewarder = RewardAgent(bus=bus, engine=engine, rules=rules, store=store)

    await crawler.startup()

    shutdown_event = asyncio.Event()

    def _handle_signal(sig: signal.Signals) -> None:
        log.info("Received %s — initiating graceful shutdown", sig.name)
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handle_signal, sig)

    tasks = [
        asyncio.create_task(crawler.run(), name="crawler"),
        asyncio.create_task(catalog.run(), name="catalog"),
        asyncio.create_task(rewarder.run(), name="rewarder"),
        asyncio.create_task(_drain_level_ups(bus), name="level-ups"),
    ]
    log.info("All agents launched.")

    await shutdown_event.wait()

    log.info("Shutting down... breakers=%s", crawler.breaker_status())
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await crawler.shutdown()
    log.info("Deukgeun core stopped cleanly (catalog=%d gyms, users=%d).", len(catalog), len(store))


def main() -> None:
    # Load .env before reading settings
    load_dotenv()
    settings = load_settings()
    try:
        import uvloop  # type: ignore
        uvloop.run(run(settings))
    except ImportError:
        asyncio.run(run(settings))


if __name__ == "__main__":
    main()
