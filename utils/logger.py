"""
Logging setup shared by the crawler and reward services.
Call setup_logging() once at startup in main.py, before any agent is built.
"""

from __future__ import annotations
import logging
import sys
import time

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s | mono_ms=%(mono_ms).1f | %(message)s"


class _MonotonicFormatter(logging.Formatter):
    """Stamps a monotonic millisecond clock so breaker timings line up with logs."""

    def format(self, record: logging.LogRecord) -> str:
        record.mono_ms = time.monotonic() * 1000
        return super().format(record)


def setup_logging(level: str = "INFO", quiet_loggers: tuple[str, ...] = ("aiohttp.access",)) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_MonotonicFormatter(fmt=_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    root = logging.getLogger()
    root.setLevel(numeric)
    root.handlers.clear()
    root.addHandler(handler)
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)
