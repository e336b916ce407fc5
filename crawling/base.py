"""
Abstract interface for gym data sources.

Every source (Seoul Open API today, search-engine scrapers later) implements
this interface. The CrawlerAgent depends only on this class and wraps each
fetch() in the source's own circuit breaker.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from models.events import GymRecord


class CrawlSource(ABC):

    @abstractmethod
    async def startup(self) -> None:
        """Open sessions. Called once by the CrawlerAgent before the first fetch."""
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Clean up connections."""
        ...

    @abstractmethod
    async def fetch(self) -> list[GymRecord]:
        """
        Fetch and normalize one full snapshot from the provider.
        Must raise on transport or HTTP errors so the breaker can count them;
        returning [] means "the provider answered with nothing".
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and breaker naming."""
        ...
