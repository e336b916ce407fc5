"""
Seoul Open Data adapter — sports facility registry (LOCALDATA_104201).

Endpoint:
  {base_url}/{api_key}/json/LOCALDATA_104201/{start}/{end}/

Rows are 1-indexed and the API caps a page at 1000 rows. One fetch() reads
a single page; the registry only changes weekly, so that is enough for the
crawler's hourly-or-slower rounds.
"""

from __future__ import annotations
import logging
import time

import aiohttp

from crawling.base import CrawlSource
from crawling.normalizer import seoul_rows_to_gyms
from models.events import GymRecord

log = logging.getLogger(__name__)

SERVICE_NAME = "LOCALDATA_104201"


class SeoulOpenApiSource(CrawlSource):
    """
    Fetches the sports facility registry and keeps operating gyms only.
    Without an api key every fetch() returns [] and logs a warning.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "http://openapi.seoul.go.kr:8088",
        page_size: int = 1000,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._page_size = page_size
        self._session = session
        self._owns_session = session is None

    @property
    def name(self) -> str:
        return "seoul_open_api"

    async def startup(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=15, connect=5),
                connector=aiohttp.TCPConnector(limit=2, keepalive_timeout=30),
                headers={"User-Agent": "Mozilla/5.0"},
            )
        log.info("%s source initialized", self.name)

    async def shutdown(self) -> None:
        if self._session and self._owns_session:
            await self._session.close()

    def _url(self, start: int, end: int) -> str:
        return f"{self._base_url}/{self._api_key}/json/{SERVICE_NAME}/{start}/{end}/"

    async def fetch(self) -> list[GymRecord]:
        if not self._api_key:
            log.warning("%s: SEOUL_OPENAPI_KEY is not set, skipping fetch", self.name)
            return []
        assert self._session, "Call startup() first"

        started = time.monotonic()
        async with self._session.get(self._url(1, self._page_size)) as resp:
            resp.raise_for_status()
            data = await resp.json(content_type=None)

        payload = data.get(SERVICE_NAME) if isinstance(data, dict) else None
        if not payload:
            # The API answers 200 with a RESULT block for "no data" and key errors
            result = (data or {}).get("RESULT", {}) if isinstance(data, dict) else {}
            log.warning("%s: empty response (%s)", self.name, result.get("MESSAGE", "no payload"))
            return []

        rows = payload.get("row") or []
        gyms = seoul_rows_to_gyms(rows)
        log.info(
            "%s: %d rows -> %d operating gyms (%.0f ms)",
            self.name, len(rows), len(gyms), (time.monotonic() - started) * 1000,
        )
        return gyms
