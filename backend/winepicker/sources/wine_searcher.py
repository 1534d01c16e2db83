import asyncio
from urllib.parse import quote

import httpx
import structlog
from bs4 import BeautifulSoup, Comment, NavigableString

from winepicker.core.config import settings
from winepicker.core.pricing import extract_dollar_prices, summarize_prices
from winepicker.sources.base import PriceSource, WinePrice

logger = structlog.get_logger(__name__)


class WineSearcherSource(PriceSource):
    name = "wine-searcher"
    BASE_URL = "https://www.wine-searcher.com/find"

    def __init__(
        self,
        timeout: float | None = None,
        retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout or settings.SCRAPER_TIMEOUT_SECONDS
        if retries is None:
            retries = settings.SCRAPER_RETRIES
        # at least one request is always made
        self.retries = max(1, retries)
        self.transport = transport

    # -------------------------
    # Public API
    # -------------------------

    async def fetch(
        self, producer: str, wine_name: str, vintage: int | None = None
    ) -> WinePrice:
        url = self.search_url(producer, wine_name, vintage)

        try:
            async with httpx.AsyncClient(
                headers=self._build_headers(),
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await self._fetch_with_retries(client, url)
        except httpx.HTTPError as exc:
            logger.warning("scraper.failed", url=url, error=str(exc))
            return WinePrice.empty(self.name)

        try:
            return self.parse(response.text)
        except Exception as exc:
            logger.warning("scraper.parse_failed", url=url, error=str(exc))
            return WinePrice.empty(self.name)

    def search_url(
        self, producer: str, wine_name: str, vintage: int | None = None
    ) -> str:
        terms = f"{producer} {wine_name}"
        if vintage:
            terms = f"{terms} {vintage}"
        return f"{self.BASE_URL}/{quote(terms, safe='')}/1/usa"

    def parse(self, html: str) -> WinePrice:
        soup = BeautifulSoup(html, "html.parser")

        prices: list[float] = []
        for el in soup.find_all(True):
            prices.extend(extract_dollar_prices(self._own_text(el)))

        avg_price, min_price, max_price = summarize_prices(prices)
        if avg_price is None:
            logger.info("scraper.no_prices", source=self.name)

        return WinePrice(
            avg_price=avg_price,
            min_price=min_price,
            max_price=max_price,
            currency="USD",
            source=self.name,
        )

    # -------------------------
    # Transport layer
    # -------------------------

    async def _fetch_with_retries(
        self, client: httpx.AsyncClient, url: str
    ) -> httpx.Response:
        for attempt in range(self.retries):
            try:
                resp = await client.get(url)
                resp.raise_for_status()
                return resp
            except httpx.HTTPError:
                if attempt == self.retries - 1:
                    raise
                await asyncio.sleep(2**attempt)

    def _build_headers(self) -> dict:
        return {
            "User-Agent": (
                "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/120.0.0.0 Safari/537.36"
            ),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    # -------------------------
    # Parsing helpers
    # -------------------------

    def _own_text(self, el) -> str:
        # text directly inside the element, not inside its children
        return "".join(
            str(child)
            for child in el.children
            if isinstance(child, NavigableString) and not isinstance(child, Comment)
        )
