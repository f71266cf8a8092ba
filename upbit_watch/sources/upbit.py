"""Upbit market listing source."""

from typing import Any, List
from loguru import logger

from ..core.types import ChangeKind, Entity
from .base import BaseSource, FetchResult, HttpClient


UPBIT_MARKET_API = "https://api.upbit.com/v1/market/all"
UPBIT_EXCHANGE_URL = "https://upbit.com/exchange?code=CRIX.UPBIT.{market}"


class UpbitListingSource(BaseSource):
    """Fetches every market listed on Upbit, keyed by market symbol."""

    name = "upbit"
    kind = ChangeKind.NEW_LISTING
    resource_id = "upbit:markets"

    def __init__(self, http: HttpClient, api_url: str = UPBIT_MARKET_API):
        super().__init__(http)
        self.api_url = api_url

    async def fetch(self) -> FetchResult:
        data = await self.http.get_json(self.api_url)
        entities = self.parse_markets(data)
        logger.debug(f"Upbit: fetched {len(entities)} markets")
        return {self.resource_id: entities}

    @staticmethod
    def parse_markets(data: Any) -> List[Entity]:
        """Normalize the market/all response; anything but a list means no data."""
        if not isinstance(data, list):
            return []

        entities = []
        for record in data:
            if not isinstance(record, dict) or not record.get("market"):
                continue
            market = record["market"]
            entities.append(Entity(
                key=market,
                payload={
                    "market": market,
                    "korean_name": record.get("korean_name") or "",
                    "english_name": record.get("english_name") or "",
                    "url": UPBIT_EXCHANGE_URL.format(market=market),
                },
            ))
        return entities
