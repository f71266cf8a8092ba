"""Dexscreener 24h volume source for watch-listed tokens."""

from typing import Any, Dict, Optional
from loguru import logger

from ..core.types import ChangeKind, Entity
from ..core.watchlist import WatchList
from .base import BaseSource, FetchError, FetchResult, HttpClient


DEXSCREENER_TOKENS_API = "https://api.dexscreener.com/latest/dex/tokens"
DEXSCREENER_TOKEN_URL = "https://dexscreener.com/ethereum/{address}"


class DexscreenerVolumeSource(BaseSource):
    """Fetches the summed 24h volume of every watch-listed token contract."""

    name = "dexscreener"
    kind = ChangeKind.VOLUME_SPIKE
    resource_id = "dexscreener:volume"

    def __init__(self, http: HttpClient, watchlist: WatchList,
                 api_url: str = DEXSCREENER_TOKENS_API):
        super().__init__(http)
        self.watchlist = watchlist
        self.api_url = api_url.rstrip("/")

    async def fetch(self) -> FetchResult:
        entities = []
        errors = []

        for address in self.watchlist:
            try:
                entity = await self.fetch_token(address)
            except FetchError as e:
                self._log_failure(f"{self.resource_id}/{address}", e)
                errors.append(e)
                continue
            if entity is not None:
                entities.append(entity)

        if errors and not entities:
            raise FetchError(f"All volume fetches failed: {errors[0]}")
        return {self.resource_id: entities}

    async def fetch_token(self, address: str) -> Optional[Entity]:
        data = await self.http.get_json(f"{self.api_url}/{address}")
        entity = self.parse_volume(address, data)
        if entity is None:
            logger.debug(f"Dexscreener: no pairs for {address}")
        return entity

    @staticmethod
    def parse_volume(address: str, data: Any) -> Optional[Entity]:
        """Sum ``volume.h24`` across all pairs; no pairs means no data."""
        if not isinstance(data, dict):
            return None
        pairs = data.get("pairs")
        if not isinstance(pairs, list) or not pairs:
            return None

        volume = 0.0
        for pair in pairs:
            if not isinstance(pair, dict):
                continue
            try:
                volume += float((pair.get("volume") or {}).get("h24") or 0)
            except (TypeError, ValueError):
                continue

        token = _token_info(address, pairs)
        return Entity(
            key=address.lower(),
            value=volume,
            payload={
                "address": address,
                "name": token.get("name") or "",
                "symbol": token.get("symbol") or "",
                "volume": volume,
                "pairs": len(pairs),
                "url": DEXSCREENER_TOKEN_URL.format(address=address),
            },
        )


def _token_info(address: str, pairs) -> Dict[str, Any]:
    target = address.lower()
    for pair in pairs:
        if not isinstance(pair, dict):
            continue
        for side in ("baseToken", "quoteToken"):
            token = pair.get(side) or {}
            if str(token.get("address", "")).lower() == target:
                return token
    return {}
