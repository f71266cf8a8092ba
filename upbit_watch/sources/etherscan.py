"""Etherscan token transfer source for watched wallets."""

from typing import Any, Dict, List, Optional
from loguru import logger

from ..core.types import ChangeKind, Entity
from ..core.utils import format_amount, normalize_token_amount
from .base import BaseSource, FetchError, FetchResult, HttpClient


ETHERSCAN_API = "https://api.etherscan.io/v2/api"
ETHERSCAN_TX_URL = "https://etherscan.io/tx/{tx_hash}"


class EtherscanWalletSource(BaseSource):
    """Fetches the latest ERC-20 transfers of each watched wallet.

    Each wallet is its own resource (``wallet:<address>``) so every address
    keeps an independent last-transaction snapshot.
    """

    name = "etherscan"
    kind = ChangeKind.WALLET_RECEIVE

    def __init__(self, http: HttpClient, api_key: str, addresses: List[str],
                 api_url: str = ETHERSCAN_API, chain_id: int = 1, page_size: int = 10):
        super().__init__(http)
        self.api_key = api_key
        self.addresses = list(addresses)
        self.api_url = api_url
        self.chain_id = chain_id
        self.page_size = page_size
        self.last_status: Dict[str, str] = {}

    @staticmethod
    def resource_id(address: str) -> str:
        return f"wallet:{address}"

    async def fetch(self) -> FetchResult:
        result: FetchResult = {}
        errors = []

        for address in self.addresses:
            resource_id = self.resource_id(address)
            try:
                result[resource_id] = await self.fetch_wallet(address)
            except FetchError as e:
                self._log_failure(resource_id, e)
                errors.append(e)

        if errors and not result:
            raise FetchError(f"All wallet fetches failed: {errors[0]}")
        return result

    async def fetch_wallet(self, address: str) -> List[Entity]:
        params = {
            "chainid": self.chain_id,
            "module": "account",
            "action": "tokentx",
            "address": address,
            "page": 1,
            "offset": self.page_size,
            "sort": "desc",
            "apikey": self.api_key,
        }
        data = await self.http.get_json(self.api_url, params=params)

        status = data.get("message") if isinstance(data, dict) else None
        self.last_status[address] = status or "OK"

        entities = self.parse_transfers(address, data)
        if not entities:
            logger.debug(f"Etherscan: no transfers for {address} (status: {status})")
        return entities

    @staticmethod
    def parse_transfers(address: str, data: Any) -> List[Entity]:
        """Normalize a tokentx response, newest first.

        A string ``result`` (Etherscan's error form) or an empty list means no data.
        """
        if not isinstance(data, dict):
            return []
        transfers = data.get("result")
        if not isinstance(transfers, list):
            return []

        entities = []
        for tx in transfers:
            if not isinstance(tx, dict) or not tx.get("hash"):
                continue
            amount = normalize_token_amount(tx.get("value"), tx.get("tokenDecimal"))
            entities.append(Entity(
                key=tx["hash"],
                value=amount,
                payload={
                    "wallet": address,
                    "hash": tx["hash"],
                    "token_name": tx.get("tokenName") or "",
                    "token_symbol": tx.get("tokenSymbol") or "",
                    "contract_address": tx.get("contractAddress") or "",
                    "from": tx.get("from") or "",
                    "to": tx.get("to") or "",
                    "amount": amount,
                    "amount_text": format_amount(amount),
                    "url": ETHERSCAN_TX_URL.format(tx_hash=tx["hash"]),
                },
            ))
        return entities

    def status_for(self, address: str) -> Optional[str]:
        return self.last_status.get(address)
