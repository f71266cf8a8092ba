"""Runtime-mutable list of token contracts under volume surveillance."""

import re
from typing import Iterable, List, Optional
from loguru import logger


ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$", re.IGNORECASE)


class InvalidAddressError(ValueError):
    """Raised when a token contract address is not 0x + 40 hex characters."""
    pass


def is_valid_address(address: str) -> bool:
    """Check the strict 0x-prefixed 40 hex character format."""
    return bool(address) and ADDRESS_PATTERN.fullmatch(address) is not None


class WatchList:
    """Ordered set of token contract addresses.

    Membership is checked on the literal string, so the same contract written
    with different letter case counts as a different entry.
    """

    def __init__(self, addresses: Optional[Iterable[str]] = None):
        self._addresses: List[str] = []
        for address in addresses or []:
            try:
                self.add(address)
            except InvalidAddressError:
                logger.warning(f"Ignoring invalid watch token from config: {address}")

    def add(self, address: str) -> bool:
        """Append an address. Returns False if it is already listed."""
        address = (address or "").strip()
        if not is_valid_address(address):
            raise InvalidAddressError(f"Invalid token contract address: {address!r}")
        if address in self._addresses:
            return False
        self._addresses.append(address)
        logger.info(f"Watch list: added {address}")
        return True

    def remove(self, address: str) -> bool:
        """Remove an address. Returns False if it was not listed."""
        address = (address or "").strip()
        if not is_valid_address(address):
            raise InvalidAddressError(f"Invalid token contract address: {address!r}")
        if address not in self._addresses:
            return False
        self._addresses.remove(address)
        logger.info(f"Watch list: removed {address}")
        return True

    @property
    def addresses(self) -> List[str]:
        return list(self._addresses)

    def __contains__(self, address: str) -> bool:
        return address in self._addresses

    def __iter__(self):
        return iter(list(self._addresses))

    def __len__(self) -> int:
        return len(self._addresses)
