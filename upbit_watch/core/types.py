"""
Shared types for the watch bot.
Kept separate so sources, detectors and notifiers can import them without cycles.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from dataclasses import dataclass, field
from enum import Enum


class ChangeKind(Enum):
    """Kind of detected change."""
    NEW_LISTING = "new_listing"
    WALLET_RECEIVE = "wallet_receive"
    VOLUME_SPIKE = "volume_spike"


@dataclass
class Entity:
    """One normalized item fetched from an upstream resource."""
    key: str
    value: Optional[Any] = None
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChangeEvent:
    """A detected state change worth notifying about."""
    kind: ChangeKind
    key: str
    resource_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)

    @property
    def summary(self) -> str:
        """Short one-line description used in logs and the alerts list."""
        if self.kind == ChangeKind.NEW_LISTING:
            name = self.payload.get("english_name") or ""
            return f"New listing {self.key}" + (f" ({name})" if name else "")
        if self.kind == ChangeKind.WALLET_RECEIVE:
            symbol = self.payload.get("token_symbol") or self.payload.get("contract_address", "")
            return f"Wallet {self.payload.get('wallet', '')[:10]}... transfer {self.payload.get('amount_text', '')} {symbol}"
        symbol = self.payload.get("symbol") or self.key
        ratio = self.payload.get("ratio")
        ratio_text = f" x{ratio:.2f}" if ratio else ""
        return f"Volume spike {symbol}{ratio_text}"
