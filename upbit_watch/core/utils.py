"""Utility functions for the watch bot."""

from decimal import Decimal, InvalidOperation
from typing import Optional


DEFAULT_TOKEN_DECIMALS = 18
TELEGRAM_MAX_MESSAGE = 4096


def normalize_token_amount(raw_value, decimals=None) -> Decimal:
    """Convert an integer on-chain amount to token units.

    Missing or empty decimals fall back to 18.
    """
    try:
        decimals = int(decimals) if decimals not in (None, "") else DEFAULT_TOKEN_DECIMALS
    except (TypeError, ValueError):
        decimals = DEFAULT_TOKEN_DECIMALS

    try:
        value = Decimal(str(raw_value or 0))
    except InvalidOperation:
        value = Decimal(0)

    return value / (Decimal(10) ** decimals)


def format_amount(amount) -> str:
    """Format a token amount with thousands separators and at most 3 decimals."""
    text = f"{Decimal(amount):,.3f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_usd(amount: float) -> str:
    """Format a USD figure with appropriate precision."""
    if abs(amount) >= 1000:
        return f"${amount:,.0f}"
    elif abs(amount) >= 1:
        return f"${amount:,.2f}"
    else:
        return f"${amount:.4f}"


def short_address(address: Optional[str], length: int = 10) -> str:
    """Shorten an address for display."""
    if not address:
        return "n/a"
    return f"{address[:length]}..."


def truncate_message(text: str, limit: int = TELEGRAM_MAX_MESSAGE) -> str:
    """Trim text to the chat message length limit."""
    if len(text) <= limit:
        return text
    return text[:limit - 4] + "\n..."
