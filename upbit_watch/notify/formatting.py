"""Markdown message formatting for chat notifications and command replies."""

from typing import Iterable, List, Optional
from telegram.helpers import escape_markdown

from ..core.types import ChangeEvent, ChangeKind, Entity
from ..core.utils import format_usd, short_address


def md(text) -> str:
    """Escape free text for Telegram's legacy Markdown mode.

    Legacy Markdown ignores escapes inside an entity, so escaped text must
    never be wrapped in ``*...*`` or ``_..._``.
    """
    return escape_markdown(str(text if text is not None else ""), version=1)


def code(text) -> str:
    """Inline code span; backticks cannot be escaped inside one."""
    return f"`{str(text or '').replace('`', '')}`"


def format_event(event: ChangeEvent) -> str:
    """Render a change event as a notification message."""
    if event.kind == ChangeKind.NEW_LISTING:
        return format_listing_event(event)
    if event.kind == ChangeKind.WALLET_RECEIVE:
        return format_wallet_event(event)
    return format_volume_event(event)


def format_listing_event(event: ChangeEvent) -> str:
    p = event.payload
    return (
        "🚀 *UPBIT NEW LISTING DETECTED!*\n\n"
        f"🪙 {md(p.get('english_name'))} ({md(p.get('korean_name'))})\n"
        f"📊 Market: {code(p.get('market', event.key))}\n"
        f"🔗 {md(p.get('url', ''))}\n\n"
        f"⏰ Detected at: {event.timestamp.isoformat()}"
    )


def format_wallet_event(event: ChangeEvent) -> str:
    p = event.payload
    return (
        "💰 *NEW TOKEN TRANSFER ON UPBIT WALLET*\n\n"
        f"Wallet: {code(short_address(p.get('wallet')))}\n"
        f"{_transfer_block(p)}\n"
        f"⏰ Detected at: {event.timestamp.isoformat()}"
    )


def format_volume_event(event: ChangeEvent) -> str:
    p = event.payload
    ratio = p.get("ratio")
    ratio_text = f" (x{ratio:.2f})" if ratio else ""
    return (
        "📈 *VOLUME SPIKE DETECTED*\n\n"
        f"🪙 {md(p.get('name') or p.get('symbol') or 'Unknown')} ({md(p.get('symbol') or '?')})\n"
        f"Contract: {code(p.get('address', event.key))}\n"
        f"24h Volume: *{format_usd(p.get('volume', 0.0))}*{ratio_text}\n"
        f"Previous: {format_usd(p.get('previous', 0.0))}\n"
        f"🔗 {md(p.get('url', ''))}\n\n"
        f"⏰ Detected at: {event.timestamp.isoformat()}"
    )


def _transfer_block(payload) -> str:
    name = payload.get("token_name") or payload.get("contract_address")
    return (
        f"🪙 {md(name)} ({md(payload.get('token_symbol') or '?')})\n"
        f"Amount: {md(payload.get('amount_text', '0'))}\n"
        f"From: {code(short_address(payload.get('from')))}\n"
        f"[View Tx]({payload.get('url', '')})\n"
    )


def format_wallet_report(address: str, transfers: List[Entity], limit: int = 5,
                         status: Optional[str] = None) -> str:
    """Report of the most recent transfers for one wallet."""
    if not transfers:
        return (
            f"🔍 No recent incoming tokens for {code(short_address(address))}.\n\n"
            f"Status: {md(status or 'OK')}"
        )

    text = f"🔍 *Tokens Received by Upbit Wallet*\nAddress: {code(short_address(address))}\n\n"
    for entity in transfers[:limit]:
        text += _transfer_block(entity.payload) + "\n"
    return text.rstrip()


def format_volume_report(entities: Iterable[Entity], watch_tokens: List[str]) -> str:
    """Current 24h volumes for the watch list."""
    if not watch_tokens:
        return "📭 Watch list is empty. Add a token with /addtoken <contract>."

    by_key = {entity.key: entity for entity in entities}
    lines = ["📊 *24h Volume: Watch List*", ""]
    for address in watch_tokens:
        entity = by_key.get(address.lower())
        if entity is None:
            lines.append(f"• {code(address)}: no data")
            continue
        symbol = entity.payload.get("symbol") or short_address(address)
        lines.append(f"• {md(symbol)} {code(short_address(address))}: {format_usd(entity.value)}")
    return "\n".join(lines)


def format_alerts(events: List[ChangeEvent]) -> str:
    """Recent alerts, most recent first."""
    if not events:
        return "📭 No alerts recorded since startup."

    lines = [f"🔔 *Recent Alerts* (last {len(events)})", ""]
    for event in events:
        lines.append(f"• {event.timestamp.strftime('%Y-%m-%d %H:%M:%S')} | {md(event.summary)}")
    return "\n".join(lines)


def format_watchlist(addresses: List[str]) -> str:
    if not addresses:
        return "📭 Watch list is empty. Add a token with /addtoken <contract>."
    lines = [f"👀 *Watch List* ({len(addresses)})", ""]
    lines.extend(f"{i}. {code(address)}" for i, address in enumerate(addresses, 1))
    return "\n".join(lines)


def format_error(context: str, error) -> str:
    return f"⚠️ {md(context)} failed: {md(error)}"
