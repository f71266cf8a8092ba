"""Chat command handling.

Commands are plain ``/name [argument]`` strings. Each handler runs to
completion and returns the reply messages; wiring them to Telegram lives in
:mod:`upbit_watch.bot.app`.
"""

from typing import Dict, List, Optional, Sequence
from loguru import logger

from ..config import Config
from ..core.history import EventHistory
from ..core.poller import Poller, PollResult
from ..core.utils import TELEGRAM_MAX_MESSAGE
from ..core.watchlist import InvalidAddressError, WatchList
from ..notify.formatting import (
    code, format_alerts, format_error, format_volume_report, format_wallet_report, format_watchlist, md,
)
from ..storage.journal import EventJournal


MENU_TEXT = """🔥 *Upbit Listing Detector Menu*

*Commands:*
/start - Main menu
/features - Show active features
/checknow - Run every check now
/scanwallet - Scan Upbit wallet transfers
/scanvolume - Show 24h volume of watched tokens
/watchlist - Show watched tokens
/addtoken <contract> - Watch a token for volume spikes
/removetoken <contract> - Stop watching a token
/alerts - Recent alerts
/logs - Today's log
"""

INVALID_ADDRESS_TEXT = "❌ Invalid contract address. Expected 0x followed by 40 hex characters."


class CommandDispatcher:
    """Maps command names to synchronous poller runs and state queries."""

    COMMANDS = (
        "start", "help", "features", "checknow", "scanwallet", "scanvolume",
        "addtoken", "removetoken", "watchlist", "alerts", "logs",
    )

    PROGRESS_MESSAGES = {
        "checknow": "⏳ Running manual check...",
        "scanwallet": "⏳ Scanning Upbit wallet transactions...",
        "scanvolume": "⏳ Checking watch-list volumes...",
    }

    def __init__(self, config: Config, pollers: Dict[str, Poller], watchlist: WatchList,
                 history: EventHistory, journal: EventJournal):
        self.config = config
        self.pollers = pollers
        self.watchlist = watchlist
        self.history = history
        self.journal = journal

    async def handle(self, command: str, args: Optional[Sequence[str]] = None) -> List[str]:
        """Run a command and return the reply messages."""
        command = command.lstrip("/").lower()
        argument = args[0] if args else None

        try:
            if command in ("start", "help"):
                return [MENU_TEXT]
            elif command == "features":
                return [self.features_text()]
            elif command == "checknow":
                return await self.check_now()
            elif command == "scanwallet":
                return [await self.scan_wallet()]
            elif command == "scanvolume":
                return [await self.scan_volume()]
            elif command == "addtoken":
                return [self.add_token(argument)]
            elif command == "removetoken":
                return [self.remove_token(argument)]
            elif command == "watchlist":
                return [format_watchlist(self.watchlist.addresses)]
            elif command == "alerts":
                return [format_alerts(self.history.recent(self.config.history.show_limit))]
            elif command == "logs":
                return [self.logs_text()]
            else:
                return [f"❓ Unknown command: /{md(command)}\nUse /start for available commands."]

        except Exception as e:
            logger.error(f"Error handling command {command}: {e}")
            return [format_error(f"/{command}", e)]

    def features_text(self) -> str:
        listings = self.pollers.get("listings")
        wallet = self.pollers.get("wallet")
        volume = self.pollers.get("volume")

        lines = ["*Active Features*"]
        if listings:
            lines.append(f"• Upbit new listing detector (every {listings.interval_seconds:.0f}s)")
        if wallet:
            lines.append(
                f"• Upbit wallet incoming token tracker: {len(self.config.wallet.addresses)} "
                f"wallet(s), every {wallet.interval_seconds:.0f}s"
            )
        else:
            lines.append("• Upbit wallet tracker: disabled (set ETHERSCAN\\_API and UPBIT\\_WALLET)")
        if volume:
            lines.append(
                f"• Volume spike watch: {len(self.watchlist)} token(s), every {volume.interval_seconds:.0f}s, "
                f"alert above x{self.config.volume.spike_ratio:g} and ${self.config.volume.min_volume:,.0f}"
            )
        lines.append(f"• Recent alerts buffer ({self.config.history.capacity} events)")
        return "\n".join(lines)

    async def check_now(self) -> List[str]:
        replies = []

        listings = self.pollers.get("listings")
        if listings:
            result = await listings.poll_once()
            replies.append(self._listing_report(result))

        replies.append(await self.scan_wallet())

        if self.pollers.get("volume"):
            replies.append(await self.scan_volume())

        replies.append("✅ Manual check finished.")
        return replies

    def _listing_report(self, result: PollResult) -> str:
        if not result.ok:
            return format_error("Upbit market check", result.error)
        markets = sum(len(entities) for entities in result.fetched.values())
        if result.events:
            names = ", ".join(code(event.key) for event in result.events)
            return f"🚀 Upbit: {len(result.events)} new listing(s): {names}"
        return f"✅ Upbit: {markets} markets checked, no new listings."

    async def scan_wallet(self) -> str:
        poller = self.pollers.get("wallet")
        if poller is None:
            return "⚠️ ETHERSCAN\\_API or UPBIT\\_WALLET is not set in .env."

        result = await poller.poll_once()
        if not result.ok:
            return format_error("Upbit wallet scan", result.error)

        source = poller.source
        reports = []
        for address in source.addresses:
            transfers = result.fetched.get(source.resource_id(address))
            if transfers is None:
                reports.append(format_error(f"Wallet {address[:10]}... scan", "request failed"))
                continue
            reports.append(format_wallet_report(address, transfers, status=source.status_for(address)))
        return "\n\n".join(reports)

    async def scan_volume(self) -> str:
        poller = self.pollers.get("volume")
        if poller is None:
            return "⚠️ Volume watch is disabled."

        result = await poller.poll_once()
        if not result.ok:
            return format_error("Volume check", result.error)

        entities = [entity for entities in result.fetched.values() for entity in entities]
        text = format_volume_report(entities, self.watchlist.addresses)
        if result.events:
            text += f"\n\n📈 {len(result.events)} spike alert(s) sent."
        return text

    def add_token(self, address: Optional[str]) -> str:
        if not address:
            return "Usage: /addtoken <contract address>"
        try:
            added = self.watchlist.add(address)
        except InvalidAddressError:
            return INVALID_ADDRESS_TEXT
        if not added:
            return f"ℹ️ {code(address)} is already on the watch list."
        self.journal.record(f"Watch list add: {address}")
        return f"✅ Added {code(address)} to the watch list ({len(self.watchlist)} token(s))."

    def remove_token(self, address: Optional[str]) -> str:
        if not address:
            return "Usage: /removetoken <contract address>"
        try:
            removed = self.watchlist.remove(address)
        except InvalidAddressError:
            return INVALID_ADDRESS_TEXT
        if not removed:
            return f"ℹ️ {code(address)} is not on the watch list."
        self.journal.record(f"Watch list remove: {address}")
        return f"🗑️ Removed {code(address)} from the watch list."

    def logs_text(self) -> str:
        today = self.journal.today()
        lines = self.journal.tail(self.config.logging.tail_lines)
        if lines is None:
            return f"📝 No log for today yet ({today})"
        if not lines:
            return "Log is empty."

        header = f"📝 *Today's Log ({today})*\n\n```\n"
        footer = "\n```"
        budget = TELEGRAM_MAX_MESSAGE - len(header) - len(footer)

        # Keep the newest lines that fit in one message
        kept: List[str] = []
        size = 0
        for line in reversed(lines):
            line = line.replace("`", "'")
            if size + len(line) + 1 > budget:
                break
            kept.append(line)
            size += len(line) + 1

        return header + "\n".join(reversed(kept)) + footer
