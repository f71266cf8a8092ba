"""Telegram notifications for the Upbit watch bot."""

import asyncio
import time
from typing import Optional, Union
from loguru import logger
from telegram import Bot
from telegram.error import TelegramError

from ..config import TelegramConfig
from ..core.types import ChangeEvent
from ..core.utils import truncate_message
from .formatting import format_event


class TelegramNotifier:
    """Delivers messages to the configured chat.

    Delivery failures are logged and reported through the return value,
    never retried and never raised.
    """

    def __init__(self, config: TelegramConfig, bot: Optional[Bot] = None):
        self.config = config
        self.enabled = bool(config.token and config.chat_id)
        self.bot = bot if bot is not None else (Bot(token=config.token) if config.token else None)

        # Rate limiting
        self.last_message_time = 0.0
        self.min_interval_ms = config.min_interval_ms
        self.sent_count = 0
        self.error_count = 0

        if not self.enabled:
            logger.warning("Telegram notifications disabled - missing token or chat ID")

    async def send_message(self, text: str, chat_id: Optional[Union[int, str]] = None,
                           parse_mode: Optional[str] = None) -> bool:
        """Send a message, by default to the configured chat."""
        if not self.enabled or self.bot is None:
            logger.info(f"Telegram (disabled) message: {text}")
            return False

        try:
            current_time = time.time() * 1000
            elapsed = current_time - self.last_message_time
            if elapsed < self.min_interval_ms:
                await asyncio.sleep((self.min_interval_ms - elapsed) / 1000)

            await self.bot.send_message(
                chat_id=chat_id if chat_id is not None else self.config.chat_id,
                text=truncate_message(text),
                parse_mode=parse_mode or self.config.parse_mode,
            )

            self.last_message_time = time.time() * 1000
            self.sent_count += 1
            return True

        except TelegramError as e:
            logger.error(f"TG send error: {e}")
            self.error_count += 1
            return False

    async def notify(self, event: ChangeEvent) -> bool:
        """Format and deliver one change event."""
        return await self.send_message(format_event(event))
