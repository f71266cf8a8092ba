"""Telegram bot application: command handlers, pollers and keep-alive server."""

import asyncio
from typing import List, Optional
from loguru import logger
from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes

from ..config import Config
from ..core.factory import PollerFactory
from ..core.history import EventHistory
from ..core.watchlist import WatchList
from ..notify.telegram import TelegramNotifier
from ..server.keepalive import KeepAliveServer
from ..storage.journal import EventJournal
from .commands import CommandDispatcher


class UpbitWatchBot:
    """Wires the pollers, the command dispatcher and Telegram together."""

    def __init__(self, config: Config):
        config.check_required()
        self.config = config

        self.application = Application.builder().token(config.telegram.token).build()
        self.notifier = TelegramNotifier(config.telegram, bot=self.application.bot)
        self.journal = EventJournal(config.logging.logs_dir)
        self.history = EventHistory(config.history.capacity)
        self.watchlist = WatchList(config.volume.watch_tokens)

        self.pollers = PollerFactory.create_pollers(
            config, self.watchlist,
            notifier=self.notifier, history=self.history, journal=self.journal,
        )
        self.dispatcher = CommandDispatcher(config, self.pollers, self.watchlist, self.history, self.journal)
        self.keepalive = KeepAliveServer(config.server.host, config.server.port) if config.server.enable_keepalive else None

        self.running = False
        self._tasks: List[asyncio.Task] = []
        self._stop_event: Optional[asyncio.Event] = None

        self._setup_handlers()
        logger.info("Upbit watch bot initialized")

    def _setup_handlers(self):
        """Register one handler per dispatcher command."""
        for command in CommandDispatcher.COMMANDS:
            self.application.add_handler(CommandHandler(command, self._make_handler(command)))
        self.application.add_error_handler(self._on_error)

    def _make_handler(self, command: str):
        async def handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
            chat_id = update.effective_chat.id
            progress = CommandDispatcher.PROGRESS_MESSAGES.get(command)
            if progress:
                await self.notifier.send_message(progress, chat_id=chat_id)

            for reply in await self.dispatcher.handle(command, context.args):
                await self.notifier.send_message(reply, chat_id=chat_id)
        return handler

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        logger.error(f"Polling error: {context.error}")

    async def start(self):
        """Start Telegram polling, the keep-alive server and every poller."""
        if self.running:
            return

        self._stop_event = asyncio.Event()
        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling(poll_interval=0.3, timeout=10)

        if self.keepalive:
            await self.keepalive.start()

        for poller in self.pollers.values():
            self._tasks.append(asyncio.create_task(poller.run()))

        self.running = True
        self.journal.record("🔥 Upbit Listing Bot Started...")

    async def run_forever(self):
        """Start and block until :meth:`stop` is called."""
        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()

    async def stop(self):
        """Stop pollers, the keep-alive server and Telegram."""
        if not self.running:
            return

        logger.info("Stopping Upbit watch bot")
        self.running = False

        for poller in self.pollers.values():
            poller.stop()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        try:
            if self.keepalive:
                await self.keepalive.stop()
            await self.application.updater.stop()
            await self.application.stop()
            await self.application.shutdown()
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")

        if self._stop_event is not None:
            self._stop_event.set()
        logger.info("Upbit watch bot stopped")
