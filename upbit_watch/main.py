"""Main entry point for the Upbit watch bot."""

import asyncio
import sys
from typing import Optional
import click
from loguru import logger

from .config import ConfigError, get_config, Config


def setup_logging(config: Config, level: Optional[str] = None):
    """Install the stderr sink and, when configured, the debug file sink."""
    logger.remove()
    logger.add(sys.stderr, level=(level or config.logging.level).upper(),
               format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>")
    if config.logging.file:
        logger.add(config.logging.file, level="DEBUG",
                   format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}")


def load_config(config_path: Optional[str]) -> Config:
    try:
        return get_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)


@click.group()
def cli():
    """Upbit listing, wallet and volume watch bot."""
    pass


@cli.command()
@click.option('--config', 'config_path', type=click.Path(exists=True), default=None,
              help='Path to YAML config file (default: environment / .env)')
@click.option('--log-level', default=None, help='Override log level')
def run(config_path, log_level):
    """Run the bot: pollers, chat commands and keep-alive server."""
    config = load_config(config_path)
    setup_logging(config, log_level)

    try:
        config.check_required()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    from .bot.app import UpbitWatchBot
    bot = UpbitWatchBot(config)

    try:
        asyncio.run(bot.run_forever())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")


@cli.command()
@click.option('--config', 'config_path', type=click.Path(exists=True), default=None,
              help='Path to YAML config file (default: environment / .env)')
def check(config_path):
    """Run every check once and print the reports (no Telegram needed)."""
    config = load_config(config_path)
    logger.remove()
    logger.add(sys.stderr, level="WARNING")

    from .bot.commands import CommandDispatcher
    from .core.factory import PollerFactory
    from .core.history import EventHistory
    from .core.watchlist import WatchList
    from .storage.journal import EventJournal

    async def run_checks():
        watchlist = WatchList(config.volume.watch_tokens)
        history = EventHistory(config.history.capacity)
        journal = EventJournal(config.logging.logs_dir)
        pollers = PollerFactory.create_pollers(config, watchlist, history=history, journal=journal)
        dispatcher = CommandDispatcher(config, pollers, watchlist, history, journal)

        # First cycle only primes snapshots; report what was fetched
        for reply in await dispatcher.handle("checknow"):
            print(reply)
            print()

    asyncio.run(run_checks())


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
