"""Telegram command surface for the watch bot."""

from .commands import CommandDispatcher

__all__ = ["CommandDispatcher"]
