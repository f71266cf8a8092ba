"""Notification modules for the watch bot."""

from .telegram import TelegramNotifier
from .formatting import format_event

__all__ = ["TelegramNotifier", "format_event"]
