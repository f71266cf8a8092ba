"""Event journaling for the watch bot."""

from .journal import EventJournal

__all__ = [
    'EventJournal'
]
