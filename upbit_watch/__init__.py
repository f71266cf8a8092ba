"""Upbit new listing, wallet transfer and volume spike watch bot."""

__version__ = "1.0.0"
