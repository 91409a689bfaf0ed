"""Imzo AI Telegram bridge bot."""

__version__ = "1.0.0"
