"""Telegram presentation layer."""

from .handlers import create_telegram_handlers
from .middleware import SessionLoggerMiddleware
from .transport import TelegramTransport

__all__ = [
    "create_telegram_handlers",
    "SessionLoggerMiddleware",
    "TelegramTransport",
]
