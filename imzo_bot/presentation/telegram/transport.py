"""Telegram implementation of the chat transport."""

import asyncio
import logging
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest

from ...application.interfaces import IChatTransport
from .message_splitter import split_message

logger = logging.getLogger(__name__)

PART_DELAY_SECONDS = 0.3


class TelegramTransport(IChatTransport):
    """
    Sends text through the Bot API.

    Backend answers are free text, so a chunk rejected by the Markdown parser
    is resent as plain text. API failures are logged and reported as False,
    never raised: one chat must not break the update loop.
    """

    def __init__(self, bot: Bot, parse_mode: Optional[str] = "Markdown"):
        self.bot = bot
        self.parse_mode = parse_mode

    async def send_text(self, chat_id: int, text: str) -> bool:
        parts = split_message(text)

        for i, part in enumerate(parts):
            if not await self._send_part(chat_id, part):
                return False

            # Небольшая задержка между сообщениями
            if i < len(parts) - 1:
                await asyncio.sleep(PART_DELAY_SECONDS)

        if len(parts) > 1:
            logger.info(f"📤 Long message sent to chat {chat_id} in {len(parts)} parts")

        return True

    async def _send_part(self, chat_id: int, text: str) -> bool:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, parse_mode=self.parse_mode)
            return True
        except TelegramBadRequest as e:
            if self.parse_mode is None:
                logger.error(f"❌ Telegram rejected message to chat {chat_id}: {e}")
                return False
            logger.warning(f"Telegram could not parse message to chat {chat_id}, resending as plain text: {e}")
        except TelegramAPIError as e:
            logger.error(f"❌ Telegram send error for chat {chat_id}: {e}")
            return False

        try:
            await self.bot.send_message(chat_id=chat_id, text=text, parse_mode=None)
            return True
        except TelegramAPIError as e:
            logger.error(f"❌ Telegram send error for chat {chat_id}: {e}")
            return False
