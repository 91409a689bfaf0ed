"""
Telegram handlers - чистый routing без бизнес-логики

Каждое текстовое сообщение передаётся в ConversationService.
"""

import logging
from functools import partial

from aiogram import Dispatcher, F
from aiogram.types import Message

from ...application.conversation import ConversationService
from .middleware import SessionLoggerMiddleware

logger = logging.getLogger(__name__)


async def handle_text_message(message: Message, conversation: ConversationService) -> None:
    """Handler для текстовых сообщений (включая /start)"""
    await conversation.handle_message(message.chat.id, message.text)


async def handle_other_message(message: Message) -> None:
    """Стикеры, фото и прочее не участвуют в диалоге"""
    logger.debug(f"Ignoring non-text message in chat {message.chat.id}")


def create_telegram_handlers(dp: Dispatcher, conversation: ConversationService) -> None:
    """Регистрация middleware и handlers"""
    dp.message.middleware(SessionLoggerMiddleware(conversation.sessions))

    dp.message.register(
        partial(handle_text_message, conversation=conversation),
        F.text
    )
    dp.message.register(handle_other_message)

    logger.info("✅ Telegram handlers registered")
