"""
Session Logger Middleware - логирование переходов состояния диалога

Логирует состояние сессии до и после handler и фиксирует изменения.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import Message

from ...infrastructure.session_store import SessionStore

logger = logging.getLogger(__name__)


class SessionLoggerMiddleware(BaseMiddleware):
    """Middleware для логирования переходов ConversationState"""

    def __init__(self, sessions: SessionStore):
        self.sessions = sessions

    async def __call__(
        self,
        handler: Callable[[Message, Dict[str, Any]], Awaitable[Any]],
        event: Message,
        data: Dict[str, Any]
    ) -> Any:
        chat = getattr(event, "chat", None)
        if chat is None:
            return await handler(event, data)

        before = (await self.sessions.get(chat.id)).state
        logger.debug(f"🔄 Session [BEFORE]: chat={chat.id}, state={before.value}")

        result = await handler(event, data)

        after = (await self.sessions.get(chat.id)).state
        if after != before:
            logger.info(f"✨ Session [CHANGED]: chat={chat.id}, {before.value} → {after.value}")

        return result
