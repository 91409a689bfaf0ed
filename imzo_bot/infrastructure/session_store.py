"""
In-memory Session Store

Хранит состояние диалога для каждого чата.

Правила:
- Сессия создаётся лениво в IDLE при первом обращении
- Все изменения идут через mutate() под общим asyncio.Lock
- Наружу отдаются только копии, ссылки на хранимые объекты не утекают
- Внутри lock никаких сетевых вызовов
"""

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Dict, TypeVar

from ..domain.entities import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionStore:
    """Concurrency-safe mapping chat_id -> Session"""

    def __init__(self):
        self._sessions: Dict[int, Session] = {}
        self._lock = asyncio.Lock()

    def _get_or_create(self, chat_id: int) -> Session:
        session = self._sessions.get(chat_id)
        if session is None:
            session = Session(chat_id=chat_id)
            self._sessions[chat_id] = session
            logger.info(f"📋 Created new session for chat {chat_id}")
        return session

    async def get(self, chat_id: int) -> Session:
        """
        Получить снимок сессии (создаёт IDLE сессию если её нет)

        Args:
            chat_id: ID чата

        Returns:
            Копия сессии, изменения в ней не сохраняются
        """
        async with self._lock:
            return replace(self._get_or_create(chat_id))

    async def mutate(self, chat_id: int, fn: Callable[[Session], T]) -> T:
        """
        Атомарно изменить сессию

        fn получает рабочую копию; копия сохраняется только если fn
        завершилась без исключения.

        Args:
            chat_id: ID чата
            fn: Синхронная функция изменения, её результат возвращается

        Returns:
            Результат fn
        """
        async with self._lock:
            draft = replace(self._get_or_create(chat_id))
            result = fn(draft)
            self._sessions[chat_id] = draft
            return result

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._sessions
