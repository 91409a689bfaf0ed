"""
Response Poller - доставка отложенных ответов Imzo AI

Если /ask вернул job id, ответ готовится асинхронно. Для каждого такого
вопроса запускается отдельный ResponsePoller, который:
- раз в interval секунд спрашивает /get/gpt/responce
- доставляет первый непустой ответ ровно один раз
- молча завершается по дедлайну
- завершается при отмене (сброс сессии, shutdown)

Ошибки транспорта при опросе считаются пустым тиком и не прерывают опрос.

Ordering: поллер живёт независимо от следующих сообщений чата, поэтому
ответ на новый вопрос может прийти раньше ответа на предыдущий.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Set

import structlog

from ..domain.entities import PendingQuestion
from ..domain.exceptions import TransportError
from ..infrastructure.external_services import ImzoClient
from .interfaces import IChatTransport

logger = logging.getLogger(__name__)


class PollStatus(str, Enum):
    """Состояние поллера"""
    RUNNING = "running"
    DELIVERED = "delivered"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class ResponsePoller:
    """Опрос одного отложенного ответа"""

    def __init__(
        self,
        question: PendingQuestion,
        client: ImzoClient,
        transport: IChatTransport,
        interval: float = 3.0
    ):
        """
        Args:
            question: Вопрос, ожидающий ответа
            client: Клиент Imzo AI
            transport: Куда доставить ответ
            interval: Пауза между запросами в секундах
        """
        self.question = question
        self.client = client
        self.transport = transport
        self.interval = interval

        self.status = PollStatus.RUNNING
        self.ticks = 0
        self.failed_ticks = 0

        self._log = structlog.get_logger(__name__).bind(
            chat_id=question.chat_id,
            job_id=question.job_id
        )

    async def run(self) -> PollStatus:
        """
        Опрашивать до ответа, дедлайна или отмены

        Returns:
            Итоговый статус (DELIVERED или TIMED_OUT)

        Raises:
            asyncio.CancelledError: при отмене задачи (статус CANCELLED)
        """
        self._log.debug("polling started")
        loop = asyncio.get_running_loop()

        try:
            remaining = self.question.deadline - loop.time()
            if remaining <= 0:
                return self._finish(PollStatus.TIMED_OUT)

            try:
                answer = await asyncio.wait_for(self._wait_for_answer(), timeout=remaining)
            except asyncio.TimeoutError:
                return self._finish(PollStatus.TIMED_OUT)

            await self._deliver(answer)
            return self._finish(PollStatus.DELIVERED)

        except asyncio.CancelledError:
            self._finish(PollStatus.CANCELLED)
            raise

    async def _wait_for_answer(self) -> str:
        while True:
            await asyncio.sleep(self.interval)
            answer = await self._tick()
            if answer:
                return answer

    async def _tick(self) -> Optional[str]:
        self.ticks += 1
        try:
            return await self.client.fetch_final(self.question.auth_token, self.question.job_id)
        except TransportError as e:
            self.failed_ticks += 1
            self._log.warning("poll tick failed", tick=self.ticks, error=e.message)
            return None

    async def _deliver(self, answer: str) -> None:
        delivered = await self.transport.send_text(self.question.chat_id, answer)
        if not delivered:
            self._log.error("final answer could not be delivered")

    def _finish(self, status: PollStatus) -> PollStatus:
        self.status = status
        self._log.info("polling finished", status=status.value, ticks=self.ticks)
        return status


class PollerRegistry:
    """
    Реестр фоновых задач ResponsePoller

    - Хранит ссылки на задачи (защита от garbage collection)
    - Не допускает два поллера на один job id
    - Отменяет поллеры чата при сбросе сессии
    - Graceful shutdown с отменой всех задач
    """

    def __init__(
        self,
        client: ImzoClient,
        transport: IChatTransport,
        interval: float = 3.0
    ):
        self.client = client
        self.transport = transport
        self.interval = interval

        self._tasks: Set[asyncio.Task] = set()
        self._pollers: Dict[asyncio.Task, ResponsePoller] = {}

        self._stats = {
            "spawned": 0,
            "delivered": 0,
            "timed_out": 0,
            "cancelled": 0,
            "failed": 0,
        }

    def spawn(self, question: PendingQuestion) -> Optional[asyncio.Task]:
        """
        Запустить поллер для вопроса

        Args:
            question: Вопрос с job id

        Returns:
            Созданная задача или None, если этот job id уже опрашивается
        """
        if self.has_job(question.job_id):
            logger.warning(
                f"⚠️ Poller for job {question.job_id} already running, "
                f"not spawning another (chat {question.chat_id})"
            )
            return None

        poller = ResponsePoller(
            question=question,
            client=self.client,
            transport=self.transport,
            interval=self.interval
        )
        task = asyncio.create_task(
            poller.run(),
            name=f"poll:{question.chat_id}:{question.job_id}"
        )
        self._tasks.add(task)
        self._pollers[task] = poller
        self._stats["spawned"] += 1

        task.add_done_callback(self._on_task_done)

        logger.info(
            f"🔄 Poller spawned for chat {question.chat_id}, job {question.job_id} "
            f"(active: {len(self._tasks)})"
        )
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        poller = self._pollers.pop(task, None)

        if task.cancelled():
            self._stats["cancelled"] += 1
            return

        exc = task.exception()
        if exc is not None:
            self._stats["failed"] += 1
            logger.error(
                f"❌ Poller task '{task.get_name()}' failed with exception: {exc}",
                exc_info=exc
            )
            return

        if poller is not None:
            self._stats[poller.status.value] = self._stats.get(poller.status.value, 0) + 1

    def has_job(self, job_id: str) -> bool:
        """Опрашивается ли сейчас этот job id"""
        return any(
            poller.question.job_id == job_id and not task.done()
            for task, poller in self._pollers.items()
        )

    def active_count(self, chat_id: Optional[int] = None) -> int:
        """Количество активных поллеров (всего или для чата)"""
        return sum(
            1 for task, poller in self._pollers.items()
            if not task.done() and (chat_id is None or poller.question.chat_id == chat_id)
        )

    def cancel_chat(self, chat_id: int) -> int:
        """
        Отменить все поллеры чата

        Args:
            chat_id: ID чата

        Returns:
            Количество отменённых задач
        """
        cancelled = 0
        for task, poller in list(self._pollers.items()):
            if poller.question.chat_id == chat_id and not task.done():
                task.cancel()
                cancelled += 1

        if cancelled:
            logger.info(f"🛑 Cancelled {cancelled} stale poller(s) for chat {chat_id}")

        return cancelled

    async def shutdown(self, timeout: float = 10.0) -> Dict[str, Any]:
        """
        Остановить все поллеры

        Args:
            timeout: Сколько ждать завершения отменённых задач (секунды)

        Returns:
            Статистика shutdown
        """
        if not self._tasks:
            logger.info("✅ No pollers to stop")
            return {"status": "clean_shutdown", "tasks_cancelled": 0, "shutdown_time": 0.0}

        shutdown_start = datetime.now()
        remaining = list(self._tasks)

        logger.info(f"⏳ Cancelling {len(remaining)} active poller(s)")
        for task in remaining:
            task.cancel()

        done, pending = await asyncio.wait(remaining, timeout=timeout)
        shutdown_time = (datetime.now() - shutdown_start).total_seconds()

        if pending:
            logger.warning(f"⚠️ {len(pending)} poller(s) did not stop within {timeout}s")

        return {
            "status": "forced_shutdown" if pending else "graceful_shutdown",
            "tasks_cancelled": len(done),
            "tasks_pending": len(pending),
            "shutdown_time": shutdown_time,
        }

    def get_stats(self) -> Dict[str, Any]:
        """Метрики реестра"""
        return {
            **self._stats,
            "active": self.active_count(),
        }
