"""
Bot Lifecycle - запуск и остановка бота

Отвечает за:
- Сборку сервисов (ImzoClient, SessionStore, PollerRegistry, ConversationService)
- Запуск polling (сообщения обрабатываются последовательно)
- Обработку сигналов (SIGINT, SIGTERM)
- Graceful shutdown: поллеры, HTTP клиент, сессия бота
"""

import asyncio
import logging
import signal
from typing import Optional

from aiogram import Bot, Dispatcher

from .application import ConversationService, PollerRegistry
from .config import Settings, get_settings
from .infrastructure import ImzoClient, SessionStore
from .monitoring import setup_logging
from .presentation.telegram import TelegramTransport, create_telegram_handlers

logger = logging.getLogger(__name__)


class BotLifecycle:
    """Управление жизненным циклом Telegram бота"""

    def __init__(self, settings: Settings, bot: Optional[Bot] = None):
        """
        Args:
            settings: Настройки приложения
            bot: Готовый Bot (по умолчанию создаётся из токена)
        """
        self.settings = settings
        self.bot = bot or Bot(token=settings.telegram_bot_token)
        self.dp = Dispatcher()

        self.client = ImzoClient(
            api_base=settings.imzo_api_base,
            timeout=settings.http_timeout_seconds,
            poll_base=settings.poll_base_url,
            poll_auth_override=settings.poll_auth_override
        )
        self.transport = TelegramTransport(self.bot, parse_mode=settings.parse_mode)
        self.sessions = SessionStore()
        self.pollers = PollerRegistry(
            client=self.client,
            transport=self.transport,
            interval=settings.poll_interval_seconds
        )
        self.conversation = ConversationService(
            sessions=self.sessions,
            client=self.client,
            transport=self.transport,
            pollers=self.pollers,
            chat_room_id=settings.imzo_chat_room_id,
            poll_timeout=settings.poll_timeout_seconds
        )

        create_telegram_handlers(self.dp, self.conversation)

        self._shutdown_event = asyncio.Event()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    def setup_signal_handlers(self) -> None:
        """Настроить обработчики сигналов для graceful shutdown"""
        loop = asyncio.get_running_loop()

        def signal_handler(sig):
            logger.info(f"🛑 Received signal {sig.name}, initiating graceful shutdown...")
            self.request_shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler, sig)

        logger.info("📡 Signal handlers configured (SIGINT, SIGTERM)")

    async def run(self) -> None:
        """Запустить polling и ждать сигнала остановки"""
        logger.info("🚀 Bot ishga tushdi…")

        polling_task = asyncio.create_task(
            self.dp.start_polling(
                self.bot,
                handle_as_tasks=False,
                handle_signals=False,
                close_bot_session=False
            ),
            name="telegram_polling"
        )
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())

        try:
            done, _ = await asyncio.wait(
                {polling_task, shutdown_task},
                return_when=asyncio.FIRST_COMPLETED
            )

            if polling_task in done:
                # polling ended on its own, surface the error if there is one
                polling_task.result()
            else:
                logger.info("🛑 Initiating graceful shutdown...")
                polling_task.cancel()
                try:
                    await polling_task
                except asyncio.CancelledError:
                    logger.info("✅ Polling task cancelled")
        finally:
            shutdown_task.cancel()
            await self.stop()

    async def stop(self) -> None:
        """Освободить все ресурсы"""
        logger.info("🛑 Stopping bot gracefully...")

        shutdown_stats = await self.pollers.shutdown()
        logger.info(
            f"📊 Poller shutdown: status={shutdown_stats['status']}, "
            f"cancelled={shutdown_stats['tasks_cancelled']}"
        )

        await self.client.aclose()
        await self.bot.session.close()

        logger.info("🎉 Bot to'xtadi.")


async def main() -> None:
    """Main entry point"""
    settings = get_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)

    lifecycle = BotLifecycle(settings)
    lifecycle.setup_signal_handlers()
    await lifecycle.run()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
