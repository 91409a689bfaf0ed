"""
Conversation State Machine

Логин в два шага (телефон, затем пароль), потом свободные вопросы к Imzo AI.

route_message() - чистая функция (session, text) -> Transition.
ConversationService выполняет переход: меняет сессию через SessionStore,
ходит в backend (вне lock), отвечает в чат и запускает поллеры.

    IDLE -> AWAITING_LOGIN -> AWAITING_PASSWORD -> READY
                                    |
                                    +-> IDLE (ошибка логина)

/start из любого состояния начинает цикл заново.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .. import messages
from ..domain.entities import ConversationState, PendingQuestion, Session
from ..domain.exceptions import AuthError, TransportError
from ..infrastructure.external_services import AskAccepted, AskRejected, ImzoClient
from ..infrastructure.session_store import SessionStore
from .interfaces import IChatTransport
from .poller import PollerRegistry

logger = logging.getLogger(__name__)

START_COMMAND = "/start"


class Action(str, Enum):
    """Что сделать с входящим сообщением"""
    PROMPT_LOGIN = "prompt_login"
    REMEMBER_LOGIN = "remember_login"
    AUTHENTICATE = "authenticate"
    ASK = "ask"
    RESTART_REQUIRED = "restart_required"


@dataclass(frozen=True)
class Transition:
    action: Action
    next_state: ConversationState


def route_message(session: Session, text: str) -> Transition:
    """Map the current session state and inbound text to an action and the next state."""
    if text.startswith(START_COMMAND):
        return Transition(Action.PROMPT_LOGIN, ConversationState.AWAITING_LOGIN)

    if session.state == ConversationState.AWAITING_LOGIN:
        return Transition(Action.REMEMBER_LOGIN, ConversationState.AWAITING_PASSWORD)

    if session.state == ConversationState.AWAITING_PASSWORD:
        # READY on success, the service falls back to IDLE on failure
        return Transition(Action.AUTHENTICATE, ConversationState.READY)

    if session.is_ready:
        return Transition(Action.ASK, ConversationState.READY)

    if session.state == ConversationState.READY:
        # READY without a token: the invariant is broken, force a new login
        return Transition(Action.RESTART_REQUIRED, ConversationState.IDLE)

    return Transition(Action.PROMPT_LOGIN, ConversationState.AWAITING_LOGIN)


class ConversationService:
    """
    Обработка входящих сообщений чата

    Сообщения одного чата должны приходить последовательно (диспетчер
    работает без handle_as_tasks), поллеры при этом живут параллельно.
    """

    def __init__(
        self,
        sessions: SessionStore,
        client: ImzoClient,
        transport: IChatTransport,
        pollers: PollerRegistry,
        chat_room_id: str,
        poll_timeout: float = 120.0
    ):
        """
        Args:
            sessions: Хранилище сессий
            client: Клиент Imzo AI
            transport: Отправка сообщений в чат
            pollers: Реестр поллеров отложенных ответов
            chat_room_id: Комната Imzo AI, в которую уходят вопросы
            poll_timeout: Сколько секунд ждать отложенный ответ
        """
        self.sessions = sessions
        self.client = client
        self.transport = transport
        self.pollers = pollers
        self.chat_room_id = chat_room_id
        self.poll_timeout = poll_timeout

    async def handle_message(self, chat_id: int, text: str) -> Transition:
        """
        Обработать одно входящее сообщение

        Args:
            chat_id: ID чата
            text: Текст сообщения

        Returns:
            Выполненный переход
        """
        text = (text or "").strip()
        session = await self.sessions.get(chat_id)
        transition = route_message(session, text)

        logger.debug(
            f"Chat {chat_id}: {session.state.value} + message -> {transition.action.value}"
        )

        if transition.action == Action.PROMPT_LOGIN:
            await self._prompt_login(chat_id)
        elif transition.action == Action.REMEMBER_LOGIN:
            await self._remember_login(chat_id, text)
        elif transition.action == Action.AUTHENTICATE:
            await self._authenticate(chat_id, session.pending_login, text)
        elif transition.action == Action.ASK:
            await self._ask(chat_id, session.auth_token, text)
        elif transition.action == Action.RESTART_REQUIRED:
            await self._reset(chat_id)
            await self.transport.send_text(chat_id, messages.LOGIN_REQUIRED)

        return transition

    async def _prompt_login(self, chat_id: int) -> None:
        self.pollers.cancel_chat(chat_id)
        await self.sessions.mutate(chat_id, Session.begin_login)
        await self.transport.send_text(chat_id, messages.START_PROMPT)

    async def _remember_login(self, chat_id: int, identifier: str) -> None:
        await self.sessions.mutate(chat_id, lambda s: s.remember_login(identifier))
        await self.transport.send_text(chat_id, messages.PASSWORD_PROMPT)

    async def _authenticate(self, chat_id: int, identifier: str, secret: str) -> None:
        try:
            token = await self.client.authenticate(identifier, secret)
        except AuthError as e:
            logger.warning(f"🔒 Login failed for chat {chat_id}: {e.message}")
            await self._reset(chat_id)
            await self.transport.send_text(chat_id, messages.login_failed(e.message))
            return
        except TransportError as e:
            logger.error(f"❌ Login request failed for chat {chat_id}: {e.message}")
            await self._reset(chat_id)
            await self.transport.send_text(chat_id, messages.login_failed(messages.SERVICE_UNAVAILABLE))
            return

        def commit(session: Session) -> bool:
            # /start may have arrived while the login call was in flight
            if session.state != ConversationState.AWAITING_PASSWORD:
                return False
            session.authenticate(token)
            return True

        if not await self.sessions.mutate(chat_id, commit):
            logger.info(f"Chat {chat_id} left AWAITING_PASSWORD during login, token dropped")
            return

        logger.info(f"✅ Chat {chat_id} authenticated")
        await self.transport.send_text(chat_id, messages.LOGIN_SUCCESS)

    async def _ask(self, chat_id: int, token: str, question: str) -> None:
        try:
            result = await self.client.submit_question(token, self.chat_room_id, question)
        except TransportError as e:
            logger.error(f"❌ /ask failed for chat {chat_id}: {e.message}")
            await self.transport.send_text(chat_id, messages.SERVICE_UNAVAILABLE)
            return

        if isinstance(result, AskRejected):
            logger.info(f"Question from chat {chat_id} rejected (status={result.status})")
            await self.transport.send_text(chat_id, messages.rejection(result.message))
            return

        await self._handle_accepted(chat_id, token, question, result)

    async def _handle_accepted(
        self,
        chat_id: int,
        token: str,
        question: str,
        result: AskAccepted
    ) -> None:
        answer = result.immediate_answer
        job_id = result.job_id

        if answer:
            await self.transport.send_text(chat_id, answer)

        if job_id:
            self._spawn_poller(chat_id, token, question, job_id)
        elif not answer:
            logger.warning(f"⚠️ /ask for chat {chat_id} returned neither answer nor job id")

    def _spawn_poller(self, chat_id: int, token: str, question: str, job_id: str) -> Optional[asyncio.Task]:
        deadline = asyncio.get_running_loop().time() + self.poll_timeout
        pending = PendingQuestion(
            chat_id=chat_id,
            job_id=job_id,
            auth_token=token,
            deadline=deadline,
            question=question
        )
        return self.pollers.spawn(pending)

    async def _reset(self, chat_id: int) -> None:
        self.pollers.cancel_chat(chat_id)
        await self.sessions.mutate(chat_id, Session.reset)
