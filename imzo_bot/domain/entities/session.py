"""Conversation session entity."""

from dataclasses import dataclass
from enum import Enum


class ConversationState(str, Enum):
    """Login handshake states of a chat."""
    IDLE = "idle"
    AWAITING_LOGIN = "awaiting_login"
    AWAITING_PASSWORD = "awaiting_password"
    READY = "ready"


@dataclass
class Session:
    """
    Per-chat conversation state.

    The auth token is present if and only if the session is READY; the
    transition methods below are the only writers that keep it that way.
    """

    chat_id: int
    state: ConversationState = ConversationState.IDLE
    pending_login: str = ""
    auth_token: str = ""

    @property
    def is_ready(self) -> bool:
        """Check if the chat can submit questions."""
        return self.state == ConversationState.READY and bool(self.auth_token)

    def begin_login(self) -> None:
        """Start a fresh login cycle."""
        self.reset()
        self.state = ConversationState.AWAITING_LOGIN

    def remember_login(self, identifier: str) -> None:
        """Cache the identifier and wait for the password."""
        self.pending_login = identifier
        self.auth_token = ""
        self.state = ConversationState.AWAITING_PASSWORD

    def authenticate(self, token: str) -> None:
        """Store the issued token and become READY."""
        if not token:
            raise ValueError("token must not be empty")

        self.auth_token = token
        self.pending_login = ""
        self.state = ConversationState.READY

    def reset(self) -> None:
        """Forget credentials and return to IDLE."""
        self.state = ConversationState.IDLE
        self.pending_login = ""
        self.auth_token = ""
