"""Domain entities."""

from .session import Session, ConversationState
from .pending_question import PendingQuestion

__all__ = [
    "Session",
    "ConversationState",
    "PendingQuestion",
]
