"""Domain layer - entities and exceptions."""

from .entities import Session, ConversationState, PendingQuestion
from .exceptions import ImzoBotError, AuthError, TransportError

__all__ = [
    "Session",
    "ConversationState",
    "PendingQuestion",
    "ImzoBotError",
    "AuthError",
    "TransportError",
]
