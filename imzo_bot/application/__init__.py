"""Application layer - conversation handling and deferred answer polling."""

from .conversation import Action, ConversationService, Transition, route_message
from .interfaces import IChatTransport
from .poller import PollerRegistry, PollStatus, ResponsePoller

__all__ = [
    "Action",
    "ConversationService",
    "Transition",
    "route_message",
    "IChatTransport",
    "PollerRegistry",
    "PollStatus",
    "ResponsePoller",
]
