"""Infrastructure layer - backend client and session storage."""

from .session_store import SessionStore
from .external_services import ImzoClient

__all__ = [
    "SessionStore",
    "ImzoClient",
]
