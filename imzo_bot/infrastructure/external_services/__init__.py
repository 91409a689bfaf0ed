"""External services implementations."""

from .imzo_client import ImzoClient
from .schemas import AskAccepted, AskRejected, AskResult, FinalAnswer, LoginResponse

__all__ = [
    "ImzoClient",
    "AskAccepted",
    "AskRejected",
    "AskResult",
    "FinalAnswer",
    "LoginResponse",
]
