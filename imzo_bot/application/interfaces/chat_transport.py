"""Chat transport interface."""

from abc import ABC, abstractmethod


class IChatTransport(ABC):
    """Interface for delivering text to a chat."""

    @abstractmethod
    async def send_text(self, chat_id: int, text: str) -> bool:
        """Send text to chat, return False if delivery failed."""
        pass
