"""Application interfaces."""

from .chat_transport import IChatTransport

__all__ = ["IChatTransport"]
