"""Domain exceptions."""

from typing import Optional


class ImzoBotError(Exception):
    """Base exception for the Imzo bridge bot."""

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code
        super().__init__(message)


class AuthError(ImzoBotError):
    """Backend refused the credentials or issued no token."""

    def __init__(self, details: str = None):
        message = "Authentication failed"
        if details:
            message += f": {details}"

        super().__init__(
            message=message,
            code="AUTH_FAILED"
        )


class TransportError(ImzoBotError):
    """Network, HTTP or decoding failure while talking to the backend."""

    def __init__(self, operation: str, details: str = None, status_code: Optional[int] = None):
        message = f"Transport error during {operation}"
        if details:
            message += f": {details}"

        self.operation = operation
        self.status_code = status_code

        super().__init__(
            message=message,
            code="TRANSPORT_ERROR"
        )
