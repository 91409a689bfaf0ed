"""Imzo AI backend client."""

import logging
from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ...domain.exceptions import AuthError, TransportError
from .schemas import (
    AskAccepted,
    AskRejected,
    AskRequest,
    AskResult,
    FinalAnswer,
    LoginRequest,
    LoginResponse,
)

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)

LOGIN_PATH = "/users/login"
ASK_PATH = "/ask"
FINAL_ANSWER_PATH = "/get/gpt/responce"


class ImzoClient:
    """
    Typed client for the three Imzo AI operations.

    Stateless apart from the shared httpx.AsyncClient, safe to use from
    concurrent tasks.
    """

    def __init__(
        self,
        api_base: str,
        timeout: float = 20.0,
        poll_base: Optional[str] = None,
        poll_auth_override: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_base = api_base.rstrip("/")
        self.poll_base = (poll_base or api_base).rstrip("/")
        self.poll_auth_override = poll_auth_override
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"}
        )

    async def __aenter__(self) -> "ImzoClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def authenticate(self, identifier: str, secret: str) -> str:
        """Exchange login and password for an auth token."""
        payload = LoginRequest(login=identifier, password=secret)
        response = await self._request(
            "login", "POST", f"{self.api_base}{LOGIN_PATH}",
            json=payload.model_dump()
        )

        if response.status_code != httpx.codes.OK:
            raise AuthError(f"unexpected status {response.status_code}")

        login = self._decode("login", response, LoginResponse)
        if not login.token:
            raise AuthError("empty token in login response")

        return login.token

    async def submit_question(self, token: str, room_id: str, text: str) -> AskResult:
        """
        Submit a question to the chat room.

        Returns AskAccepted on 200 and AskRejected on 400. Any other outcome
        raises TransportError.
        """
        payload = AskRequest(chat_room_id=room_id, request=text)
        response = await self._request(
            "ask", "POST", f"{self.api_base}{ASK_PATH}",
            json=payload.model_dump(),
            headers={"Authorization": token}
        )

        if response.status_code == httpx.codes.BAD_REQUEST:
            return self._decode("ask", response, AskRejected)

        if response.status_code != httpx.codes.OK:
            raise TransportError(
                "ask",
                f"unexpected status {response.status_code}",
                status_code=response.status_code
            )

        return self._decode("ask", response, AskAccepted)

    async def fetch_final(self, token: str, job_id: str) -> Optional[str]:
        """Return the deferred answer for job_id, or None while it is not ready."""
        response = await self._request(
            "fetch_final", "GET", f"{self.poll_base}{FINAL_ANSWER_PATH}",
            params={"id": job_id},
            headers={"Authorization": self.poll_auth_override or token}
        )

        if response.status_code != httpx.codes.OK:
            raise TransportError(
                "fetch_final",
                f"unexpected status {response.status_code}",
                status_code=response.status_code
            )

        final = self._decode("fetch_final", response, FinalAnswer)
        answer = final.response.strip()
        return answer or None

    async def _request(self, operation: str, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(operation, f"{type(e).__name__}: {e}") from e

    @staticmethod
    def _decode(operation: str, response: httpx.Response, model: Type[PayloadT]) -> PayloadT:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TransportError(
                operation,
                f"malformed response: {e}",
                status_code=response.status_code
            ) from e
