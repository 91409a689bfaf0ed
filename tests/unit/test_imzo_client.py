"""
Unit Tests: Imzo AI backend client

Тестирует:
- Login (успех, ошибочный статус, пустой токен)
- /ask: 200 -> AskAccepted, 400 -> AskRejected, прочее -> TransportError
- /get/gpt/responce: пустой ответ, готовый ответ, override Authorization
- Сетевые ошибки и битый JSON -> TransportError
"""

import json

import httpx
import pytest

from imzo_bot.domain.exceptions import AuthError, TransportError
from imzo_bot.infrastructure.external_services import AskAccepted, AskRejected, ImzoClient

API_BASE = "https://imzo.test"


def make_client(handler, **kwargs) -> ImzoClient:
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        headers={"Accept": "application/json"}
    )
    return ImzoClient(api_base=API_BASE, http_client=http_client, **kwargs)


# ============================================================================
# LOGIN TESTS
# ============================================================================

@pytest.mark.asyncio
async def test_authenticate_returns_token():
    """
    Тест: Успешный логин возвращает токен
    """
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": "ok", "token": "tok-123"})

    async with make_client(handler) as client:
        token = await client.authenticate("+998901234567", "secret")

    assert token == "tok-123"
    assert seen["method"] == "POST"
    assert seen["path"] == "/users/login"
    assert seen["body"] == {"login": "+998901234567", "password": "secret"}


@pytest.mark.asyncio
async def test_authenticate_non_200_raises_auth_error():
    """
    Тест: Неуспешный статус логина -> AuthError
    """
    def handler(request):
        return httpx.Response(401, json={"message": "invalid credentials"})

    async with make_client(handler) as client:
        with pytest.raises(AuthError) as exc_info:
            await client.authenticate("+998901234567", "wrongpass")

    assert exc_info.value.code == "AUTH_FAILED"
    assert "401" in exc_info.value.message


@pytest.mark.asyncio
async def test_authenticate_empty_token_raises_auth_error():
    """
    Тест: 200 без токена -> AuthError
    """
    def handler(request):
        return httpx.Response(200, json={"message": "ok", "token": ""})

    async with make_client(handler) as client:
        with pytest.raises(AuthError):
            await client.authenticate("+998901234567", "secret")


@pytest.mark.asyncio
async def test_authenticate_network_error_raises_transport_error():
    """
    Тест: Сетевая ошибка при логине -> TransportError
    """
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.authenticate("+998901234567", "secret")

    assert exc_info.value.operation == "login"


# ============================================================================
# ASK TESTS
# ============================================================================

@pytest.mark.asyncio
async def test_submit_question_accepted():
    """
    Тест: 200 -> AskAccepted с ответом и job id
    """
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "job1", "message": "hi there"})

    async with make_client(handler) as client:
        result = await client.submit_question("tok", "room-7", "hello")

    assert isinstance(result, AskAccepted)
    assert result.immediate_answer == "hi there"
    assert result.job_id == "job1"
    assert seen["path"] == "/ask"
    assert seen["auth"] == "tok"
    assert seen["body"] == {"chat_room_id": "room-7", "request": "hello"}


@pytest.mark.asyncio
async def test_submit_question_deferred_answer_has_no_immediate_text():
    """
    Тест: Пустой message и job id -> ответ отложен
    """
    def handler(request):
        return httpx.Response(200, json={"id": "job1", "message": "  "})

    async with make_client(handler) as client:
        result = await client.submit_question("tok", "room", "explain X")

    assert isinstance(result, AskAccepted)
    assert result.immediate_answer is None
    assert result.job_id == "job1"


@pytest.mark.asyncio
async def test_submit_question_400_is_rejection_not_error():
    """
    Тест: 400 -> AskRejected с текстом отказа
    """
    def handler(request):
        return httpx.Response(400, json={"message": "Savol juda qisqa", "status": "error"})

    async with make_client(handler) as client:
        result = await client.submit_question("tok", "room", "?")

    assert isinstance(result, AskRejected)
    assert result.message == "Savol juda qisqa"
    assert result.status == "error"


@pytest.mark.asyncio
async def test_submit_question_unexpected_status_raises_transport_error():
    """
    Тест: 500 -> TransportError со статусом
    """
    def handler(request):
        return httpx.Response(500, text="internal error")

    async with make_client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.submit_question("tok", "room", "hello")

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_submit_question_malformed_json_raises_transport_error():
    """
    Тест: Битый JSON в 200 -> TransportError
    """
    def handler(request):
        return httpx.Response(200, text="<html>not json</html>")

    async with make_client(handler) as client:
        with pytest.raises(TransportError):
            await client.submit_question("tok", "room", "hello")


# ============================================================================
# FETCH FINAL TESTS
# ============================================================================

@pytest.mark.asyncio
async def test_fetch_final_not_ready_returns_none():
    """
    Тест: Пустой responce -> None (не ошибка)
    """
    def handler(request):
        return httpx.Response(200, json={"responce": ""})

    async with make_client(handler) as client:
        assert await client.fetch_final("tok", "job1") is None


@pytest.mark.asyncio
async def test_fetch_final_returns_answer():
    """
    Тест: Готовый ответ, query id и Authorization из токена пользователя
    """
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["id"] = request.url.params["id"]
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"responce": " final answer "})

    async with make_client(handler) as client:
        answer = await client.fetch_final("user-tok", "job1")

    assert answer == "final answer"
    assert seen == {"path": "/get/gpt/responce", "id": "job1", "auth": "user-tok"}


@pytest.mark.asyncio
async def test_fetch_final_uses_gateway_base_and_bearer_override():
    """
    Тест: Опрос идёт на gateway с фиксированным Authorization
    """
    seen = {}

    def handler(request):
        seen["host"] = request.url.host
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"responce": "done"})

    client = make_client(
        handler,
        poll_base="http://gateway.test:8080/",
        poll_auth_override="Bearer static"
    )
    async with client:
        await client.fetch_final("user-tok", "job1")

    assert seen == {"host": "gateway.test", "auth": "Bearer static"}


@pytest.mark.asyncio
async def test_fetch_final_non_200_raises_transport_error():
    """
    Тест: Не-200 при опросе -> TransportError (вызывающий повторит)
    """
    def handler(request):
        return httpx.Response(502)

    async with make_client(handler) as client:
        with pytest.raises(TransportError):
            await client.fetch_final("tok", "job1")


@pytest.mark.asyncio
async def test_fetch_final_timeout_raises_transport_error():
    """
    Тест: Timeout при опросе -> TransportError
    """
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with make_client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.fetch_final("tok", "job1")

    assert "ReadTimeout" in exc_info.value.message


# ============================================================================
# NULL FIELD TESTS
# ============================================================================

@pytest.mark.asyncio
async def test_submit_question_null_id_keeps_immediate_answer():
    """
    Тест: id = null -> ответ всё равно отдаётся, job id нет
    """
    def handler(request):
        return httpx.Response(200, json={"id": None, "message": "hi there"})

    async with make_client(handler) as client:
        result = await client.submit_question("tok", "room", "hello")

    assert isinstance(result, AskAccepted)
    assert result.immediate_answer == "hi there"
    assert result.job_id is None


@pytest.mark.asyncio
async def test_submit_question_null_message_keeps_job_id():
    """
    Тест: message = null -> ответ отложен, job id сохраняется
    """
    def handler(request):
        return httpx.Response(200, json={"id": "job1", "message": None})

    async with make_client(handler) as client:
        result = await client.submit_question("tok", "room", "hello")

    assert isinstance(result, AskAccepted)
    assert result.immediate_answer is None
    assert result.job_id == "job1"


@pytest.mark.asyncio
async def test_submit_question_rejection_with_null_message():
    """
    Тест: 400 с message = null -> AskRejected с пустым текстом
    """
    def handler(request):
        return httpx.Response(400, json={"message": None, "status": None})

    async with make_client(handler) as client:
        result = await client.submit_question("tok", "room", "?")

    assert isinstance(result, AskRejected)
    assert result.message == ""


@pytest.mark.asyncio
async def test_authenticate_null_token_raises_auth_error():
    """
    Тест: token = null -> AuthError, а не TransportError
    """
    def handler(request):
        return httpx.Response(200, json={"message": None, "token": None})

    async with make_client(handler) as client:
        with pytest.raises(AuthError):
            await client.authenticate("+998901234567", "secret")


@pytest.mark.asyncio
async def test_fetch_final_null_responce_is_not_ready():
    """
    Тест: responce = null -> None (ответ ещё не готов)
    """
    def handler(request):
        return httpx.Response(200, json={"responce": None})

    async with make_client(handler) as client:
        assert await client.fetch_final("tok", "job1") is None
