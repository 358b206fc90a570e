"""Tests for the Bot API client, subscription manager and workflow forwarder."""

from __future__ import annotations

import json
from collections.abc import Callable
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from maxgate.client.bot import MaxBotClient
from maxgate.client.forwarder import WorkflowForwarder
from maxgate.client.subscriptions import WebhookSubscriptionManager
from maxgate.config import Settings
from maxgate.errors.exceptions import MaxApiError, MaxError, MaxOperationError
from maxgate.errors.models import ErrorCategory

WEBHOOK_URL = "https://bot.example.com/webhook/max"


def _client(handler: Callable[[httpx.Request], httpx.Response], **kwargs: object) -> MaxBotClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MaxBotClient("secret-token", http_client=http_client, **kwargs)  # type: ignore[arg-type]


class TestMaxBotClient:
    @pytest.mark.asyncio
    async def test_get_subscriptions_sends_token(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"subscriptions": [{"url": WEBHOOK_URL}]})

        subscriptions = await _client(handler).get_subscriptions()
        assert subscriptions == [{"url": WEBHOOK_URL}]
        assert seen[0].url.path == "/subscriptions"
        assert seen[0].url.params["access_token"] == "secret-token"

    @pytest.mark.asyncio
    async def test_malformed_subscription_list_is_empty(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"subscriptions": None}))
        assert await client.get_subscriptions() == []

    @pytest.mark.asyncio
    async def test_subscribe_posts_url_and_types(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True})

        await _client(handler).subscribe(WEBHOOK_URL, ["message_created"])
        assert bodies == [{"url": WEBHOOK_URL, "update_types": ["message_created"]}]

    @pytest.mark.asyncio
    async def test_unsubscribe_passes_url_as_query(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True})

        await _client(handler).unsubscribe(WEBHOOK_URL)
        assert seen[0].method == "DELETE"
        assert seen[0].url.params["url"] == WEBHOOK_URL

    @pytest.mark.asyncio
    async def test_send_message_to_chat(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"message": {"body": {"mid": "mid.1"}}})

        result = await _client(handler).send_message("hi", chat_id=42, text_format="markdown")
        assert result["message"]["body"]["mid"] == "mid.1"
        assert seen[0].url.params["chat_id"] == "42"
        assert json.loads(seen[0].content) == {"text": "hi", "format": "markdown"}

    @pytest.mark.asyncio
    async def test_send_message_requires_one_recipient(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={}))
        with pytest.raises(MaxOperationError, match="Exactly one") as exc_info:
            await client.send_message("hi")
        assert exc_info.value.category == ErrorCategory.VALIDATION
        assert exc_info.value.description == "Validation error during send message"
        with pytest.raises(MaxOperationError, match="Exactly one"):
            await client.send_message("hi", chat_id=1, user_id=2)

    @pytest.mark.asyncio
    async def test_send_message_rejects_bad_text_without_request(self) -> None:
        seen: list[httpx.Request] = []
        client = _client(lambda request: seen.append(request) or httpx.Response(200, json={}))
        with pytest.raises(MaxError, match="cannot exceed 4000"):
            await client.send_message("x" * 4001, user_id=1)
        with pytest.raises(MaxOperationError, match="cannot be empty"):
            await client.send_message("   ", chat_id=1)
        assert seen == []

    @pytest.mark.asyncio
    async def test_auth_failure_is_not_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(401, json={"code": "verify.token", "message": "Invalid access_token"})

        with pytest.raises(MaxApiError) as exc_info:
            await _client(handler).get_subscriptions()
        assert calls == 1
        assert exc_info.value.category == ErrorCategory.AUTHENTICATION
        assert exc_info.value.http_code == "401"

    @pytest.mark.asyncio
    async def test_bad_request_raises_operation_error(self) -> None:
        client = _client(lambda request: httpx.Response(400, json={"code": "proto.payload", "message": "text: too long"}))
        with pytest.raises(MaxOperationError):
            await client.send_message("hi", user_id=1)

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self) -> None:
        responses = iter([httpx.Response(503), httpx.Response(200, json={"subscriptions": []})])
        client = _client(lambda request: next(responses))
        with patch("maxgate.errors.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            assert await client.get_subscriptions() == []
        sleep.assert_awaited_once_with(1.0)

    def test_from_settings(self) -> None:
        settings = Settings(access_token="t", base_url="https://api.test/", retry_attempts=1)
        client = MaxBotClient.from_settings(settings)
        assert client._base_url == "https://api.test"
        assert client._max_attempts == 1


class TestWebhookSubscriptionManager:
    @staticmethod
    def _manager(existing: list[dict], created: list[dict], deleted: list[str]) -> WebhookSubscriptionManager:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"subscriptions": existing})
            if request.method == "POST":
                created.append(json.loads(request.content))
            else:
                deleted.append(request.url.params["url"])
            return httpx.Response(200, json={"success": True})

        return WebhookSubscriptionManager(_client(handler), WEBHOOK_URL, ["message_created"])

    @pytest.mark.asyncio
    async def test_ensure_creates_once(self) -> None:
        created: list[dict] = []
        manager = self._manager([], created, [])
        assert await manager.ensure() is True
        assert created == [{"url": WEBHOOK_URL, "update_types": ["message_created"]}]

    @pytest.mark.asyncio
    async def test_ensure_is_idempotent(self) -> None:
        created: list[dict] = []
        manager = self._manager([{"url": WEBHOOK_URL}], created, [])
        assert await manager.ensure() is False
        assert created == []

    @pytest.mark.asyncio
    async def test_exists(self) -> None:
        assert await self._manager([{"url": WEBHOOK_URL}], [], []).exists() is True
        assert await self._manager([{"url": "https://other"}], [], []).exists() is False

    @pytest.mark.asyncio
    async def test_remove_only_deletes_own_url(self) -> None:
        deleted: list[str] = []
        assert await self._manager([{"url": "https://other"}], [], deleted).remove() is True
        assert deleted == []
        assert await self._manager([{"url": WEBHOOK_URL}], [], deleted).remove() is True
        assert deleted == [WEBHOOK_URL]

    @pytest.mark.asyncio
    async def test_remove_tolerates_api_failure(self) -> None:
        client = _client(lambda request: httpx.Response(403, json={"message": "forbidden"}))
        assert await WebhookSubscriptionManager(client, WEBHOOK_URL).remove() is False


class TestWorkflowForwarder:
    @pytest.mark.asyncio
    async def test_posts_each_event_with_bearer(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(202)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        forwarder = WorkflowForwarder("https://flow.test/hook", token="abc", http_client=http_client)
        await forwarder.forward([{"event_id": "1"}, {"event_id": "2"}])
        assert [json.loads(r.content)["event_id"] for r in seen] == ["1", "2"]
        assert seen[0].headers["authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_nothing_to_forward(self) -> None:
        http_client = AsyncMock(spec=httpx.AsyncClient)
        await WorkflowForwarder("https://flow.test/hook", http_client=http_client).forward([])
        http_client.post.assert_not_called()

    def test_from_settings_without_url(self) -> None:
        assert WorkflowForwarder.from_settings(Settings()) is None
