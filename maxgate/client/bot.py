"""Async client for the Max Bot API.

Every request goes through ``call_with_retry``: failures are classified,
retried per category, and surface as MaxApiError / MaxOperationError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from maxgate.config import DEFAULT_BASE_URL, Settings
from maxgate.errors.exceptions import MaxError
from maxgate.errors.formatter import build_error
from maxgate.errors.models import ClassifiedError, ErrorCategory, ErrorView
from maxgate.errors.retry import DEFAULT_MAX_ATTEMPTS, RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 4000


def _invalid_input(problem: str, operation: str) -> MaxError:
    """Caller misuse caught before any request is made."""
    classified = ClassifiedError(
        category=ErrorCategory.VALIDATION, raw=problem, view=ErrorView(description=problem),
    )
    return build_error(classified, operation)


class MaxBotClient:
    """Thin wrapper over the subscription and message endpoints.

    Pass ``http_client`` to share a connection pool or inject a transport in
    tests; otherwise the client owns one and closes it in ``aclose``.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._max_attempts = max_attempts
        self._policy = policy
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(verify=True, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> MaxBotClient:
        return cls(
            settings.access_token,
            base_url=settings.base_url,
            max_attempts=settings.retry_attempts,
            timeout=settings.request_timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> MaxBotClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        operation_name: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        query = {"access_token": self._access_token, **(params or {})}
        url = f"{self._base_url}{path}"

        async def attempt() -> Any:
            resp = await self._client.request(method, url, params=query, json=json_body)
            resp.raise_for_status()
            return resp.json() if resp.content else {}

        logger.debug("%s %s", method, path)
        return await call_with_retry(
            attempt,
            operation_name=operation_name,
            max_attempts=self._max_attempts,
            policy=self._policy,
        )

    async def get_subscriptions(self) -> list[dict[str, Any]]:
        data = await self._request("GET", "/subscriptions", "list subscriptions")
        subscriptions = data.get("subscriptions") if isinstance(data, dict) else None
        return subscriptions if isinstance(subscriptions, list) else []

    async def subscribe(self, url: str, update_types: list[str] | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"url": url}
        if update_types:
            body["update_types"] = update_types
        return await self._request("POST", "/subscriptions", "create subscription", json_body=body)

    async def unsubscribe(self, url: str) -> dict[str, Any]:
        return await self._request(
            "DELETE", "/subscriptions", "delete subscription", params={"url": url},
        )

    async def send_message(
        self,
        text: str,
        *,
        chat_id: int | None = None,
        user_id: int | None = None,
        text_format: str | None = None,
    ) -> dict[str, Any]:
        """Send a text message to a chat or a user.

        Raises:
            MaxOperationError: neither or both recipients given, or text out of bounds.
        """
        if (chat_id is None) == (user_id is None):
            raise _invalid_input("Exactly one of chat_id or user_id is required", "send message")
        if not text.strip():
            raise _invalid_input("Message text cannot be empty", "send message")
        if len(text) > MAX_TEXT_LENGTH:
            raise _invalid_input(f"Message text cannot exceed {MAX_TEXT_LENGTH} characters", "send message")

        params = {"chat_id": chat_id} if chat_id is not None else {"user_id": user_id}
        body: dict[str, Any] = {"text": text}
        if text_format:
            body["format"] = text_format
        return await self._request("POST", "/messages", "send message", params=params, json_body=body)
