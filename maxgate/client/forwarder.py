"""Relay of emitted events to a downstream workflow endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from maxgate.config import Settings
from maxgate.errors.retry import DEFAULT_MAX_ATTEMPTS, call_with_retry

logger = logging.getLogger(__name__)


class WorkflowForwarder:
    """POSTs each processed event as JSON, with Bearer auth when a token is set."""

    def __init__(
        self,
        workflow_url: str,
        token: str | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._workflow_url = workflow_url
        self._token = token
        self._max_attempts = max_attempts
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkflowForwarder | None:
        if not settings.workflow_url:
            return None
        return cls(settings.workflow_url, settings.workflow_token, settings.retry_attempts)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _post(self, client: httpx.AsyncClient, item: dict[str, Any]) -> None:
        async def attempt() -> None:
            resp = await client.post(self._workflow_url, json=item, headers=self._headers(), timeout=30.0)
            resp.raise_for_status()

        await call_with_retry(
            attempt, operation_name="forward event", max_attempts=self._max_attempts,
        )

    async def forward(self, events: list[dict[str, Any]]) -> None:
        """Deliver events in order. Raises MaxError when one cannot be delivered."""
        if not events:
            return
        if self._http_client is not None:
            for item in events:
                await self._post(self._http_client, item)
        else:
            async with httpx.AsyncClient(verify=True) as client:
                for item in events:
                    await self._post(client, item)
        logger.info("Forwarded %d event(s) to workflow", len(events))
