"""Webhook subscription lifecycle for one receiver URL."""

from __future__ import annotations

import logging

from maxgate.client.bot import MaxBotClient
from maxgate.errors.exceptions import MaxError

logger = logging.getLogger(__name__)


class WebhookSubscriptionManager:
    """Check, create and delete the subscription pointing at ``webhook_url``."""

    def __init__(self, client: MaxBotClient, webhook_url: str, events: list[str] | None = None) -> None:
        self._client = client
        self._webhook_url = webhook_url
        self._events = list(events or [])

    async def exists(self) -> bool:
        """True when a subscription for our URL is registered.

        A failed lookup counts as "not registered" so the host retries creation.
        """
        try:
            subscriptions = await self._client.get_subscriptions()
        except MaxError as exc:
            logger.warning("Could not list subscriptions: %s", exc.description or exc)
            return False
        return any(sub.get("url") == self._webhook_url for sub in subscriptions)

    async def ensure(self) -> bool:
        """Create the subscription unless it already exists.

        Returns True when a new subscription was created, False when one was
        already present. Creation failures propagate as MaxError.
        """
        subscriptions = await self._client.get_subscriptions()
        if any(sub.get("url") == self._webhook_url for sub in subscriptions):
            logger.info("Webhook %s already subscribed", self._webhook_url)
            return False
        await self._client.subscribe(self._webhook_url, self._events or None)
        logger.info("Subscribed webhook %s for %s", self._webhook_url, self._events or "all events")
        return True

    async def remove(self) -> bool:
        """Delete our subscription if present. Returns False on failure."""
        try:
            subscriptions = await self._client.get_subscriptions()
            if not any(sub.get("url") == self._webhook_url for sub in subscriptions):
                logger.info("No subscription for %s to delete", self._webhook_url)
                return True
            await self._client.unsubscribe(self._webhook_url)
        except MaxError as exc:
            logger.warning("Could not delete subscription for %s: %s", self._webhook_url, exc)
            return False
        logger.info("Deleted subscription for %s", self._webhook_url)
        return True
