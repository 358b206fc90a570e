"""Outbound adapters: Bot API client, subscriptions, workflow relay."""

from maxgate.client.bot import MaxBotClient
from maxgate.client.forwarder import WorkflowForwarder
from maxgate.client.subscriptions import WebhookSubscriptionManager

__all__ = [
    "MaxBotClient",
    "WebhookSubscriptionManager",
    "WorkflowForwarder",
]
