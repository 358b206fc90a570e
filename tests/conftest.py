"""Shared test fixtures for maxgate."""

from __future__ import annotations

from typing import Any

import pytest

from maxgate.events.processor import EventProcessor

# 2024-01-01T00:00:00Z in epoch millis
TIMESTAMP_MS = 1_704_067_200_000


@pytest.fixture
def processor() -> EventProcessor:
    return EventProcessor()


# --- Factory functions for webhook payloads ---


def make_user(**kwargs: Any) -> dict[str, Any]:
    """Factory for a Max user object with sensible defaults."""
    defaults: dict[str, Any] = {
        "user_id": 555,
        "name": "Ivan Petrov",
        "username": "ivan",
        "is_bot": False,
    }
    defaults.update(kwargs)
    return defaults


def make_chat(**kwargs: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "chat_id": 111111,
        "type": "chat",
        "title": "Team chat",
        "members_count": 5,
    }
    defaults.update(kwargs)
    return defaults


def make_message(text: str | None = "Hello bot", mid: str | None = "mid.0001", **kwargs: Any) -> dict[str, Any]:
    """Factory for a Max message object (sender, recipient, body)."""
    body: dict[str, Any] = {"seq": 1}
    if mid is not None:
        body["mid"] = mid
    if text is not None:
        body["text"] = text
    defaults: dict[str, Any] = {
        "sender": make_user(),
        "recipient": {"chat_id": 111111, "chat_type": "dialog"},
        "timestamp": TIMESTAMP_MS,
        "body": body,
    }
    defaults.update(kwargs)
    return defaults


def make_message_created(**kwargs: Any) -> dict[str, Any]:
    """Factory for a message_created webhook body."""
    defaults: dict[str, Any] = {
        "update_type": "message_created",
        "timestamp": TIMESTAMP_MS,
        "message": make_message(),
        "user_locale": "ru",
    }
    defaults.update(kwargs)
    return defaults


def make_callback_event(**kwargs: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "update_type": "message_callback",
        "timestamp": TIMESTAMP_MS,
        "callback": {
            "callback_id": "cb.42",
            "payload": "button_1",
            "timestamp": TIMESTAMP_MS,
            "user": make_user(),
        },
        "message": make_message(text="Pick one"),
    }
    defaults.update(kwargs)
    return defaults


def make_bot_started(**kwargs: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "update_type": "bot_started",
        "timestamp": TIMESTAMP_MS,
        "chat_id": 111111,
        "user": make_user(),
        "payload": "ref_campaign",
        "user_locale": "en",
    }
    defaults.update(kwargs)
    return defaults


def make_membership_event(update_type: str = "user_added", **kwargs: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "update_type": update_type,
        "timestamp": TIMESTAMP_MS,
        "chat": make_chat(),
        "user": make_user(user_id=777, name="New Member"),
        "is_channel": False,
    }
    defaults.update(kwargs)
    return defaults


def make_chat_title_changed(**kwargs: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "update_type": "chat_title_changed",
        "timestamp": TIMESTAMP_MS,
        "chat": make_chat(title="New title"),
        "user": make_user(),
        "title": "New title",
        "chat_changes": {"old_title": "Old title", "new_title": "New title"},
    }
    defaults.update(kwargs)
    return defaults


def make_message_removed(**kwargs: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "update_type": "message_removed",
        "timestamp": TIMESTAMP_MS,
        "message_id": "mid.0001",
        "chat_id": 111111,
        "user_id": 555,
        "deletion_context": {"deletion_reason": "user_deleted", "deleted_at": TIMESTAMP_MS},
    }
    defaults.update(kwargs)
    return defaults
