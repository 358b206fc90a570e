"""Idempotency keys for webhook redelivery detection."""

from __future__ import annotations

import hashlib

from maxgate.events.lookup import (
    resolve_callback_id,
    resolve_chat_id,
    resolve_message_id,
    resolve_user_id,
)
from maxgate.models import BaseEvent

_KEY_LENGTH = 32  # hex chars of SHA-256


def stable_identifier(event: BaseEvent | None) -> str:
    """First available identifier: message, callback, user, then chat.

    Returned as ``"<kind>:<value>"`` so equal values of different kinds do
    not collide.
    """
    if event is None:
        return "none:"
    candidates = (
        ("message", resolve_message_id(event)),
        ("callback", resolve_callback_id(event)),
        ("user", resolve_user_id(event)),
        ("chat", resolve_chat_id(event)),
    )
    for kind, value in candidates:
        if value is not None:
            return f"{kind}:{value}"
    return "none:"


def derive_event_id(update_type: str | None, timestamp: int | None, identifier: str) -> str:
    """Deterministic key over the canonical fields of an event."""
    canonical = f"{update_type or ''}|{timestamp if timestamp is not None else ''}|{identifier}"
    return hashlib.sha256(canonical.encode()).hexdigest()[:_KEY_LENGTH]
