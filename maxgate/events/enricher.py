"""Metadata enrichment for processed events."""

from __future__ import annotations

import time

from maxgate.events.lookup import resolve_chat_id, resolve_user
from maxgate.events.models import ChatContext, EventMetadata, UserContext
from maxgate.models import BaseEvent


def build_user_context(event: BaseEvent | None) -> UserContext | None:
    if event is None:
        return None
    user = resolve_user(event)
    if user is None:
        return None
    return UserContext(
        user_id=user.user_id,
        username=user.username,
        display_name=user.name or user.first_name or user.last_name,
        locale=user.lang or event.user_locale,
    )


def build_chat_context(event: BaseEvent | None) -> ChatContext | None:
    if event is None:
        return None
    chat_id = resolve_chat_id(event)
    if chat_id is None:
        return None

    chat_type: str | None = None
    chat_title: str | None = None
    members_count: int | None = None
    if event.chat is not None:
        chat_type = event.chat.type
        chat_title = event.chat.title
        members_count = event.chat.members_count
    elif event.message is not None and event.message.recipient is not None:
        chat_type = event.message.recipient.chat_type
    if chat_type is None and event.is_channel is not None:
        chat_type = "channel" if event.is_channel else "chat"

    return ChatContext(
        chat_id=chat_id,
        chat_type=chat_type,
        chat_title=chat_title,
        members_count=members_count,
    )


def build_metadata(
    event: BaseEvent | None,
    started_at: float,
    received_at: int,
) -> EventMetadata:
    """Assemble event metadata.

    ``started_at`` is a ``time.monotonic()`` reading taken at pipeline entry;
    ``received_at`` is the wall-clock receive time in epoch millis.
    """
    elapsed_ms = int((time.monotonic() - started_at) * 1000)
    return EventMetadata(
        user_context=build_user_context(event),
        chat_context=build_chat_context(event),
        processing_time_ms=max(elapsed_ms, 0),
        received_at=received_at,
    )
