"""Field resolution shared by the inbound pipeline stages.

Max deliveries put the same fact in different places depending on the
update type and API generation (``chat.chat_id``, ``message.recipient``,
a flat ``chat_id``). These helpers apply one fixed lookup order so the
key generator, filter and enricher always agree.
"""

from __future__ import annotations

from maxgate.models import BaseEvent, MaxUser


def resolve_user(event: BaseEvent) -> MaxUser | None:
    """Acting user: ``user``, then ``message.sender``, then ``callback.user``."""
    if event.user is not None:
        return event.user
    if event.message is not None:
        if event.message.sender is not None:
            return event.message.sender
        if event.message.sender_legacy is not None:
            return event.message.sender_legacy
    if event.callback is not None and event.callback.user is not None:
        return event.callback.user
    return None


def resolve_user_id(event: BaseEvent) -> int | None:
    user = resolve_user(event)
    if user is not None and user.user_id is not None:
        return user.user_id
    return event.user_id


def resolve_chat_id(event: BaseEvent) -> int | None:
    if event.chat is not None and event.chat.chat_id is not None:
        return event.chat.chat_id
    if event.message is not None and event.message.recipient is not None:
        if event.message.recipient.chat_id is not None:
            return event.message.recipient.chat_id
    return event.chat_id


def resolve_message_id(event: BaseEvent) -> str | None:
    if event.message_id is not None and str(event.message_id) != "":
        return str(event.message_id)
    if event.message is not None:
        return event.message.identifier
    return None


def resolve_callback_id(event: BaseEvent) -> str | None:
    if event.callback is not None:
        return event.callback.identifier
    return None


def to_seconds(value: int | None) -> int | None:
    """Normalize an epoch timestamp to seconds; millis are detected by size."""
    if value is None:
        return None
    return value // 1000 if value > 1_600_000_000_000 else value
