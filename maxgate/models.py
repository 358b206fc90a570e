"""Pydantic models for Max messenger webhook payloads.

The inbound payload is a closed tagged union keyed by ``update_type``.
Every field below the tag is optional: the Bot API omits fields freely and
older deliveries use legacy shapes (``message.text`` instead of
``message.body.text``, ``callback.id`` instead of ``callback.callback_id``).
Unknown keys are preserved so the emitted event can carry them through.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# --- Enums ---


class UpdateType(str, Enum):
    BOT_STARTED = "bot_started"
    MESSAGE_CREATED = "message_created"
    MESSAGE_EDITED = "message_edited"
    MESSAGE_REMOVED = "message_removed"
    BOT_ADDED = "bot_added"
    BOT_REMOVED = "bot_removed"
    USER_ADDED = "user_added"
    USER_REMOVED = "user_removed"
    CHAT_TITLE_CHANGED = "chat_title_changed"
    MESSAGE_CALLBACK = "message_callback"
    MESSAGE_CHAT_CREATED = "message_chat_created"


_PAYLOAD_CONFIG = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


# --- Payload fragments ---


class MaxUser(BaseModel):
    model_config = _PAYLOAD_CONFIG

    user_id: int | None = None
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    is_bot: bool | None = None
    lang: str | None = None
    avatar_url: str | None = None


class MaxChat(BaseModel):
    model_config = _PAYLOAD_CONFIG

    chat_id: int | None = None
    type: str | None = None  # "dialog" | "chat" | "channel"
    title: str | None = None
    description: str | None = None
    members_count: int | None = None


class MaxRecipient(BaseModel):
    model_config = _PAYLOAD_CONFIG

    chat_id: int | None = None
    chat_type: str | None = None
    user_id: int | None = None


class MaxMessageBody(BaseModel):
    model_config = _PAYLOAD_CONFIG

    mid: int | str | None = None
    seq: int | None = None
    text: str | None = None
    attachments: list[dict[str, Any]] | None = None


class MaxMessage(BaseModel):
    """Message object; ``body`` is the current API shape, the rest is legacy."""

    model_config = _PAYLOAD_CONFIG

    sender: MaxUser | None = None
    sender_legacy: MaxUser | None = Field(default=None, alias="from")
    recipient: MaxRecipient | None = None
    timestamp: int | None = None
    body: MaxMessageBody | None = None
    message_id: int | str | None = None
    id: int | str | None = None
    text: str | None = None
    attachments: list[dict[str, Any]] | None = None

    @property
    def identifier(self) -> str | None:
        """First non-empty message identifier: body.mid, message_id, id."""
        for candidate in (
            self.body.mid if self.body else None,
            self.message_id,
            self.id,
        ):
            if candidate is not None and str(candidate) != "":
                return str(candidate)
        return None

    @property
    def content_text(self) -> str | None:
        if self.body and self.body.text:
            return self.body.text
        return self.text or None

    @property
    def content_attachments(self) -> list[dict[str, Any]]:
        if self.body and self.body.attachments:
            return self.body.attachments
        return self.attachments or []


class MaxCallback(BaseModel):
    model_config = _PAYLOAD_CONFIG

    callback_id: int | str | None = None
    id: int | str | None = None
    payload: Any = None
    timestamp: int | None = None
    user: MaxUser | None = None

    @property
    def identifier(self) -> str | None:
        for candidate in (self.callback_id, self.id):
            if candidate is not None and str(candidate) != "":
                return str(candidate)
        return None


class DeletionContext(BaseModel):
    model_config = _PAYLOAD_CONFIG

    deleted_by: MaxUser | None = None
    deletion_reason: str | None = None
    deleted_at: int | None = None


class ChatChanges(BaseModel):
    model_config = _PAYLOAD_CONFIG

    old_title: str | None = None
    new_title: str | None = None
    changed_by: MaxUser | None = None
    changed_at: int | None = None


class MembershipContext(BaseModel):
    model_config = _PAYLOAD_CONFIG

    added_by: MaxUser | None = None
    removed_by: MaxUser | None = None
    user_role: str | None = None
    action_timestamp: int | None = None


# --- Event variants ---


class BaseEvent(BaseModel):
    """Fields shared by every update type."""

    model_config = _PAYLOAD_CONFIG

    update_type: str
    timestamp: int | None = None
    event_id: str | None = None
    user_locale: str | None = None
    user: MaxUser | None = None
    chat: MaxChat | None = None
    message: MaxMessage | None = None
    callback: MaxCallback | None = None
    chat_id: int | None = None
    user_id: int | None = None
    message_id: int | str | None = None
    is_channel: bool | None = None


class BotStartedEvent(BaseEvent):
    update_type: Literal["bot_started"]
    payload: Any = None


class MessageCreatedEvent(BaseEvent):
    update_type: Literal["message_created"]


class MessageChatCreatedEvent(BaseEvent):
    update_type: Literal["message_chat_created"]
    start_payload: str | None = None


class MessageEditedEvent(BaseEvent):
    update_type: Literal["message_edited"]
    old_message: MaxMessage | None = None
    new_message: MaxMessage | None = None


class MessageRemovedEvent(BaseEvent):
    update_type: Literal["message_removed"]
    deletion_context: DeletionContext | None = None


class MessageCallbackEvent(BaseEvent):
    update_type: Literal["message_callback"]


class BotMembershipEvent(BaseEvent):
    update_type: Literal["bot_added", "bot_removed"]
    membership_context: MembershipContext | None = None


class UserMembershipEvent(BaseEvent):
    update_type: Literal["user_added", "user_removed"]
    inviter_id: int | None = None
    admin_id: int | None = None
    membership_context: MembershipContext | None = None


class ChatTitleChangedEvent(BaseEvent):
    update_type: Literal["chat_title_changed"]
    title: str | None = None
    chat_changes: ChatChanges | None = None


WebhookEvent = Annotated[
    Union[
        BotStartedEvent,
        MessageCreatedEvent,
        MessageChatCreatedEvent,
        MessageEditedEvent,
        MessageRemovedEvent,
        MessageCallbackEvent,
        BotMembershipEvent,
        UserMembershipEvent,
        ChatTitleChangedEvent,
    ],
    Field(discriminator="update_type"),
]

WEBHOOK_EVENT_ADAPTER: TypeAdapter[WebhookEvent] = TypeAdapter(WebhookEvent)
