"""Per-update-type summaries attached to processed events as event_context."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from maxgate.events.lookup import resolve_chat_id, resolve_message_id, to_seconds
from maxgate.models import (
    BaseEvent,
    BotMembershipEvent,
    BotStartedEvent,
    ChatTitleChangedEvent,
    MaxMessage,
    MaxUser,
    MessageChatCreatedEvent,
    MessageEditedEvent,
    MessageRemovedEvent,
    UpdateType,
    UserMembershipEvent,
    WebhookEvent,
)


def build_event_context(update_type: UpdateType | None, event: WebhookEvent | None) -> dict[str, Any]:
    """Build the event_context summary. Missing sub-fields are simply omitted."""
    if update_type is None or event is None:
        return {
            "type": update_type.value if update_type else "unknown",
            "description": "Unsupported event",
            "is_supported": False,
        }
    builder = _BUILDERS[update_type]
    return _compact(builder(event))


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _user_summary(user: MaxUser | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return user.model_dump(exclude_none=True)


def _message_summary(message: MaxMessage | None) -> dict[str, Any]:
    if message is None:
        return {"has_text": False, "has_attachments": False, "message_length": 0}
    text = message.content_text
    return {
        "message_id": message.identifier,
        "has_text": bool(text),
        "has_attachments": bool(message.content_attachments),
        "message_length": len(text) if text else 0,
    }


def _chat_info(event: BaseEvent) -> dict[str, Any]:
    chat = event.chat
    chat_type = chat.type if chat and chat.type else None
    if chat_type is None and event.is_channel is not None:
        chat_type = "channel" if event.is_channel else "chat"
    return _compact({
        "chat_id": resolve_chat_id(event),
        "chat_type": chat_type,
        "chat_title": chat.title if chat else None,
        "members_count": chat.members_count if chat else None,
    })


# --- Builders ---


def _message_created(event: BaseEvent) -> dict[str, Any]:
    return {
        "type": UpdateType.MESSAGE_CREATED.value,
        "description": "New message received in direct conversation",
        **_message_summary(event.message),
    }


def _message_chat_created(event: MessageChatCreatedEvent) -> dict[str, Any]:
    if event.message is not None:
        recipient = event.message.recipient
        return {
            "type": UpdateType.MESSAGE_CHAT_CREATED.value,
            "description": "New message received in group chat",
            **_message_summary(event.message),
            "chat_type": recipient.chat_type if recipient and recipient.chat_type else "unknown",
        }
    return {
        "type": UpdateType.MESSAGE_CHAT_CREATED.value,
        "description": "Chat created from button click",
        "message_id": resolve_message_id(event),
        "chat_id": resolve_chat_id(event),
        "chat_title": event.chat.title if event.chat else None,
        "start_payload": event.start_payload,
    }


def _message_edited(event: MessageEditedEvent) -> dict[str, Any]:
    old, new = event.old_message, event.new_message
    edited_at = new.timestamp if new and new.timestamp else event.timestamp
    current_text = event.message.content_text if event.message else None
    has_content_changes = None
    has_attachment_changes = None
    if old is not None and new is not None:
        has_content_changes = (old.content_text or "") != (new.content_text or "")
        has_attachment_changes = old.content_attachments != new.content_attachments
    return {
        "type": UpdateType.MESSAGE_EDITED.value,
        "description": "Message content was modified",
        "message_id": event.message.identifier if event.message else None,
        "edited_text": current_text,
        "edited_at": to_seconds(edited_at),
        "old_content": old.content_text if old else None,
        "new_content": (new.content_text if new else None) or current_text,
        "has_content_changes": has_content_changes,
        "has_attachment_changes": has_attachment_changes,
    }


def _message_removed(event: MessageRemovedEvent) -> dict[str, Any]:
    deletion = event.deletion_context
    deleted_by = _user_summary(deletion.deleted_by if deletion else None)
    if deleted_by is None and event.user_id is not None:
        deleted_by = {"user_id": event.user_id}
    deleted_at = deletion.deleted_at if deletion and deletion.deleted_at else event.timestamp
    return {
        "type": UpdateType.MESSAGE_REMOVED.value,
        "description": "Message was deleted from chat",
        "deleted_message_id": resolve_message_id(event),
        "chat_id": resolve_chat_id(event),
        "deleted_by_user_id": event.user_id,
        "deleted_by": deleted_by,
        "deleted_at": to_seconds(deleted_at),
        "deletion_reason": (deletion.deletion_reason if deletion else None) or "unknown",
        "original_content": event.message.content_text if event.message else None,
    }


def _bot_membership(event: BotMembershipEvent) -> dict[str, Any]:
    added = event.update_type == UpdateType.BOT_ADDED
    membership = event.membership_context
    action_by = None
    if membership is not None:
        action_by = membership.added_by or membership.removed_by
    return {
        "type": event.update_type,
        "description": "Bot was added to chat" if added else "Bot was removed from chat",
        "chat_id": resolve_chat_id(event),
        "is_channel": event.is_channel,
        "action_by": _user_summary(action_by or event.user),
        "action_timestamp": event.timestamp,
        "chat_info": _chat_info(event),
    }


def _user_membership(event: UserMembershipEvent) -> dict[str, Any]:
    added = event.update_type == UpdateType.USER_ADDED
    membership = event.membership_context
    action_by = None
    if membership is not None:
        action_by = _user_summary(membership.added_by or membership.removed_by)
    if action_by is None:
        actor_id = event.inviter_id if added else event.admin_id
        if actor_id is not None:
            action_by = {"user_id": actor_id}
    return {
        "type": event.update_type,
        "description": "User joined the chat" if added else "User left the chat",
        "chat_id": resolve_chat_id(event),
        "is_channel": event.is_channel,
        "affected_user": _user_summary(event.user),
        "inviter_id": event.inviter_id,
        "admin_id": event.admin_id,
        "action_by": action_by,
        "user_role": (membership.user_role if membership else None) or "member",
        "action_timestamp": event.timestamp,
        "chat_info": _chat_info(event),
    }


def _chat_title_changed(event: ChatTitleChangedEvent) -> dict[str, Any]:
    changes = event.chat_changes
    new_title = (changes.new_title if changes else None) or event.title or (
        event.chat.title if event.chat else None
    )
    return {
        "type": UpdateType.CHAT_TITLE_CHANGED.value,
        "description": "Chat title was modified",
        "chat_id": resolve_chat_id(event),
        "old_title": changes.old_title if changes else None,
        "new_title": new_title,
        "changed_by": _user_summary((changes.changed_by if changes else None) or event.user),
        "changed_at": event.timestamp,
    }


def _message_callback(event: BaseEvent) -> dict[str, Any]:
    callback = event.callback
    return {
        "type": UpdateType.MESSAGE_CALLBACK.value,
        "description": "User clicked an inline keyboard button",
        "callback_id": callback.identifier if callback else None,
        "callback_payload": callback.payload if callback else None,
        "callback_timestamp": callback.timestamp if callback else None,
        "user_locale": event.user_locale,
    }


def _bot_started(event: BotStartedEvent) -> dict[str, Any]:
    return {
        "type": UpdateType.BOT_STARTED.value,
        "description": "User started interaction with the bot",
        "chat_id": event.chat_id,
        "payload": event.payload,
        "user_locale": event.user_locale,
        "is_first_interaction": True,
    }


_BUILDERS: dict[UpdateType, Callable[[Any], dict[str, Any]]] = {
    UpdateType.MESSAGE_CREATED: _message_created,
    UpdateType.MESSAGE_CHAT_CREATED: _message_chat_created,
    UpdateType.MESSAGE_EDITED: _message_edited,
    UpdateType.MESSAGE_REMOVED: _message_removed,
    UpdateType.BOT_ADDED: _bot_membership,
    UpdateType.BOT_REMOVED: _bot_membership,
    UpdateType.USER_ADDED: _user_membership,
    UpdateType.USER_REMOVED: _user_membership,
    UpdateType.CHAT_TITLE_CHANGED: _chat_title_changed,
    UpdateType.MESSAGE_CALLBACK: _message_callback,
    UpdateType.BOT_STARTED: _bot_started,
}
