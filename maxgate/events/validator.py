"""Structural validation of webhook events.

This module provides validate_event() for:
- Rejecting bodies whose update_type is missing or outside the closed set
- Carrying field-level decode failures as errors
- Checking the required sub-objects of each update type
- Recording soft problems (missing timestamp, missing context) as warnings

Validation never raises; the verdict travels with the event.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from maxgate.events.lookup import resolve_chat_id, resolve_message_id, resolve_user_id
from maxgate.events.models import ValidationStatus
from maxgate.models import (
    BaseEvent,
    BotMembershipEvent,
    ChatTitleChangedEvent,
    MessageChatCreatedEvent,
    MessageEditedEvent,
    MessageRemovedEvent,
    UpdateType,
    UserMembershipEvent,
    WebhookEvent,
)


@dataclass
class _Findings:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_event(
    update_type: UpdateType | None,
    event: WebhookEvent | None,
    raw: object,
    decode_errors: list[str] | None = None,
) -> ValidationStatus:
    """Validate a classified event.

    Args:
        update_type: Result of classify_update_type(), None when unknown.
        event: The decoded variant, None when decoding failed or was skipped.
        raw: The original body, used to name an offending update_type.
        decode_errors: Field errors reported by the decoder.

    Returns:
        ValidationStatus with ordered errors and warnings.
    """
    findings = _Findings(errors=list(decode_errors or []))

    if update_type is None:
        findings.errors.insert(0, _describe_unknown_type(raw))
        return _verdict(findings)

    if event is None:
        findings.errors.append(f"Payload could not be decoded as {update_type.value}")
        return _verdict(findings)

    if event.timestamp is None:
        findings.warnings.append("timestamp: missing, using receive time")

    rule = _RULES.get(update_type)
    if rule is not None:
        rule(event, findings)
    return _verdict(findings)


def _verdict(findings: _Findings) -> ValidationStatus:
    return ValidationStatus(
        is_valid=not findings.errors,
        errors=findings.errors,
        warnings=findings.warnings,
    )


def _describe_unknown_type(raw: object) -> str:
    if not isinstance(raw, dict):
        return f"Payload must be a JSON object, got {type(raw).__name__}"
    if raw.get("update_type") in (None, ""):
        return "Missing update_type"
    return f"Unsupported update_type: {raw['update_type']!r}"


def _require_numeric_user(event: BaseEvent, findings: _Findings, kind: str) -> None:
    if event.user is None:
        findings.errors.append(f"user: object is required for {kind} events")
    elif event.user.user_id is None:
        findings.errors.append(f"user.user_id: numeric id is required for {kind} events")


def _require_chat(event: BaseEvent, findings: _Findings, kind: str) -> None:
    if event.chat is None and event.chat_id is None:
        findings.errors.append(f"chat: object or chat_id is required for {kind} events")
    elif resolve_chat_id(event) is None:
        findings.warnings.append(f"chat_id: not found for {kind} event")


# --- Per-type rules ---


def _check_message(event: BaseEvent, findings: _Findings) -> None:
    kind = event.update_type
    if event.message is None:
        findings.errors.append(f"message: object is required for {kind} events")
        return
    if event.message.identifier is None:
        findings.errors.append(f"message.body.mid: identifier is required for {kind} events")
    if not event.message.content_text and not event.message.content_attachments:
        findings.warnings.append("message: no text content or attachments")
    if resolve_user_id(event) is None:
        findings.warnings.append("user: no sender information found")


def _check_message_edited(event: MessageEditedEvent, findings: _Findings) -> None:
    _check_message(event, findings)
    if event.old_message is None and event.new_message is None:
        findings.warnings.append("message_versions: no old_message or new_message to compare")


def _check_message_removed(event: MessageRemovedEvent, findings: _Findings) -> None:
    if resolve_message_id(event) is None:
        findings.warnings.append("message_id: not found for message_removed event")
    if resolve_chat_id(event) is None:
        findings.warnings.append("chat_id: not found for message_removed event")
    if resolve_user_id(event) is None:
        findings.warnings.append("user_id: not provided for message_removed event")
    if event.deletion_context is None:
        findings.warnings.append("deletion_context: not provided")


def _check_message_chat_created(event: MessageChatCreatedEvent, findings: _Findings) -> None:
    if event.message is not None:
        _check_message(event, findings)
        return
    if event.chat is None:
        findings.warnings.append("chat: not found in message_chat_created event")
    elif event.chat.chat_id is None:
        findings.warnings.append("chat_id: not found in chat object")
    if event.message_id is None:
        findings.warnings.append("message_id: not found in message_chat_created event")


def _check_callback(event: BaseEvent, findings: _Findings) -> None:
    if event.callback is None:
        findings.errors.append("callback: object is required for message_callback events")
        return
    if event.callback.identifier is None:
        findings.errors.append("callback.callback_id: identifier is required for message_callback events")
    if event.callback.payload is None:
        findings.warnings.append("callback.payload: no payload found")


def _check_bot_started(event: BaseEvent, findings: _Findings) -> None:
    _require_numeric_user(event, findings, "bot_started")


def _check_bot_membership(event: BotMembershipEvent, findings: _Findings) -> None:
    _require_chat(event, findings, event.update_type)
    if event.user is None:
        findings.warnings.append("user: no user information found in membership event")
    _check_membership_context(event, findings)


def _check_user_membership(event: UserMembershipEvent, findings: _Findings) -> None:
    _require_chat(event, findings, event.update_type)
    _require_numeric_user(event, findings, event.update_type)
    _check_membership_context(event, findings)


def _check_membership_context(
    event: BotMembershipEvent | UserMembershipEvent, findings: _Findings,
) -> None:
    if event.is_channel is None:
        findings.warnings.append("is_channel: not provided")
    if event.membership_context is None:
        findings.warnings.append("membership_context: not provided")


def _check_chat_title_changed(event: ChatTitleChangedEvent, findings: _Findings) -> None:
    _require_chat(event, findings, "chat_title_changed")
    if event.user is None:
        findings.warnings.append("user: no user information found in chat_title_changed event")
    has_title = event.title or (event.chat and event.chat.title) or (
        event.chat_changes and event.chat_changes.new_title
    )
    if not has_title:
        findings.warnings.append("title: no new title provided")
    if event.chat_changes is None:
        findings.warnings.append("chat_changes: not provided")


_RULES: dict[UpdateType, Callable[..., None]] = {
    UpdateType.MESSAGE_CREATED: _check_message,
    UpdateType.MESSAGE_CHAT_CREATED: _check_message_chat_created,
    UpdateType.MESSAGE_EDITED: _check_message_edited,
    UpdateType.MESSAGE_REMOVED: _check_message_removed,
    UpdateType.MESSAGE_CALLBACK: _check_callback,
    UpdateType.BOT_STARTED: _check_bot_started,
    UpdateType.BOT_ADDED: _check_bot_membership,
    UpdateType.BOT_REMOVED: _check_bot_membership,
    UpdateType.USER_ADDED: _check_user_membership,
    UpdateType.USER_REMOVED: _check_user_membership,
    UpdateType.CHAT_TITLE_CHANGED: _check_chat_title_changed,
}
