"""Pydantic models for the inbound event pipeline.

This module defines the records produced while normalizing a webhook body:
- Validation verdicts (ValidationStatus)
- Enrichment metadata (UserContext, ChatContext, EventMetadata)
- The emitted record (ProcessedEvent)
- Operator-configured filtering (FilterCriteria)
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from maxgate.models import UpdateType

logger = logging.getLogger(__name__)


class ValidationStatus(BaseModel):
    """Structural verdict for one event. Never raised, always carried."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class UserContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int | None = None
    username: str | None = None
    display_name: str | None = None
    locale: str | None = None


class ChatContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    chat_id: int | None = None
    chat_type: str | None = None
    chat_title: str | None = None
    members_count: int | None = None


class EventMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_context: UserContext | None = None
    chat_context: ChatContext | None = None
    source: Literal["webhook"] = "webhook"
    processing_time_ms: int = Field(ge=0)
    received_at: int = Field(ge=0)  # epoch millis


class ProcessedEvent(BaseModel):
    """Normalized event handed to the workflow engine."""

    model_config = ConfigDict(frozen=True)

    update_type: str | None
    timestamp: int
    event_id: str
    event_context: dict[str, Any]
    validation_status: ValidationStatus
    metadata: EventMetadata
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    def as_workflow_item(self) -> dict[str, Any]:
        """Original payload fields overlaid with the derived ones."""
        derived = self.model_dump(mode="json", exclude_none=True)
        return {**self.raw, **derived}


def _parse_id_list(value: str | None) -> frozenset[int]:
    """Parse a comma-separated id list; malformed tokens are dropped."""
    if not value:
        return frozenset()
    ids: set[int] = set()
    for token in str(value).split(","):
        token = token.strip()
        if not token:
            continue
        try:
            ids.add(int(token))
        except ValueError:
            logger.debug("Ignoring malformed id token %r", token)
    return frozenset(ids)


def _parse_update_types(value: str | list[str] | None) -> frozenset[UpdateType]:
    if not value:
        return frozenset()
    tokens = value.split(",") if isinstance(value, str) else value
    types: set[UpdateType] = set()
    for token in tokens:
        token = str(token).strip()
        if not token:
            continue
        try:
            types.add(UpdateType(token))
        except ValueError:
            logger.debug("Ignoring unknown update type %r", token)
    return frozenset(types)


class FilterCriteria(BaseModel):
    """Allow-lists applied before an event reaches the workflow.

    An empty set means "allow all" for that dimension.
    """

    model_config = ConfigDict(frozen=True)

    chat_ids: frozenset[int] = frozenset()
    user_ids: frozenset[int] = frozenset()
    update_types: frozenset[UpdateType] = frozenset()

    @classmethod
    def from_config(
        cls,
        chat_ids: str | None = None,
        user_ids: str | None = None,
        events: str | list[str] | None = None,
    ) -> FilterCriteria:
        """Build criteria from the operator's comma-separated strings."""
        return cls(
            chat_ids=_parse_id_list(chat_ids),
            user_ids=_parse_id_list(user_ids),
            update_types=_parse_update_types(events),
        )
