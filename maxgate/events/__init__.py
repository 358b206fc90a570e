"""Inbound webhook event pipeline.

This module provides:
- Update type classification and tolerant decoding
- Validation and idempotency keys
- Per-type event context, filtering and metadata enrichment
"""

from maxgate.events.context import build_event_context
from maxgate.events.decoder import classify_update_type, decode_event
from maxgate.events.enricher import build_metadata
from maxgate.events.filters import EventFilter
from maxgate.events.idempotency import derive_event_id, stable_identifier
from maxgate.events.models import (
    ChatContext,
    EventMetadata,
    FilterCriteria,
    ProcessedEvent,
    UserContext,
    ValidationStatus,
)
from maxgate.events.processor import EventProcessor
from maxgate.events.validator import validate_event

__all__ = [
    # Components
    "EventFilter",
    "EventProcessor",
    "build_event_context",
    "build_metadata",
    "classify_update_type",
    "decode_event",
    "derive_event_id",
    "stable_identifier",
    "validate_event",
    # Models
    "ChatContext",
    "EventMetadata",
    "FilterCriteria",
    "ProcessedEvent",
    "UserContext",
    "ValidationStatus",
]
