"""Inbound webhook pipeline.

Pipeline stages:
1. Classify the update type
2. Decode into the variant model and validate
3. Derive the idempotency key
4. Build the per-type event context
5. Apply operator filters
6. Enrich with user/chat metadata and timing
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, Union

from maxgate.events.context import build_event_context
from maxgate.events.decoder import classify_update_type, decode_event
from maxgate.events.enricher import build_metadata
from maxgate.events.filters import EventFilter
from maxgate.events.idempotency import derive_event_id, stable_identifier
from maxgate.events.models import FilterCriteria, ProcessedEvent
from maxgate.events.validator import validate_event

logger = logging.getLogger(__name__)

CriteriaSource = Union[FilterCriteria, Callable[[], FilterCriteria]]


def _has_content(body: object) -> bool:
    """False for bodies with nothing to report: null, {}, or only a timestamp."""
    if not isinstance(body, dict) or not body:
        return False
    meaningful = {k for k, v in body.items() if k != "timestamp" and v not in (None, "")}
    return bool(meaningful)


def _raw_update_type(body: dict[str, Any]) -> str | None:
    value = body.get("update_type")
    return value if isinstance(value, str) and value else None


def _raw_timestamp(body: dict[str, Any]) -> int | None:
    value = body.get("timestamp")
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


class EventProcessor:
    """Turns raw webhook bodies into ProcessedEvent records.

    Holds only its filter configuration; every call works on fresh data.
    ``criteria`` may be a callable so hosts can load configuration lazily;
    a failing loader yields zero events instead of an exception.
    """

    def __init__(self, criteria: CriteriaSource | None = None) -> None:
        self._criteria = criteria if criteria is not None else FilterCriteria()

    def handle(self, body: object) -> list[dict[str, Any]]:
        """Process one webhook delivery into zero or one workflow items.

        Never raises: any failure is logged and produces an empty list so the
        platform does not treat the delivery as failed and redeliver it.
        """
        try:
            criteria = self._criteria() if callable(self._criteria) else self._criteria
            processed = self.process(body, criteria)
        except Exception:
            logger.exception("Failed to process webhook delivery")
            return []
        if processed is None:
            return []
        return [processed.as_workflow_item()]

    def process(self, body: object, criteria: FilterCriteria) -> ProcessedEvent | None:
        """Run the pipeline; None means the delivery produced no event."""
        started_at = time.monotonic()
        received_at = int(time.time() * 1000)

        if not isinstance(body, dict) or not _has_content(body):
            logger.debug("Webhook body has no content, nothing to emit")
            return None

        # Stage 1: Classify
        update_type = classify_update_type(body)

        # Stage 2: Decode and validate
        event, decode_errors = decode_event(body) if update_type else (None, [])
        status = validate_event(update_type, event, body, decode_errors)
        if not status.is_valid:
            logger.warning(
                "Invalid %s event: %s",
                update_type.value if update_type else "unclassified",
                "; ".join(status.errors),
            )

        # Stage 3: Idempotency key
        type_name = update_type.value if update_type else _raw_update_type(body)
        timestamp = event.timestamp if event is not None else _raw_timestamp(body)
        event_id = derive_event_id(type_name, timestamp, stable_identifier(event))

        # Stage 4: Event context
        event_context = build_event_context(update_type, event)

        # Stage 5: Filters
        if not EventFilter(criteria).accepts(update_type, event):
            logger.info("Event %s dropped by filters", event_id)
            return None

        # Stage 6: Enrichment
        metadata = build_metadata(event, started_at, received_at)

        logger.info("Emitting %s event %s", type_name, event_id)
        return ProcessedEvent(
            update_type=type_name,
            timestamp=timestamp if timestamp is not None else received_at,
            event_id=event_id,
            event_context=event_context,
            validation_status=status,
            metadata=metadata,
            raw=body,
        )
