"""Tests for the inbound webhook pipeline end to end."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from maxgate.events.models import FilterCriteria
from maxgate.events.processor import EventProcessor
from tests.conftest import (
    TIMESTAMP_MS,
    make_bot_started,
    make_callback_event,
    make_chat,
    make_membership_event,
    make_message,
    make_message_created,
)


class TestValidMessages:
    def test_message_with_mid_text_and_sender_is_valid(self, processor: EventProcessor) -> None:
        events = processor.handle(make_message_created())
        assert len(events) == 1
        event = events[0]
        assert event["validation_status"]["is_valid"] is True
        assert event["validation_status"]["errors"] == []
        assert event["event_context"]["has_text"] is True

    @pytest.mark.parametrize("text", ["x", "Привет", "a" * 4000])
    def test_any_text_is_reported(self, processor: EventProcessor, text: str) -> None:
        event = processor.handle(make_message_created(message=make_message(text=text)))[0]
        assert event["validation_status"]["is_valid"] is True
        assert event["event_context"]["message_length"] == len(text)

    def test_original_fields_are_preserved(self, processor: EventProcessor) -> None:
        body = make_message_created(custom_field="kept")
        event = processor.handle(body)[0]
        assert event["custom_field"] == "kept"
        assert event["message"] == body["message"]
        assert event["update_type"] == "message_created"
        assert event["timestamp"] == TIMESTAMP_MS

    def test_metadata_is_attached(self, processor: EventProcessor) -> None:
        event = processor.handle(make_message_created())[0]
        metadata = event["metadata"]
        assert metadata["source"] == "webhook"
        assert metadata["processing_time_ms"] >= 0
        assert metadata["user_context"]["user_id"] == 555
        assert metadata["chat_context"]["chat_id"] == 111111

    def test_input_body_is_not_mutated(self, processor: EventProcessor) -> None:
        body = make_message_created(message=make_message(sender={"user_id": "not-a-number"}))
        snapshot = repr(body)
        processor.handle(body)
        assert repr(body) == snapshot


class TestInvalidTypes:
    def test_missing_update_type_is_invalid(self, processor: EventProcessor) -> None:
        body = make_message_created()
        del body["update_type"]
        event = processor.handle(body)[0]
        assert event["validation_status"]["is_valid"] is False
        assert event["validation_status"]["errors"] == ["Missing update_type"]

    def test_unsupported_update_type_names_the_value(self, processor: EventProcessor) -> None:
        event = processor.handle(make_message_created(update_type="message_exploded"))[0]
        assert event["validation_status"]["is_valid"] is False
        assert "message_exploded" in event["validation_status"]["errors"][0]
        assert event["event_context"]["is_supported"] is False

    def test_decode_error_is_reported_not_raised(self, processor: EventProcessor) -> None:
        event = processor.handle(make_bot_started(user={"user_id": "abc"}))[0]
        status = event["validation_status"]
        assert status["is_valid"] is False
        assert any(e.startswith("user.user_id:") for e in status["errors"])

    def test_message_without_identifier_is_invalid(self, processor: EventProcessor) -> None:
        event = processor.handle(make_message_created(message=make_message(mid=None)))[0]
        assert event["validation_status"]["is_valid"] is False
        assert any("message.body.mid" in e for e in event["validation_status"]["errors"])


class TestMalformedBodies:
    @pytest.mark.parametrize("body", [None, {}, [], "text", 42, {"timestamp": TIMESTAMP_MS}])
    def test_empty_bodies_emit_nothing(self, processor: EventProcessor, body: object) -> None:
        assert processor.handle(body) == []

    def test_unrecognized_content_yields_invalid_record(self, processor: EventProcessor) -> None:
        events = processor.handle({"invalid": "data"})
        assert len(events) == 1
        assert events[0]["validation_status"]["is_valid"] is False
        assert events[0]["invalid"] == "data"

    def test_internal_failure_yields_zero_events(self, processor: EventProcessor) -> None:
        with patch("maxgate.events.processor.build_event_context", side_effect=RuntimeError("boom")):
            assert processor.handle(make_message_created()) == []

    def test_failing_criteria_loader_yields_zero_events(self) -> None:
        loader = MagicMock(side_effect=KeyError("chatIds"))
        assert EventProcessor(loader).handle(make_message_created()) == []


class TestIdempotency:
    def test_identical_input_gives_identical_event_id(self, processor: EventProcessor) -> None:
        first = processor.handle(make_message_created())[0]
        second = processor.handle(make_message_created())[0]
        assert first["event_id"] == second["event_id"]

    def test_update_type_changes_event_id(self, processor: EventProcessor) -> None:
        created = processor.handle(make_message_created())[0]
        edited = processor.handle(make_message_created(update_type="message_edited"))[0]
        assert created["event_id"] != edited["event_id"]

    def test_timestamp_changes_event_id(self, processor: EventProcessor) -> None:
        first = processor.handle(make_message_created())[0]
        later = processor.handle(make_message_created(timestamp=TIMESTAMP_MS + 1))[0]
        assert first["event_id"] != later["event_id"]

    def test_platform_event_id_is_replaced(self, processor: EventProcessor) -> None:
        event = processor.handle(make_message_created(event_id="platform-1"))[0]
        assert event["event_id"] != "platform-1"
        assert len(event["event_id"]) == 32


class TestFiltering:
    def test_allowed_chat_is_emitted(self) -> None:
        criteria = FilterCriteria.from_config(chat_ids="111111,222222")
        body = make_message_created(message=make_message(recipient={"chat_id": 111111}))
        assert len(EventProcessor(criteria).handle(body)) == 1

    def test_other_chat_is_dropped(self) -> None:
        criteria = FilterCriteria.from_config(chat_ids="111111,222222")
        body = make_message_created(message=make_message(recipient={"chat_id": 999999}))
        assert EventProcessor(criteria).handle(body) == []

    def test_combined_filters_require_both(self) -> None:
        criteria = FilterCriteria.from_config(chat_ids="111111", user_ids="555")
        processor = EventProcessor(criteria)
        assert len(processor.handle(make_membership_event("bot_added", user=None, chat=make_chat()))) == 0
        assert len(processor.handle(make_callback_event())) == 1

    def test_combined_filters_user_mismatch_drops(self) -> None:
        criteria = FilterCriteria.from_config(chat_ids="111111", user_ids="555")
        body = make_message_created(message=make_message(sender={"user_id": 999}))
        assert EventProcessor(criteria).handle(body) == []

    def test_combined_filters_chat_mismatch_drops(self) -> None:
        criteria = FilterCriteria.from_config(chat_ids="111111", user_ids="555")
        body = make_message_created(message=make_message(recipient={"chat_id": 222222}))
        assert EventProcessor(criteria).handle(body) == []

    def test_unsubscribed_type_is_dropped(self) -> None:
        criteria = FilterCriteria.from_config(events="message_created")
        assert EventProcessor(criteria).handle(make_bot_started()) == []

    def test_criteria_loader_is_called_per_delivery(self) -> None:
        loader = MagicMock(return_value=FilterCriteria())
        processor = EventProcessor(loader)
        processor.handle(make_message_created())
        processor.handle(make_message_created())
        assert loader.call_count == 2

    def test_invalid_record_dropped_under_chat_filter(self) -> None:
        criteria = FilterCriteria.from_config(chat_ids="111111")
        assert EventProcessor(criteria).handle({"invalid": "data"}) == []


class TestMissingTimestamp:
    def test_falls_back_to_receive_time_with_warning(self, processor: EventProcessor) -> None:
        body = make_message_created()
        del body["timestamp"]
        event = processor.handle(body)[0]
        assert event["timestamp"] == event["metadata"]["received_at"]
        assert any("timestamp" in w for w in event["validation_status"]["warnings"])
