"""Tests for the maxgate CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from maxgate.cli import cli
from tests.conftest import make_message_created


class TestProcessCommand:
    def test_processes_payload_file(self, tmp_path: Path) -> None:
        payload = tmp_path / "event.json"
        payload.write_text(json.dumps(make_message_created()))
        result = CliRunner().invoke(cli, ["process", str(payload)])
        assert result.exit_code == 0, result.output
        events = json.loads(result.output)
        assert events[0]["validation_status"]["is_valid"] is True

    def test_inline_json_with_filter(self) -> None:
        body = json.dumps(make_message_created())
        result = CliRunner().invoke(cli, ["process", body, "--chat-ids", "999999"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == []

    def test_invalid_payload_is_usage_error(self) -> None:
        result = CliRunner().invoke(cli, ["process", "{not json"])
        assert result.exit_code == 2


class TestClassifyErrorCommand:
    def test_classifies_inline_json(self) -> None:
        result = CliRunner().invoke(cli, ["classify-error", '{"error_code": 429, "parameters": {"retry_after": 120}}'])
        assert result.exit_code == 0, result.output
        output = json.loads(result.output)
        assert output["category"] == "rate_limit"
        assert output["decision"]["delay_ms"] == 120_000
        assert output["error"]["kind"] == "MaxApiError"

    def test_plain_text_error(self) -> None:
        result = CliRunner().invoke(cli, ["classify-error", "connection refused", "--attempt", "3"])
        output = json.loads(result.output)
        assert output["category"] == "network"
        assert output["decision"]["should_retry"] is False
        assert output["error"]["description"] == "Network error during request after 4 attempts"


class TestSubscriptionsCommands:
    def test_requires_token(self, monkeypatch) -> None:
        monkeypatch.delenv("MAX_ACCESS_TOKEN", raising=False)
        result = CliRunner().invoke(cli, ["subscriptions", "list"])
        assert result.exit_code == 2
        assert "MAX_ACCESS_TOKEN" in result.output

    def test_create_reports_existing(self, monkeypatch) -> None:
        monkeypatch.setenv("MAX_ACCESS_TOKEN", "tok")
        with patch("maxgate.cli.WebhookSubscriptionManager.ensure", new_callable=AsyncMock, return_value=False):
            result = CliRunner().invoke(cli, ["subscriptions", "create", "https://bot.test/hook"])
        assert result.exit_code == 0, result.output
        assert "Already subscribed" in result.output
