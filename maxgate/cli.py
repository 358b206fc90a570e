"""Click CLI for processing payloads, classifying errors and managing subscriptions."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any

import click

from maxgate.client.bot import MaxBotClient
from maxgate.client.subscriptions import WebhookSubscriptionManager
from maxgate.config import Settings
from maxgate.errors.classifier import classify_error
from maxgate.errors.exceptions import MaxApiError, MaxError
from maxgate.errors.formatter import build_error
from maxgate.errors.retry import RetryPolicy
from maxgate.events.models import FilterCriteria
from maxgate.events.processor import EventProcessor


def _load_json(source: str) -> Any:
    """Read JSON from a file path, ``-`` for stdin, or an inline JSON string."""
    if source == "-":
        return json.loads(click.get_text_stream("stdin").read())
    if os.path.exists(source):
        with open(source, encoding="utf-8") as f:
            return json.load(f)
    return json.loads(source)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Max messenger webhook and Bot API tooling."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = Settings.from_env()


@cli.command()
@click.argument("payload")
@click.option("--chat-ids", default=None, help="Comma-separated allowed chat IDs.")
@click.option("--user-ids", default=None, help="Comma-separated allowed user IDs.")
@click.option("--events", default=None, help="Comma-separated allowed update types.")
@click.pass_context
def process(
    ctx: click.Context,
    payload: str,
    chat_ids: str | None,
    user_ids: str | None,
    events: str | None,
) -> None:
    """Run a webhook body (file, '-' or inline JSON) through the event pipeline."""
    settings: Settings = ctx.obj["settings"]
    try:
        body = _load_json(payload)
    except (OSError, json.JSONDecodeError) as exc:
        raise click.BadParameter(str(exc), param_hint="PAYLOAD") from exc
    criteria = FilterCriteria.from_config(
        chat_ids=chat_ids if chat_ids is not None else settings.chat_ids,
        user_ids=user_ids if user_ids is not None else settings.user_ids,
        events=events if events is not None else settings.events,
    )
    click.echo(json.dumps(EventProcessor(criteria).handle(body), indent=2, ensure_ascii=False))


@cli.command("classify-error")
@click.argument("error")
@click.option("--operation", default="request", help="Operation name used in descriptions.")
@click.option("--attempt", default=0, type=int, help="0-based index of the failed attempt.")
@click.option("--max-attempts", default=3, type=int, help="Retry budget.")
def classify_error_command(error: str, operation: str, attempt: int, max_attempts: int) -> None:
    """Classify an error payload and show the retry decision and surfaced error."""
    try:
        raw: Any = _load_json(error)
    except (OSError, json.JSONDecodeError):
        raw = error
    classified = classify_error(raw)
    decision = RetryPolicy().decide(classified, attempt, max_attempts)
    surfaced = build_error(
        classified,
        operation,
        attempt=attempt,
        max_attempts=max_attempts,
        exhausted=not decision.should_retry,
    )
    output = {
        "category": classified.category.value,
        "status": classified.status,
        "retry_after": classified.retry_after,
        "decision": decision.model_dump(),
        "error": {
            "kind": type(surfaced).__name__,
            "message": surfaced.message,
            "description": surfaced.description,
            "http_code": surfaced.http_code if isinstance(surfaced, MaxApiError) else None,
        },
    }
    click.echo(json.dumps(output, indent=2))


@cli.group("subscriptions")
def subscriptions_group() -> None:
    """Manage Max webhook subscriptions."""


def _client(ctx: click.Context) -> MaxBotClient:
    settings: Settings = ctx.obj["settings"]
    if not settings.access_token:
        raise click.UsageError("MAX_ACCESS_TOKEN is not set")
    return MaxBotClient.from_settings(settings)


async def _list(client: MaxBotClient) -> list[dict[str, Any]]:
    async with client:
        return await client.get_subscriptions()


async def _create(client: MaxBotClient, url: str, events: list[str]) -> bool:
    async with client:
        return await WebhookSubscriptionManager(client, url, events).ensure()


async def _delete(client: MaxBotClient, url: str) -> bool:
    async with client:
        return await WebhookSubscriptionManager(client, url).remove()


@subscriptions_group.command("list")
@click.pass_context
def subscriptions_list(ctx: click.Context) -> None:
    """List current subscriptions."""
    try:
        items = asyncio.run(_list(_client(ctx)))
    except MaxError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(json.dumps(items, indent=2))


@subscriptions_group.command("create")
@click.argument("url")
@click.option("--events", default=None, help="Comma-separated update types (default: MAX_EVENTS).")
@click.pass_context
def subscriptions_create(ctx: click.Context, url: str, events: str | None) -> None:
    """Subscribe URL to webhook deliveries (no-op when already subscribed)."""
    settings: Settings = ctx.obj["settings"]
    wanted = [e.strip() for e in events.split(",") if e.strip()] if events else settings.subscribed_events
    try:
        created = asyncio.run(_create(_client(ctx), url, wanted))
    except MaxError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Subscribed: {url}" if created else f"Already subscribed: {url}")


@subscriptions_group.command("delete")
@click.argument("url")
@click.pass_context
def subscriptions_delete(ctx: click.Context, url: str) -> None:
    """Remove the subscription for URL."""
    if not asyncio.run(_delete(_client(ctx), url)):
        raise click.ClickException(f"Could not delete subscription for {url}")
    click.echo(f"Unsubscribed: {url}")
