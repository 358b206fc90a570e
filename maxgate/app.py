"""FastAPI webhook receiver for Max Bot API deliveries."""

from __future__ import annotations

import json
import logging

from fastapi import BackgroundTasks, FastAPI, Request

from maxgate.client.forwarder import WorkflowForwarder
from maxgate.config import Settings
from maxgate.errors.exceptions import MaxError
from maxgate.events.processor import EventProcessor

logger = logging.getLogger(__name__)


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    settings = Settings.from_env()
    return create_app(
        EventProcessor(settings.filter_criteria),
        WorkflowForwarder.from_settings(settings),
    )


async def _forward(forwarder: WorkflowForwarder, events: list[dict]) -> None:
    try:
        await forwarder.forward(events)
    except MaxError as exc:
        logger.error("Forwarding failed: %s (%s)", exc.description, exc.category.value)


def create_app(
    processor: EventProcessor,
    forwarder: WorkflowForwarder | None = None,
) -> FastAPI:
    """Create the receiver app.

    The webhook route always answers 200 so the platform never redelivers a
    body that could not be processed; problems are logged instead. Forwarding
    runs as a background task after the response is sent.
    """
    app = FastAPI(docs_url=None, redoc_url=None)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/webhook/max")
    async def receive(request: Request, background_tasks: BackgroundTasks) -> dict[str, list]:
        raw = await request.body()
        try:
            body = json.loads(raw) if raw else None
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Webhook body is not valid JSON (%d bytes)", len(raw))
            return {"events": []}

        events = processor.handle(body)
        if forwarder is not None and events:
            background_tasks.add_task(_forward, forwarder, events)
        return {"events": events}

    return app
