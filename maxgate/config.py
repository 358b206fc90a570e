"""Environment-driven configuration."""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict, Field

from maxgate.events.models import FilterCriteria

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://platform-api.max.ru"


def _int_from_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, value, default)
        return default


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str = ""
    base_url: str = DEFAULT_BASE_URL
    events: str = ""
    chat_ids: str = ""
    user_ids: str = ""
    workflow_url: str | None = None
    workflow_token: str | None = None
    retry_attempts: int = Field(default=3, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from MAX_* and WORKFLOW_* environment variables."""
        return cls(
            access_token=os.environ.get("MAX_ACCESS_TOKEN", ""),
            base_url=os.environ.get("MAX_BASE_URL") or DEFAULT_BASE_URL,
            events=os.environ.get("MAX_EVENTS", ""),
            chat_ids=os.environ.get("MAX_CHAT_IDS", ""),
            user_ids=os.environ.get("MAX_USER_IDS", ""),
            workflow_url=os.environ.get("WORKFLOW_URL") or None,
            workflow_token=os.environ.get("WORKFLOW_TOKEN") or None,
            retry_attempts=max(_int_from_env("MAX_RETRY_ATTEMPTS", 3), 0),
        )

    @property
    def subscribed_events(self) -> list[str]:
        return [e.strip() for e in self.events.split(",") if e.strip()]

    def filter_criteria(self) -> FilterCriteria:
        return FilterCriteria.from_config(
            chat_ids=self.chat_ids,
            user_ids=self.user_ids,
            events=self.events,
        )
