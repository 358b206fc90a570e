"""Pydantic models for outbound error handling."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(str, Enum):
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    BUSINESS_LOGIC = "business_logic"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ErrorView(BaseModel):
    """Normalized view of a raw error, extracted once before classification."""

    model_config = ConfigDict(frozen=True)

    status: int | None = None
    error_code: int | None = None
    code: str | None = None  # transport or API string code, e.g. "ETIMEDOUT"
    message: str | None = None
    description: str | None = None
    retry_after: float | None = None  # seconds
    migrate_to_chat_id: int | None = None
    nested: ErrorView | None = None  # response.data

    @property
    def numeric_code(self) -> int | None:
        return self.error_code if self.error_code is not None else self.status

    @property
    def text(self) -> str:
        """Lower-cased message and description for phrase matching."""
        return " ".join(t for t in (self.message, self.description) if t).lower()

    @property
    def summary(self) -> str | None:
        """Best human-readable text: description, then message."""
        return self.description or self.message


class ClassifiedError(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: ErrorCategory
    raw: Any = None  # opaque, as received
    view: ErrorView = Field(default_factory=ErrorView)
    status: int | None = None
    retry_after: float | None = None
    migrate_to_chat_id: int | None = None

    @property
    def description(self) -> str | None:
        if self.view.summary:
            return self.view.summary
        return self.view.nested.summary if self.view.nested else None


class RetryDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    should_retry: bool
    delay_ms: int = Field(ge=0)
    attempts_remaining: int = Field(ge=0)
