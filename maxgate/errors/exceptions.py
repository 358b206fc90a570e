"""Exceptions surfaced to callers of the Max Bot API."""

from __future__ import annotations

from maxgate.errors.models import ErrorCategory


class MaxError(Exception):
    """Base class for every error maxgate raises on the outbound side."""

    def __init__(self, message: str, category: ErrorCategory, description: str = "") -> None:
        self.message = message
        self.category = category
        self.description = description
        super().__init__(message)


class MaxApiError(MaxError):
    """The remote API (or the path to it) failed."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        description: str = "",
        http_code: str | None = None,
        error_code: int | None = None,
        retry_after: float | None = None,
        retryable: bool = False,
        original: object = None,
    ) -> None:
        self.http_code = http_code
        self.error_code = error_code
        self.retry_after = retry_after
        self.retryable = retryable
        self.original = original
        super().__init__(message, category, description)


class MaxOperationError(MaxError):
    """The caller sent something the API rejected as invalid. Carries no HTTP status."""

    def __init__(self, message: str, description: str = "") -> None:
        super().__init__(message, ErrorCategory.VALIDATION, description)
