"""Operator-facing messages and structured errors for classified failures."""

from __future__ import annotations

from maxgate.errors.exceptions import MaxApiError, MaxError, MaxOperationError
from maxgate.errors.models import ClassifiedError, ErrorCategory

UNKNOWN_ERROR_TEXT = "An unknown error occurred"


def _seconds(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _business_logic_message(base: str) -> str:
    lowered = base.lower()
    if "chat not found" in lowered:
        return (
            f"Chat not found: {base}. The specified chat ID may be incorrect, or the bot "
            "may not have access to this chat. Make sure the bot has been added to the "
            "chat and has appropriate permissions."
        )
    if "not found" in lowered:
        return (
            f"Not found: {base}. The requested resource may have been deleted, or its ID "
            "may be incorrect. Verify the identifiers passed to the call."
        )
    if "user blocked" in lowered or "forbidden" in lowered:
        return (
            f"Access denied: {base}. The user may have blocked the bot, or the bot lacks "
            "necessary permissions. Check that the bot has been properly configured and "
            "authorized."
        )
    return (
        f"Operation failed: {base}. This may be due to insufficient permissions, missing "
        "resources, or business rule violations. Please verify your bot's access rights "
        "and the validity of the target resources."
    )


def user_message(classified: ClassifiedError) -> str:
    """Render the fixed operator-facing template for a classified error."""
    base = classified.description or UNKNOWN_ERROR_TEXT
    category = classified.category

    if category == ErrorCategory.AUTHENTICATION:
        return (
            f"Authorization failed - please check your credentials: {base}. Please check "
            "your Max API access token. Make sure the token is valid and has not expired; "
            "re-issue it from the bot settings in Max if needed."
        )
    if category == ErrorCategory.RATE_LIMIT:
        if classified.retry_after:
            wait = f" Please wait {_seconds(classified.retry_after)} seconds before retrying."
        else:
            wait = " Please wait before retrying."
        return (
            f"The service is receiving too many requests from you: {base}.{wait} Consider "
            "reducing the frequency of your requests or adding delays between operations."
        )
    if category == ErrorCategory.VALIDATION:
        return (
            f"Invalid request parameters: {base}. Please check your input data. Common "
            "issues include invalid user or chat IDs, message text over 4000 characters, "
            "unsupported formatting, or missing required fields."
        )
    if category == ErrorCategory.BUSINESS_LOGIC:
        return _business_logic_message(base)
    if category == ErrorCategory.NETWORK:
        return (
            f"Network error: {base}. Please check your internet connection and the Max API "
            "service status. If the problem persists, try again later or verify the base URL."
        )
    return (
        f"The service was not able to process your request: {base}. If this error persists, "
        "please check the Max API documentation or contact support with the error details."
    )


def _describe(
    classified: ClassifiedError,
    operation: str,
    attempt: int | None,
    max_attempts: int | None,
    exhausted: bool,
) -> str:
    category = classified.category
    if category == ErrorCategory.VALIDATION:
        return f"Validation error during {operation}"
    if category == ErrorCategory.RATE_LIMIT:
        prefix = f"Rate limit hit during {operation}"
    elif category == ErrorCategory.NETWORK:
        prefix = f"Network error during {operation}"
    else:
        prefix = f"Error during {operation}"

    if attempt is None:
        return prefix
    if exhausted:
        return f"{prefix} after {attempt + 1} attempts"
    if max_attempts is not None and category in (ErrorCategory.RATE_LIMIT, ErrorCategory.NETWORK):
        return f"{prefix}. Retry attempt {attempt + 1}/{max_attempts}"
    return prefix


def build_error(
    classified: ClassifiedError,
    operation: str,
    attempt: int | None = None,
    max_attempts: int | None = None,
    exhausted: bool = False,
) -> MaxError:
    """Build the structured error for a classified failure.

    Args:
        classified: Output of ``classify_error``.
        operation: Human name of the call that failed, e.g. "send message".
        attempt: 0-based index of the failed attempt, when retrying.
        max_attempts: Retry budget the caller configured.
        exhausted: True when the retry budget is spent.

    Returns:
        MaxOperationError for VALIDATION, MaxApiError for everything else.
    """
    message = user_message(classified)
    description = _describe(classified, operation, attempt, max_attempts, exhausted)

    if classified.category == ErrorCategory.VALIDATION:
        return MaxOperationError(message, description=description)

    http_code = str(classified.status) if classified.status is not None else None
    if classified.category == ErrorCategory.RATE_LIMIT and http_code is None:
        http_code = "429"
    return MaxApiError(
        message,
        classified.category,
        description=description,
        http_code=http_code,
        error_code=classified.view.error_code,
        retry_after=classified.retry_after,
        retryable=classified.category in (
            ErrorCategory.RATE_LIMIT, ErrorCategory.NETWORK, ErrorCategory.UNKNOWN,
        ) and not exhausted,
        original=classified.raw,
    )
