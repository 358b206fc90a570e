"""Outbound error handling for the Max Bot API.

This module provides:
- Error classification into a fixed category taxonomy
- Retry decisions and the retry loop
- Operator-facing messages and structured errors
"""

from maxgate.errors.classifier import classify_error, normalize_error
from maxgate.errors.exceptions import MaxApiError, MaxError, MaxOperationError
from maxgate.errors.formatter import build_error, user_message
from maxgate.errors.models import ClassifiedError, ErrorCategory, ErrorView, RetryDecision
from maxgate.errors.retry import RetryPolicy, call_with_retry

__all__ = [
    # Exceptions
    "MaxApiError",
    "MaxError",
    "MaxOperationError",
    # Components
    "RetryPolicy",
    "build_error",
    "call_with_retry",
    "classify_error",
    "normalize_error",
    "user_message",
    # Models
    "ClassifiedError",
    "ErrorCategory",
    "ErrorView",
    "RetryDecision",
]
