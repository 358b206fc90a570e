"""Classification of outbound Max API failures.

This module provides:
- normalize_error(): one-pass extraction of an ErrorView from dicts,
  httpx exceptions, other exceptions and arbitrary objects
- classify_error(): an ordered rule chain over that view

Rule order: numeric status/error_code, transport code, message text, then
the nested ``response.data`` view (once). Numeric signals always win over
text. Classification never raises.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from maxgate.errors.models import ClassifiedError, ErrorCategory, ErrorView

logger = logging.getLogger(__name__)

TRANSPORT_CODES = frozenset({
    "ECONNREFUSED",
    "ECONNRESET",
    "ECONNABORTED",
    "ENOTFOUND",
    "ETIMEDOUT",
    "EAI_AGAIN",
    "EHOSTUNREACH",
    "ENETUNREACH",
    "EPIPE",
})

# Checked in order; the first phrase found decides.
_TEXT_RULES: list[tuple[ErrorCategory, tuple[str, ...]]] = [
    (ErrorCategory.AUTHENTICATION, ("unauthorized", "forbidden", "invalid token")),
    (ErrorCategory.RATE_LIMIT, ("too many requests", "rate limit")),
    (ErrorCategory.VALIDATION, ("bad request", "invalid parameter")),
    (ErrorCategory.BUSINESS_LOGIC, ("not found", "user blocked")),
    (ErrorCategory.NETWORK, ("network", "timeout", "connection")),
]


# --- Extraction ---


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_float(value: object) -> float | None:
    """Finite float or None; "inf" and "nan" hints are discarded."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        result = float(value)
    except (ValueError, OverflowError):
        return None
    return result if math.isfinite(result) else None


def _as_text(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _transport_code(exc: httpx.TransportError) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "ETIMEDOUT"
    if isinstance(exc, httpx.ConnectError):
        text = str(exc).lower()
        if "name or service not known" in text or "getaddrinfo" in text or "nodename" in text:
            return "ENOTFOUND"
        return "ECONNREFUSED"
    return "ECONNRESET"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"message": response.text} if response.text else None


def _from_mapping(data: Mapping[str, Any], depth: int) -> ErrorView:
    parameters = data.get("parameters")
    if not isinstance(parameters, Mapping):
        parameters = {}

    raw_code = data.get("code")
    error_code = _as_int(data.get("error_code"))
    code: str | None = None
    if _as_int(raw_code) is not None and not isinstance(raw_code, str):
        # A numeric "code" is an API status, not a transport code.
        error_code = error_code if error_code is not None else _as_int(raw_code)
    else:
        code = _as_text(raw_code)

    nested: ErrorView | None = None
    response = data.get("response")
    if depth == 0 and response is not None:
        nested = _from_response(response, depth + 1)

    retry_after = _as_float(parameters.get("retry_after"))
    if retry_after is None:
        retry_after = _as_float(data.get("retry_after"))

    return ErrorView(
        status=_as_int(data.get("status")) or _as_int(data.get("status_code")),
        error_code=error_code,
        code=code,
        message=_as_text(data.get("message")),
        description=_as_text(data.get("description")),
        retry_after=retry_after,
        migrate_to_chat_id=_as_int(parameters.get("migrate_to_chat_id")),
        nested=nested,
    )


def _from_response(response: object, depth: int) -> ErrorView | None:
    """View of a nested response: its ``data`` body plus its status."""
    if isinstance(response, httpx.Response):
        status, data = response.status_code, _response_body(response)
    elif isinstance(response, Mapping):
        status, data = _as_int(response.get("status")), response.get("data")
    else:
        status, data = _as_int(getattr(response, "status", None)), getattr(response, "data", None)

    if isinstance(data, Mapping):
        view = _from_mapping(data, depth)
    elif isinstance(data, str) and data:
        view = ErrorView(message=data)
    elif status is None:
        return None
    else:
        view = ErrorView()
    if view.status is None and status is not None:
        view = view.model_copy(update={"status": status})
    return view


def _from_object(obj: object) -> ErrorView:
    fields = {
        name: getattr(obj, name)
        for name in ("error_code", "status", "code", "message", "description", "parameters", "response")
        if getattr(obj, name, None) is not None
    }
    if "message" not in fields and isinstance(obj, BaseException) and str(obj):
        fields["message"] = str(obj)
    return _from_mapping(fields, 0)


def normalize_error(raw: object) -> ErrorView:
    """Extract an ErrorView from any error shape. Never raises."""
    try:
        if raw is None:
            return ErrorView()
        if isinstance(raw, httpx.HTTPStatusError):
            response = raw.response
            body = _response_body(response)
            view = _from_mapping(body, 0) if isinstance(body, Mapping) else ErrorView()
            return view.model_copy(update={
                "status": response.status_code,
                "message": view.message or str(raw),
                "retry_after": view.retry_after or _as_float(response.headers.get("retry-after")),
            })
        if isinstance(raw, httpx.TransportError):
            return ErrorView(code=_transport_code(raw), message=str(raw) or type(raw).__name__)
        if isinstance(raw, Mapping):
            return _from_mapping(raw, 0)
        if isinstance(raw, str):
            return ErrorView(message=raw or None)
        return _from_object(raw)
    except Exception:
        logger.exception("Could not normalize error of type %s", type(raw).__name__)
        return ErrorView(message=type(raw).__name__)


# --- Rules ---


def _by_numeric(view: ErrorView) -> ErrorCategory | None:
    code = view.numeric_code
    if code is None:
        return None
    if code in (401, 403):
        return ErrorCategory.AUTHENTICATION
    if code == 429:
        return ErrorCategory.RATE_LIMIT
    if code == 400:
        return ErrorCategory.VALIDATION
    if 400 <= code < 500:
        return ErrorCategory.BUSINESS_LOGIC
    if 500 <= code < 600:
        return ErrorCategory.UNKNOWN
    return None


def _by_transport(view: ErrorView) -> ErrorCategory | None:
    if view.code and view.code.upper() in TRANSPORT_CODES:
        return ErrorCategory.NETWORK
    return None


def _by_text(view: ErrorView) -> ErrorCategory | None:
    text = view.text
    for category, phrases in _TEXT_RULES[:2]:
        if any(p in text for p in phrases):
            return category
    if view.retry_after is not None:
        return ErrorCategory.RATE_LIMIT
    for category, phrases in _TEXT_RULES[2:]:
        if any(p in text for p in phrases):
            return category
    return None


_RULE_CHAIN: tuple[Callable[[ErrorView], ErrorCategory | None], ...] = (
    _by_numeric,
    _by_transport,
    _by_text,
)


def _categorize(view: ErrorView) -> tuple[ErrorCategory, ErrorView]:
    for rule in _RULE_CHAIN:
        category = rule(view)
        if category is not None:
            return category, view
    if view.nested is not None:
        for rule in _RULE_CHAIN:
            category = rule(view.nested)
            if category is not None:
                return category, view.nested
    return ErrorCategory.UNKNOWN, view


def classify_error(raw: object) -> ClassifiedError:
    """Map a raw error onto exactly one ErrorCategory."""
    view = normalize_error(raw)
    category, source = _categorize(view)
    nested = view.nested
    return ClassifiedError(
        category=category,
        raw=raw,
        view=view,
        status=source.numeric_code if source.numeric_code is not None else view.numeric_code,
        retry_after=view.retry_after if view.retry_after is not None else (
            nested.retry_after if nested else None
        ),
        migrate_to_chat_id=view.migrate_to_chat_id or (nested.migrate_to_chat_id if nested else None),
    )
