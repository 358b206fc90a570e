"""Update-type classification and tolerant decoding of webhook bodies."""

from __future__ import annotations

import copy
import logging
from typing import Any

from pydantic import ValidationError

from maxgate.models import WEBHOOK_EVENT_ADAPTER, UpdateType, WebhookEvent

logger = logging.getLogger(__name__)

# Each pass removes one offending field, so this bounds the work on hostile input.
_MAX_PRUNE_PASSES = 64


def classify_update_type(raw: object) -> UpdateType | None:
    """Return the payload's update type, or None when it is not recognized.

    None covers a non-mapping body, a missing or null tag, a non-string tag
    and any value outside the closed set.
    """
    if not isinstance(raw, dict):
        return None
    value = raw.get("update_type")
    if not isinstance(value, str):
        return None
    try:
        return UpdateType(value)
    except ValueError:
        return None


def decode_event(raw: dict[str, Any]) -> tuple[WebhookEvent | None, list[str]]:
    """Decode a classified body into its variant model.

    Fields that fail validation are dropped from a private copy and
    reported as ``"<path>: <reason>"`` strings; the rest of the payload is
    still decoded. Returns ``(None, errors)`` only when nothing decodable
    is left.
    """
    data = copy.deepcopy(raw)
    errors: list[str] = []
    tag = data.get("update_type")

    for _ in range(_MAX_PRUNE_PASSES):
        try:
            return WEBHOOK_EVENT_ADAPTER.validate_python(data), errors
        except ValidationError as exc:
            details = exc.errors(include_url=False)
            if not details:
                break
            first = details[0]
            loc = tuple(first["loc"])
            # Tagged-union errors are prefixed with the matched tag.
            if loc and loc[0] == tag:
                loc = loc[1:]
            path = _prune(data, loc)
            if not path:
                errors.append(f"payload: {first['msg']}")
                break
            errors.append(f"{'.'.join(str(p) for p in path)}: {first['msg']}")

    logger.warning("Could not decode %s payload: %s", tag, errors)
    return None, errors


def _prune(data: Any, loc: tuple[Any, ...]) -> list[Any]:
    """Delete the deepest existing element of ``loc`` from ``data``.

    Returns the path that was removed, empty when nothing could be removed.
    """
    parent: Any = None
    key: Any = None
    current = data
    walked: list[Any] = []
    for step in loc:
        if isinstance(current, dict) and step in current:
            parent, key, current = current, step, current[step]
        elif isinstance(current, list) and isinstance(step, int) and 0 <= step < len(current):
            parent, key, current = current, step, current[step]
        else:
            break
        walked.append(step)

    if parent is None or key == "update_type":
        return []
    del parent[key]
    return walked
