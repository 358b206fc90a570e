"""Operator allow-list filtering of inbound events."""

from __future__ import annotations

import logging

from maxgate.events.lookup import resolve_chat_id, resolve_user_id
from maxgate.events.models import FilterCriteria
from maxgate.models import UpdateType, WebhookEvent

logger = logging.getLogger(__name__)

# Update types that carry no chat id / no acting user at all. For these an
# absent id satisfies the corresponding filter vacuously.
_WITHOUT_CHAT = frozenset({UpdateType.BOT_STARTED})
_WITHOUT_USER = frozenset({UpdateType.MESSAGE_CHAT_CREATED})


class EventFilter:
    """Accepts or rejects events against a FilterCriteria.

    An event passes when its update type is subscribed (or no subscription
    list is configured) and both its chat id and user id are allowed. When
    a configured dimension's id is missing from an event whose update type
    normally carries it, the event is rejected.
    """

    def __init__(self, criteria: FilterCriteria) -> None:
        self._criteria = criteria

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    def accepts(self, update_type: UpdateType | None, event: WebhookEvent | None) -> bool:
        criteria = self._criteria
        if update_type is None or event is None:
            # Unclassified records carry no ids to check against an allow-list.
            return not (criteria.chat_ids or criteria.user_ids)

        if criteria.update_types and update_type not in criteria.update_types:
            logger.info("Update type %s is not subscribed, dropping event", update_type.value)
            return False

        if criteria.chat_ids:
            chat_id = resolve_chat_id(event)
            if chat_id is None:
                if update_type not in _WITHOUT_CHAT:
                    logger.info("Event %s has no chat id, dropping under chat filter", update_type.value)
                    return False
            elif chat_id not in criteria.chat_ids:
                logger.info("Chat id %s filtered out", chat_id)
                return False

        if criteria.user_ids:
            user_id = resolve_user_id(event)
            if user_id is None:
                if update_type not in _WITHOUT_USER:
                    logger.info("Event %s has no user id, dropping under user filter", update_type.value)
                    return False
            elif user_id not in criteria.user_ids:
                logger.info("User id %s filtered out", user_id)
                return False

        return True
