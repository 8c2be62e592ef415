"""Post-commit event publication over Redis pub/sub.

Notifications are fire-and-forget: they are sent only after the database
transaction has committed, and a delivery failure is logged and never
rolls back or fails the business operation that produced the event.

Event envelope:
    {"type": "settlement.completed", "occurred_at": "...", "payload": {...}}
"""

import json
import logging
from typing import Any, Protocol

from redis.exceptions import RedisError

from config.settings import settings
from src.am_common.datetime_utils import utc_now
from src.am_common.redis_client import get_redis

logger = logging.getLogger(__name__)

BID_SUBMITTED = "bid.submitted"
SETTLEMENT_COMPLETED = "settlement.completed"
LISTING_CANCELLED = "listing.cancelled"
ORDER_DELIVERED = "order.delivered"
ORDER_CANCELLED = "order.cancelled"
RECONCILIATION_REQUIRED = "settlement.reconciliation_required"


class NotifierProtocol(Protocol):
    async def publish(self, event_type: str, payload: dict[str, Any]) -> None: ...


class RedisNotifier:
    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.NOTIFY_CHANNEL

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        message = json.dumps(
            {"type": event_type, "occurred_at": utc_now().isoformat(), "payload": payload},
            default=str,
        )
        try:
            redis = await get_redis()
            await redis.publish(self._channel, message)
        except (RedisError, OSError, TimeoutError):
            logger.warning("Failed to publish %s event", event_type, exc_info=True)
