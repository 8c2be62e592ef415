"""Unit tests for RedisNotifier."""
import json
from unittest.mock import AsyncMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from src.am_notify.publisher import SETTLEMENT_COMPLETED, RedisNotifier


async def test_publish_envelope() -> None:
    redis = AsyncMock()
    with patch("src.am_notify.publisher.get_redis", AsyncMock(return_value=redis)):
        await RedisNotifier(channel="test-events").publish(
            SETTLEMENT_COMPLETED, {"listing_id": "L-1", "rejected_bidder_ids": ["buyer-2"]}
        )
    channel, raw = redis.publish.call_args[0]
    assert channel == "test-events"
    message = json.loads(raw)
    assert message["type"] == "settlement.completed"
    assert message["payload"]["rejected_bidder_ids"] == ["buyer-2"]
    assert "occurred_at" in message


async def test_publish_failure_is_logged_not_raised(caplog) -> None:
    redis = AsyncMock()
    redis.publish.side_effect = RedisConnectionError("down")
    with patch("src.am_notify.publisher.get_redis", AsyncMock(return_value=redis)):
        await RedisNotifier(channel="test-events").publish(SETTLEMENT_COMPLETED, {})
    assert "Failed to publish settlement.completed" in caplog.text
