"""Tests for RedisEventPublisher."""

from unittest.mock import AsyncMock, MagicMock, patch

import orjson

from fliplive.services.events import LIVE_CREATED, RedisEventPublisher


class TestRedisEventPublisher:
    async def test_publishes_json_on_prefixed_channel(self):
        # Arrange
        client = MagicMock()
        client.publish = AsyncMock(return_value=2)
        publisher = RedisEventPublisher(channel_prefix="test:events")

        # Act
        with patch("fliplive.services.events.get_redis_client", return_value=client):
            await publisher.publish(LIVE_CREATED, {"session_id": "ls_1"})

        # Assert
        channel, message = client.publish.await_args.args
        assert channel == "test:events:live:created"
        decoded = orjson.loads(message)
        assert decoded["topic"] == LIVE_CREATED
        assert decoded["payload"] == {"session_id": "ls_1"}
        assert isinstance(decoded["ts"], int)

    async def test_redis_failure_is_not_raised(self):
        client = MagicMock()
        client.publish = AsyncMock(side_effect=ConnectionError("redis down"))
        publisher = RedisEventPublisher(channel_prefix="test:events")

        with patch("fliplive.services.events.get_redis_client", return_value=client):
            await publisher.publish(LIVE_CREATED, {"session_id": "ls_1"})

        client.publish.assert_awaited_once()
