"""Real-time fan-out of registry events over Redis pub/sub."""

import time
from typing import Any, Protocol

import orjson
from loguru import logger

from fliplive.app_config import get_app_environ_config
from fliplive.shared.storage.redis import get_redis_client

# Topics published by the live session registry
LIVE_CREATED = "live:created"
LIVE_ENDED = "live:ended"
LIVE_VIEWER_JOINED = "live:viewer:joined"
LIVE_VIEWER_LEFT = "live:viewer:left"
LIVE_SEAT_UPDATED = "live:seat:updated"
LIVE_HOST_ACTION = "live:host:action"
LIVE_USER_REMOVED = "live:user:removed"
LIVE_GIFT_SENT = "live:gift:sent"
LIVE_GHOST_MARKED = "live:ghost:marked"


class EventPublisher(Protocol):
    async def publish(self, topic: str, payload: dict[str, Any]) -> None: ...


class RedisEventPublisher:
    """Publishes `{topic, payload, ts}` JSON on `<prefix>:<topic>` channels.

    Delivery is best effort: failures are logged and never raised, so state
    changes that already committed are not rolled back by a fan-out outage.
    """

    def __init__(self, redis_label: str = "default", channel_prefix: str | None = None):
        self.redis_label = redis_label
        self.channel_prefix = channel_prefix or get_app_environ_config().EVENT_CHANNEL_PREFIX

    def channel_for(self, topic: str) -> str:
        return f"{self.channel_prefix}:{topic}"

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        message = orjson.dumps(
            {"topic": topic, "payload": payload, "ts": int(time.time() * 1000)},
            default=str,
        )
        try:
            receivers = await get_redis_client(self.redis_label).publish(
                self.channel_for(topic), message
            )
            logger.debug("Published {} to {} receivers", topic, receivers)
        except Exception as e:
            logger.warning("Failed to publish event {}: {}", topic, e)


_event_publisher: RedisEventPublisher | None = None


def get_event_publisher() -> RedisEventPublisher:
    global _event_publisher
    if _event_publisher is None:
        _event_publisher = RedisEventPublisher()
    return _event_publisher
