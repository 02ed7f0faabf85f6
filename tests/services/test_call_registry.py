"""Tests for CallRegistry over an in-memory Redis stand-in."""

import asyncio
from unittest.mock import patch

import pytest

from fliplive.services.call_registry import (
    CALL_ACCEPTED,
    CALL_ENDED,
    CALL_INCOMING,
    CallRegistry,
    CallStatus,
    CallType,
)
from fliplive.utils.app_errors import AppError, AppErrorCode


class InMemoryPipeline:
    """Queues commands and runs them in order on `execute`, like a MULTI/EXEC block."""

    def __init__(self, redis: "InMemoryRedis"):
        self.redis = redis
        self.commands: list[tuple[str, tuple, dict]] = []

    def __getattr__(self, name: str):
        def queue(*args, **kwargs):
            self.commands.append((name, args, kwargs))
            return self

        return queue

    async def execute(self) -> list:
        results = []
        for name, args, kwargs in self.commands:
            results.append(await getattr(self.redis, name)(*args, **kwargs))
        self.commands = []
        return results


class InMemoryRedis:
    """Implements the handful of redis.asyncio calls the registry makes."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.sorted_sets: dict[str, dict[str, float]] = {}
        self.expiry: dict[str, int] = {}

    def pipeline(self) -> InMemoryPipeline:
        return InMemoryPipeline(self)

    async def set(self, key: str, value: str, ex: int | None = None, xx: bool = False) -> bool | None:
        if xx and key not in self.values:
            return None
        self.values[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return True

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def zadd(self, key: str, mapping: dict[str, float], nx: bool = False) -> int:
        members = self.sorted_sets.setdefault(key, {})
        added = 0
        for member, score in mapping.items():
            if member in members and nx:
                continue
            added += member not in members
            members[member] = score
        return added

    async def zrange(self, key: str, start: int, end: int) -> list[bytes]:
        members = sorted(self.sorted_sets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]))
        return [member.encode() for member, _ in members]

    async def expire(self, key: str, seconds: int) -> bool:
        if key not in self.values and key not in self.sorted_sets:
            return False
        self.expiry[key] = seconds
        return True

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            self.expiry.pop(key, None)
            found = self.values.pop(key, None) is not None
            found = self.sorted_sets.pop(key, None) is not None or found
            deleted += found
        return deleted


@pytest.fixture
def redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def registry(redis, events) -> CallRegistry:
    return CallRegistry(redis=redis, events=events, ttl_seconds=90)


class TestCallRegistry:
    async def test_create_call_stores_with_ttl(self, registry, redis, events):
        # Act
        record = await registry.create_call("u.a", ["u.b", "u.a", "u.b"], CallType.VIDEO)

        # Assert
        assert record.participants == ["u.b"]
        assert record.joined_user_ids == ["u.a"]
        assert record.status == CallStatus.RINGING
        assert record.room_id == f"flip-call-{record.call_id}"
        key = f"fliplive:call:{record.call_id}"
        assert redis.expiry[key] == 90
        assert events.topics() == [CALL_INCOMING]

    async def test_call_needs_someone_else(self, registry):
        with pytest.raises(AppError) as exc_info:
            await registry.create_call("u.a", ["u.a"], CallType.AUDIO)

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_REQUEST

    async def test_join_marks_call_active(self, registry, events):
        record = await registry.create_call("u.a", ["u.b"], CallType.AUDIO, chat_id="chat-1")

        joined = await registry.join_call(record.call_id, "u.b")

        assert joined.status == CallStatus.ACTIVE
        assert joined.joined_user_ids == ["u.a", "u.b"]
        stored = await registry.get_call(record.call_id)
        assert stored.chat_id == "chat-1"
        assert stored.status == CallStatus.ACTIVE
        assert events.topics()[-1] == CALL_ACCEPTED

    async def test_outsiders_cannot_join(self, registry):
        record = await registry.create_call("u.a", ["u.b"], CallType.AUDIO)

        with pytest.raises(AppError) as exc_info:
            await registry.join_call(record.call_id, "u.c")

        assert exc_info.value.status_code == 403

    async def test_end_call_removes_it(self, registry, events):
        record = await registry.create_call("u.a", ["u.b"], CallType.AUDIO)

        await registry.end_call(record.call_id, "u.b")

        assert await registry.get_call(record.call_id) is None
        assert events.topics()[-1] == CALL_ENDED

    async def test_expired_call_is_not_found(self, registry, redis):
        record = await registry.create_call("u.a", ["u.b"], CallType.AUDIO)
        await redis.delete(f"fliplive:call:{record.call_id}")

        with pytest.raises(AppError) as exc_info:
            await registry.end_call(record.call_id, "u.a")

        assert exc_info.value.errcode == AppErrorCode.E_CALL_NOT_FOUND

    async def test_concurrent_joins_keep_every_participant(self, registry):
        record = await registry.create_call("u.a", ["u.b", "u.c"], CallType.AUDIO)

        await asyncio.gather(
            registry.join_call(record.call_id, "u.b"),
            registry.join_call(record.call_id, "u.c"),
        )

        stored = await registry.get_call(record.call_id)
        assert stored.joined_user_ids[0] == "u.a"
        assert sorted(stored.joined_user_ids[1:]) == ["u.b", "u.c"]

    async def test_join_racing_end_does_not_recreate_the_call(self, registry, redis):
        # Arrange: the call is ended right after the joiner read it
        record = await registry.create_call("u.a", ["u.b"], CallType.AUDIO)
        original = registry._require_call

        async def read_then_end(call_id, user_id):
            found = await original(call_id, user_id)
            await redis.delete(f"fliplive:call:{call_id}", f"fliplive:call:{call_id}:joined")
            return found

        # Act
        with patch.object(registry, "_require_call", read_then_end):
            with pytest.raises(AppError) as exc_info:
                await registry.join_call(record.call_id, "u.b")

        # Assert
        assert exc_info.value.errcode == AppErrorCode.E_CALL_NOT_FOUND
        assert await registry.get_call(record.call_id) is None
        assert redis.values == {}
        assert redis.sorted_sets == {}
