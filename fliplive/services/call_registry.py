"""Call signaling registry backed by Redis keys with per-entry expiry.

Every server instance sees the same calls, and a call that is never ended
disappears on its own once its TTL lapses.
"""

from datetime import datetime
from enum import Enum

from loguru import logger
from pydantic import BaseModel, Field
from redis.asyncio import Redis

from fliplive.app_config import get_app_environ_config
from fliplive.domain.utils.idgen import new_call_id
from fliplive.services.events import EventPublisher
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

CALL_KEY_PREFIX = "fliplive:call"

CALL_INCOMING = "call:incoming"
CALL_ACCEPTED = "call:accepted"
CALL_ENDED = "call:ended"


class CallType(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"


class CallStatus(str, Enum):
    RINGING = "ringing"
    ACTIVE = "active"


class CallRecord(BaseModel):
    call_id: str
    room_id: str
    chat_id: str | None = None
    caller_id: str
    call_type: CallType
    participants: list[str] = Field(default_factory=list)
    joined_user_ids: list[str] = Field(default_factory=list)
    status: CallStatus = CallStatus.RINGING
    created_at: datetime

    def involves(self, user_id: str) -> bool:
        return user_id == self.caller_id or user_id in self.participants


class CallRegistry:
    def __init__(
        self,
        redis: Redis,
        events: EventPublisher | None = None,
        ttl_seconds: int | None = None,
    ):
        self.redis = redis
        self.events = events
        self.ttl_seconds = ttl_seconds or get_app_environ_config().CALL_TTL_SECONDS

    @staticmethod
    def _call_key(call_id: str) -> str:
        return f"{CALL_KEY_PREFIX}:{call_id}"

    @staticmethod
    def _joined_key(call_id: str) -> str:
        return f"{CALL_KEY_PREFIX}:{call_id}:joined"

    async def _save(self, record: CallRecord) -> None:
        # Joined users live in a sorted set so concurrent joins never overwrite each other
        joined_key = self._joined_key(record.call_id)
        pipeline = self.redis.pipeline()
        pipeline.set(
            self._call_key(record.call_id),
            record.model_dump_json(exclude={"joined_user_ids"}),
            ex=self.ttl_seconds,
        )
        pipeline.zadd(joined_key, {record.caller_id: record.created_at.timestamp()})
        pipeline.expire(joined_key, self.ttl_seconds)
        await pipeline.execute()

    async def _publish(self, topic: str, record: CallRecord) -> None:
        if self.events is not None:
            await self.events.publish(topic, record.model_dump(mode="json"))

    async def create_call(
        self,
        caller_id: str,
        participants: list[str],
        call_type: CallType,
        chat_id: str | None = None,
    ) -> CallRecord:
        invitees = [p for p in dict.fromkeys(participants) if p != caller_id]
        if not invitees:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="A call needs at least one participant besides the caller",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        call_id = new_call_id()
        record = CallRecord(
            call_id=call_id,
            room_id=f"flip-call-{call_id}",
            chat_id=chat_id,
            caller_id=caller_id,
            call_type=call_type,
            participants=invitees,
            joined_user_ids=[caller_id],
            created_at=utc_now(),
        )
        await self._save(record)
        logger.info(f"Call created: {call_id} ({call_type.value}) by {caller_id}")

        await self._publish(CALL_INCOMING, record)
        return record

    async def get_call(self, call_id: str) -> CallRecord | None:
        pipeline = self.redis.pipeline()
        pipeline.get(self._call_key(call_id))
        pipeline.zrange(self._joined_key(call_id), 0, -1)
        raw, joined = await pipeline.execute()
        if raw is None:
            return None

        record = CallRecord.model_validate_json(raw)
        record.joined_user_ids = [
            member.decode() if isinstance(member, bytes) else member for member in joined
        ]
        return record

    def _call_not_found(self, call_id: str) -> AppError:
        return AppError(
            errcode=AppErrorCode.E_CALL_NOT_FOUND,
            errmesg=f"Call not found or expired: {call_id}",
            status_code=HttpStatusCode.NOT_FOUND,
        )

    async def _require_call(self, call_id: str, user_id: str) -> CallRecord:
        record = await self.get_call(call_id)
        if record is None:
            raise self._call_not_found(call_id)
        if not record.involves(user_id):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg=f"User {user_id} is not part of call {call_id}",
                status_code=HttpStatusCode.FORBIDDEN,
            )
        return record

    async def join_call(self, call_id: str, user_id: str) -> CallRecord:
        """Mark the user as joined and refresh the call's expiry.

        Raises:
            AppError: E_CALL_NOT_FOUND, also when the call ends while joining.
        """
        record = await self._require_call(call_id, user_id)
        record.status = CallStatus.ACTIVE

        call_key = self._call_key(call_id)
        joined_key = self._joined_key(call_id)
        pipeline = self.redis.pipeline()
        # xx: a call ended in the meantime must not be recreated
        pipeline.set(
            call_key,
            record.model_dump_json(exclude={"joined_user_ids"}),
            ex=self.ttl_seconds,
            xx=True,
        )
        pipeline.zadd(joined_key, {user_id: utc_now().timestamp()}, nx=True)
        pipeline.expire(joined_key, self.ttl_seconds)
        saved, _, _ = await pipeline.execute()
        if not saved:
            await self.redis.delete(joined_key)
            raise self._call_not_found(call_id)

        record = await self.get_call(call_id) or record
        logger.info(f"User {user_id} joined call {call_id}")

        await self._publish(CALL_ACCEPTED, record)
        return record

    async def end_call(self, call_id: str, user_id: str) -> None:
        record = await self._require_call(call_id, user_id)

        await self.redis.delete(self._call_key(call_id), self._joined_key(call_id))
        logger.info(f"Call ended: {call_id} by {user_id}")

        await self._publish(CALL_ENDED, record)
