"""Live session ODM schema."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from beanie import Document, Indexed
from beanie.odm.fields import ExpressionField
from beanie.odm.operators.update.general import Set
from loguru import logger
from pydantic import Field, field_validator
from pymongo import IndexModel

from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .live_state import LiveKind, LiveSessionStatus
from .schema_utils import parse_mongo_datetime


class LiveSession(Document):
    """Live session document model."""

    session_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    host_user_id: str

    # Layout
    kind: LiveKind
    chair_count: int
    is_private: bool = False
    title: str | None = None

    # Lifecycle
    status: LiveSessionStatus = LiveSessionStatus.STREAMING
    is_ghost: bool = False
    last_heartbeat: datetime
    # Set together with ENDED, cleared once seats and viewers are released
    teardown_pending: bool = False

    # Membership (set semantics, maintained with $addToSet / $pull)
    viewer_ids: list[str] = Field(default_factory=list)
    removed_user_ids: list[str] = Field(default_factory=list)

    # Running total, mutated only by gift events
    diamonds_earned: int = 0

    # Timestamps
    created_at: datetime
    updated_at: datetime
    ended_at: datetime | None = None

    # Version control for optimistic locking of status changes
    version: int = Field(default=1)

    @field_validator("last_heartbeat", "created_at", "updated_at", "ended_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    async def _raise_version_conflict(self, expected_version: int) -> None:
        fresh = await LiveSession.get(self.id)
        error_msg = (
            f"Version conflict on live session {self.session_id}: "
            f"expected version {expected_version}, "
            f"current version {fresh.version if fresh else 'N/A'}, "
            f"current status {fresh.status if fresh else 'N/A'}"
        )
        logger.warning(error_msg)
        raise AppError(
            errcode=AppErrorCode.E_SESSION_VERSION_CONFLICT,
            errmesg=error_msg,
            status_code=HttpStatusCode.CONFLICT,
        )

    async def partial_update_with_version_check(
        self,
        updates: Mapping[ExpressionField, Any],
        max_retry_on_conflicts: int = 0,
    ) -> bool:
        """Atomically update select fields guarded by the version field.

        Args:
            updates: Mapping of LiveSession field expressions to values.
                Example: {LiveSession.status: LiveSessionStatus.ENDED}
            max_retry_on_conflicts: Retries after refreshing the version (0-10).
                Not allowed when the update touches `status`.

        Returns:
            True if update succeeded.

        Raises:
            AppError: E_SESSION_VERSION_CONFLICT when another writer won,
                E_INVALID_REQUEST for malformed calls.
        """
        if LiveSession.version in updates:
            raise AppError(
                AppErrorCode.E_INVALID_REQUEST,
                "updates must not include LiveSession.version",
                HttpStatusCode.BAD_REQUEST,
            )

        if LiveSession.status in updates and max_retry_on_conflicts > 0:
            raise AppError(
                AppErrorCode.E_INVALID_REQUEST,
                "retries not allowed when updating status (critical field)",
                HttpStatusCode.BAD_REQUEST,
            )

        if not 0 <= max_retry_on_conflicts <= 10:
            raise AppError(
                AppErrorCode.E_INVALID_REQUEST,
                "max_retry_on_conflicts must be between 0 and 10",
                HttpStatusCode.BAD_REQUEST,
            )

        for attempt in range(max_retry_on_conflicts + 1):
            current_version = self.version
            update_fields = dict(updates)
            update_fields[LiveSession.version] = current_version + 1  # type: ignore[index]

            result = await LiveSession.find(
                LiveSession.id == self.id,
                LiveSession.version == current_version,
            ).update(Set(update_fields))  # type: ignore[arg-type]

            if result and result.modified_count > 0:
                self.version = current_version + 1
                logger.debug(
                    f"Live session {self.session_id} updated "
                    f"(version {current_version} -> {self.version})"
                )
                return True

            if attempt < max_retry_on_conflicts:
                fresh = await LiveSession.get(self.id)
                if fresh is None:
                    break
                self.version = fresh.version
                logger.debug(
                    f"Live session {self.session_id} version conflict, retrying "
                    f"(attempt {attempt + 1}, refreshed version: {self.version})"
                )

        await self._raise_version_conflict(current_version)
        return False

    class Settings:
        name = "live_session"
        indexes = [
            [("session_id", 1)],  # unique handled by Indexed
            IndexModel([("host_user_id", 1), ("created_at", -1)], name="host_created_at"),
            IndexModel(
                [("status", 1), ("kind", 1), ("last_heartbeat", 1)],
                name="status_kind_heartbeat",
            ),
            IndexModel(
                [("is_ghost", 1), ("status", 1), ("created_at", 1)],
                name="ghost_status_created_at",
            ),
            IndexModel([("status", 1), ("teardown_pending", 1)], name="status_teardown_pending"),
        ]
