"""Base service for live session operations."""

from typing import Any

from loguru import logger

from fliplive.schemas import LiveSession, LiveSessionStatus, Seat
from fliplive.services.audit import AuditLogger, get_audit_logger
from fliplive.services.events import EventPublisher, get_event_publisher
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .session_state_machine import SessionStateMachine


class BaseService:
    """Base service with shared live session operation methods."""

    def __init__(
        self,
        events: EventPublisher | None = None,
        audit: AuditLogger | None = None,
    ):
        self.events = events or get_event_publisher()
        self.audit = audit or get_audit_logger()

    async def _publish(self, topic: str, payload: dict[str, Any]) -> None:
        # Fan-out must never undo a committed change
        try:
            await self.events.publish(topic, payload)
        except Exception as e:
            logger.warning(f"Event publish failed for {topic}: {e}")

    async def _get_session_by_id(self, session_id: str) -> LiveSession | None:
        return await LiveSession.find_one(LiveSession.session_id == session_id)

    async def _require_session(self, session_id: str) -> LiveSession:
        session = await self._get_session_by_id(session_id)
        if not session:
            raise AppError(
                errcode=AppErrorCode.E_SESSION_NOT_FOUND,
                errmesg=f"Live session not found: {session_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return session

    @staticmethod
    def _ensure_streaming(session: LiveSession) -> None:
        if SessionStateMachine.is_terminal(session.status):
            raise AppError(
                errcode=AppErrorCode.E_SESSION_ENDED,
                errmesg=f"Live session has ended: {session.session_id}",
                status_code=HttpStatusCode.CONFLICT,
            )

    @staticmethod
    def _ensure_not_removed(session: LiveSession, user_id: str) -> None:
        if user_id in session.removed_user_ids:
            raise AppError(
                errcode=AppErrorCode.E_USER_REMOVED,
                errmesg=f"User {user_id} was removed from live session {session.session_id}",
                status_code=HttpStatusCode.FORBIDDEN,
            )

    @staticmethod
    def _ensure_host(session: LiveSession, user_id: str) -> None:
        if session.host_user_id != user_id:
            raise AppError(
                errcode=AppErrorCode.E_NOT_HOST,
                errmesg=f"Only the host can do this in live session {session.session_id}",
                status_code=HttpStatusCode.FORBIDDEN,
            )

    async def _require_seat(self, session: LiveSession, seat_index: int) -> Seat:
        if not session.kind.is_party or not 0 <= seat_index < session.chair_count:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_SEAT_INDEX,
                errmesg=f"Invalid seat index {seat_index} for live session {session.session_id}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        seat = await Seat.find_one(
            Seat.session_id == session.session_id,
            Seat.seat_index == seat_index,
        )
        if not seat:
            raise AppError(
                errcode=AppErrorCode.E_SEAT_NOT_FOUND,
                errmesg=f"Seat {seat_index} not found in live session {session.session_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return seat

    async def update_session_status(
        self, session: LiveSession, new_status: LiveSessionStatus
    ) -> LiveSession:
        """Move a session to a new status, guarded by the version field.

        Raises:
            AppError: E_INVALID_STATE_TRANSITION for transitions out of a terminal
                status, E_SESSION_VERSION_CONFLICT if another writer changed
                the session first.
        """
        if session.status == new_status:
            logger.info(f"Live session {session.session_id} already {new_status}, skipping")
            return session

        if not SessionStateMachine.can_transition(session.status, new_status):
            raise AppError(
                errcode=AppErrorCode.E_INVALID_STATE_TRANSITION,
                errmesg=f"Invalid state transition: {session.status} -> {new_status}",
                status_code=HttpStatusCode.CONFLICT,
            )

        now = utc_now()
        updates: dict[Any, Any] = {
            LiveSession.status: new_status,
            LiveSession.updated_at: now,
        }
        if SessionStateMachine.is_terminal(new_status):
            updates[LiveSession.ended_at] = now
            updates[LiveSession.teardown_pending] = True

        await session.partial_update_with_version_check(updates, max_retry_on_conflicts=0)

        session.status = new_status
        session.updated_at = now
        if SessionStateMachine.is_terminal(new_status):
            session.ended_at = now
            session.teardown_pending = True

        logger.info(f"Live session {session.session_id} status updated to {new_status}")
        return session
