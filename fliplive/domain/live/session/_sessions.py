"""Live session creation, reads and heartbeats."""

from typing import Any

from beanie import UpdateResponse
from beanie.operators import LT, Inc, Set
from bson import ObjectId
from bson.errors import InvalidId
from loguru import logger
from pymongo import ASCENDING, DESCENDING

from fliplive.app_config import get_app_environ_config
from fliplive.schemas import LiveKind, LiveSession, LiveSessionStatus, Seat, SeatOccupant
from fliplive.services.events import LIVE_CREATED
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, internal_error

from ...utils.idgen import new_live_session_id
from ._base import BaseService
from .session_models import (
    SeatResponse,
    SessionCreateParams,
    SessionListResponse,
    SessionResponse,
)


class SessionOperations(BaseService):
    """Session-related operations."""

    @staticmethod
    def _parse_kind(kind: str) -> LiveKind:
        try:
            return LiveKind(kind)
        except ValueError as e:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_KIND,
                errmesg=f"Unknown live kind: {kind}",
                status_code=HttpStatusCode.BAD_REQUEST,
            ) from e

    @staticmethod
    def _resolve_chair_count(chair_count: int | None) -> int:
        app_config = get_app_environ_config()
        if chair_count is None:
            return app_config.LIVE_DEFAULT_CHAIRS
        if chair_count <= 0 or chair_count > app_config.LIVE_MAX_CHAIRS:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_CHAIR_COUNT,
                errmesg=(
                    f"chair_count must be between 1 and {app_config.LIVE_MAX_CHAIRS}, "
                    f"got {chair_count}"
                ),
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        return chair_count

    async def create_session(self, params: SessionCreateParams) -> SessionResponse:
        """Create a streaming session; party kinds get their seats up front.

        Seats are written before the session document so a session is never
        visible without its seats. If the session insert fails the seats are
        removed again.
        """
        kind = self._parse_kind(params.kind)
        chair_count = self._resolve_chair_count(params.chair_count)

        now = utc_now()
        session = LiveSession(
            session_id=new_live_session_id(),
            host_user_id=params.host_user_id,
            kind=kind,
            chair_count=chair_count,
            is_private=params.is_private,
            title=params.title,
            status=LiveSessionStatus.STREAMING,
            last_heartbeat=now,
            created_at=now,
            updated_at=now,
        )

        if kind.is_party:
            seats = [
                Seat(
                    session_id=session.session_id,
                    seat_index=index,
                    created_at=now,
                    updated_at=now,
                )
                for index in range(chair_count)
            ]
            host_seat = seats[0]
            host_seat.occupant = SeatOccupant(user_id=params.host_user_id, joined_at=now)
            host_seat.can_talk = True
            host_seat.audio_enabled = True
            host_seat.video_enabled = kind == LiveKind.PARTY_VIDEO

            await Seat.insert_many(seats)

        try:
            await session.insert()
        except Exception as e:
            logger.error(f"Failed to create live session {session.session_id}: {e}")
            if kind.is_party:
                await Seat.find(Seat.session_id == session.session_id).delete()
            raise internal_error(f"Failed to create live session for {params.host_user_id}") from e

        logger.info(
            f"Live session created: {session.session_id} ({kind}) host={params.host_user_id} "
            f"chairs={chair_count}"
        )

        response = SessionResponse.from_document(session)
        await self._publish(LIVE_CREATED, response.model_dump(mode="json"))
        return response

    async def get_session(self, session_id: str) -> SessionResponse:
        session = await self._require_session(session_id)
        return SessionResponse.from_document(session)

    async def list_active_sessions(
        self,
        cursor: str | None = None,
        page_size: int = 20,
        kind: LiveKind | None = None,
        include_private: bool = False,
    ) -> SessionListResponse:
        """Return streaming sessions, newest first, paginated by ObjectId cursor."""
        if page_size < 1 or page_size > 100:
            logger.warning(f"Invalid page_size: {page_size}")
            page_size = 20

        conditions: list[Any] = [LiveSession.status == LiveSessionStatus.STREAMING]
        if kind is not None:
            conditions.append(LiveSession.kind == kind)
        if not include_private:
            conditions.append(LiveSession.is_private == False)  # noqa: E712
        if cursor:
            try:
                conditions.append(LT(LiveSession.id, ObjectId(cursor)))
            except InvalidId:
                logger.warning(f"Invalid cursor format: {cursor}")

        sessions_list = (
            await LiveSession.find(*conditions)
            .sort([("_id", DESCENDING)])  # type: ignore[list-item]
            .limit(page_size + 1)
            .to_list()
        )

        next_cursor = None
        if len(sessions_list) > page_size:
            sessions_list = sessions_list[:page_size]
            next_cursor = str(sessions_list[-1].id)

        return SessionListResponse(
            sessions=[SessionResponse.from_document(s) for s in sessions_list],
            next_cursor=next_cursor,
        )

    async def heartbeat(self, session_id: str, user_id: str) -> SessionResponse:
        """Refresh the host's heartbeat and clear a ghost mark."""
        session = await self._require_session(session_id)
        self._ensure_host(session, user_id)
        self._ensure_streaming(session)

        updated = await LiveSession.find_one(
            LiveSession.session_id == session_id,
            LiveSession.status == LiveSessionStatus.STREAMING,
        ).update(
            Set({LiveSession.last_heartbeat: utc_now(), LiveSession.is_ghost: False}),
            Inc({LiveSession.version: 1}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if updated is None:
            # Ended between the read and the write
            session = await self._require_session(session_id)
            self._ensure_streaming(session)
            raise internal_error(f"Heartbeat was not applied to live session {session_id}")

        if session.is_ghost:
            logger.info(f"Live session {session_id} recovered from ghost state")
        return SessionResponse.from_document(updated)

    async def list_seats(self, session_id: str) -> list[SeatResponse]:
        session = await self._require_session(session_id)
        seats = (
            await Seat.find(Seat.session_id == session.session_id)
            .sort([("seat_index", ASCENDING)])  # type: ignore[list-item]
            .to_list()
        )
        return [SeatResponse.from_document(seat) for seat in seats]
