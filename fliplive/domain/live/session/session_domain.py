"""Live session domain service - registry of sessions, seats and viewers."""

from fliplive.domain.economy import EconomyService
from fliplive.schemas import LiveKind, LiveSession
from fliplive.services.audit import AuditLogger, get_audit_logger
from fliplive.services.events import EventPublisher, get_event_publisher

from ._end import EndSessionOperations
from ._gifts import GiftOperations
from ._host import HostActionOperations
from ._seats import SeatOperations
from ._sessions import SessionOperations
from ._viewers import ViewerOperations
from .session_models import (
    EndSessionResponse,
    GiftSentResponse,
    HostAction,
    SeatResponse,
    SessionCreateParams,
    SessionListResponse,
    SessionResponse,
    ViewerJoinResponse,
    ViewerListResponse,
)


class LiveSessionService:
    """Live session registry.

    Every mutating call re-checks the session status and fails closed with
    E_SESSION_ENDED once the session is ended, whoever ended it.
    """

    def __init__(
        self,
        events: EventPublisher | None = None,
        audit: AuditLogger | None = None,
        economy: EconomyService | None = None,
    ):
        events = events or get_event_publisher()
        audit = audit or get_audit_logger()
        self._sessions = SessionOperations(events=events, audit=audit)
        self._viewers = ViewerOperations(events=events, audit=audit)
        self._seats = SeatOperations(events=events, audit=audit)
        self._host = HostActionOperations(events=events, audit=audit)
        self._end = EndSessionOperations(events=events, audit=audit)
        self._gifts = GiftOperations(events=events, audit=audit, economy=economy)

    # ==================== SESSIONS ====================

    async def create_session(self, params: SessionCreateParams) -> SessionResponse:
        """Create a streaming session (party kinds with their seats).

        Raises AppError E_INVALID_KIND / E_INVALID_CHAIR_COUNT.
        """
        return await self._sessions.create_session(params=params)

    async def get_session(self, session_id: str) -> SessionResponse:
        return await self._sessions.get_session(session_id=session_id)

    async def list_active_sessions(
        self,
        cursor: str | None = None,
        page_size: int = 20,
        kind: LiveKind | None = None,
        include_private: bool = False,
    ) -> SessionListResponse:
        return await self._sessions.list_active_sessions(
            cursor=cursor, page_size=page_size, kind=kind, include_private=include_private
        )

    async def heartbeat(self, session_id: str, user_id: str) -> SessionResponse:
        return await self._sessions.heartbeat(session_id=session_id, user_id=user_id)

    async def end_session(self, session_id: str, caller_user_id: str) -> EndSessionResponse:
        """End a session. Only the host may do this."""
        return await self._end.end_session(session_id=session_id, caller_user_id=caller_user_id)

    async def terminate_session(self, session: LiveSession, reason: str) -> EndSessionResponse:
        """End a session without a caller check (used by the ghost reaper)."""
        return await self._end.terminate_session(session, reason=reason)

    # ==================== VIEWERS ====================

    async def join_as_viewer(self, session_id: str, user_id: str) -> ViewerJoinResponse:
        return await self._viewers.join_as_viewer(session_id=session_id, user_id=user_id)

    async def leave_as_viewer(self, session_id: str, user_id: str) -> ViewerJoinResponse:
        return await self._viewers.leave_as_viewer(session_id=session_id, user_id=user_id)

    async def list_viewers(
        self,
        session_id: str,
        watching_only: bool = True,
        cursor: str | None = None,
        page_size: int = 50,
    ) -> ViewerListResponse:
        return await self._viewers.list_viewers(
            session_id=session_id, watching_only=watching_only, cursor=cursor, page_size=page_size
        )

    # ==================== SEATS ====================

    async def list_seats(self, session_id: str) -> list[SeatResponse]:
        return await self._sessions.list_seats(session_id=session_id)

    async def join_seat(self, session_id: str, seat_index: int, user_id: str) -> SeatResponse:
        """Claim an empty seat. Exactly one of several racing callers wins."""
        return await self._seats.join_seat(
            session_id=session_id, seat_index=seat_index, user_id=user_id
        )

    async def leave_seat(self, session_id: str, seat_index: int, user_id: str) -> SeatResponse:
        return await self._seats.leave_seat(
            session_id=session_id, seat_index=seat_index, user_id=user_id
        )

    async def host_action(
        self,
        session_id: str,
        acting_user_id: str,
        target_user_id: str,
        seat_index: int,
        action: HostAction | str,
    ) -> SeatResponse:
        return await self._host.host_action(
            session_id=session_id,
            acting_user_id=acting_user_id,
            target_user_id=target_user_id,
            seat_index=seat_index,
            action=action,
        )

    # ==================== GIFTS ====================

    async def send_gift(
        self,
        session_id: str,
        sender_user_id: str,
        gift_id: str,
        quantity: int = 1,
    ) -> GiftSentResponse:
        return await self._gifts.send_gift(
            session_id=session_id,
            sender_user_id=sender_user_id,
            gift_id=gift_id,
            quantity=quantity,
        )
