from fastapi import APIRouter, Depends, Query

from fliplive.api.dependency import CurrentUser
from fliplive.api.schemas.base import CwOut
from fliplive.api.schemas.live import CreateLiveIn, HostActionIn, SeatIn, SendGiftIn, SessionIdIn
from fliplive.domain.live.session.session_domain import LiveSessionService
from fliplive.domain.live.session.session_models import (
    EndSessionResponse,
    GiftSentResponse,
    SeatResponse,
    SessionCreateParams,
    SessionListResponse,
    SessionResponse,
    ViewerJoinResponse,
    ViewerListResponse,
)
from fliplive.schemas import LiveKind

router = APIRouter(prefix="/live")

# Singleton instance
_live_service = LiveSessionService()


def get_live_service() -> LiveSessionService:
    """Get the singleton LiveSessionService instance."""
    return _live_service


# ==================== SESSIONS ====================


@router.post("/create")
async def create_live(
    body: CreateLiveIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[SessionResponse]:
    """Start a live session hosted by the authenticated user."""
    params = SessionCreateParams(
        host_user_id=user.user_id,
        kind=body.kind.value,
        chair_count=body.chair_count,
        is_private=body.is_private,
        title=body.title,
    )
    result = await service.create_session(params)
    return CwOut[SessionResponse](results=result)


@router.get("/get")
async def get_live(
    session_id: str = Query(..., description="Live session ID"),
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[SessionResponse]:
    result = await service.get_session(session_id)
    return CwOut[SessionResponse](results=result)


@router.get("/list_active")
async def list_active(
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
    cursor: str | None = Query(None, description="Pagination cursor"),
    page_size: int = Query(20, ge=1, le=100, description="Number of items per page"),
    kind: LiveKind | None = Query(None, description="Filter by session kind"),
) -> CwOut[SessionListResponse]:
    """List public streaming sessions, newest first."""
    result = await service.list_active_sessions(cursor=cursor, page_size=page_size, kind=kind)
    return CwOut[SessionListResponse](results=result)


@router.post("/heartbeat")
async def heartbeat(
    body: SessionIdIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[SessionResponse]:
    result = await service.heartbeat(body.session_id, user.user_id)
    return CwOut[SessionResponse](results=result)


@router.post("/end")
async def end_live(
    body: SessionIdIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[EndSessionResponse]:
    """End a session. Only its host may call this."""
    result = await service.end_session(body.session_id, user.user_id)
    return CwOut[EndSessionResponse](results=result)


# ==================== VIEWERS ====================


@router.post("/join")
async def join_live(
    body: SessionIdIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[ViewerJoinResponse]:
    result = await service.join_as_viewer(body.session_id, user.user_id)
    return CwOut[ViewerJoinResponse](results=result)


@router.post("/leave")
async def leave_live(
    body: SessionIdIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[ViewerJoinResponse]:
    result = await service.leave_as_viewer(body.session_id, user.user_id)
    return CwOut[ViewerJoinResponse](results=result)


@router.get("/viewers")
async def list_viewers(
    user: CurrentUser,
    session_id: str = Query(..., description="Live session ID"),
    cursor: str | None = Query(None, description="Pagination cursor"),
    page_size: int = Query(50, ge=1, le=200, description="Number of items per page"),
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[ViewerListResponse]:
    result = await service.list_viewers(session_id, cursor=cursor, page_size=page_size)
    return CwOut[ViewerListResponse](results=result)


# ==================== SEATS ====================


@router.get("/seats")
async def list_seats(
    session_id: str = Query(..., description="Live session ID"),
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[list[SeatResponse]]:
    result = await service.list_seats(session_id)
    return CwOut[list[SeatResponse]](results=result)


@router.post("/seat/join")
async def join_seat(
    body: SeatIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[SeatResponse]:
    """Take an empty seat in a party session."""
    result = await service.join_seat(body.session_id, body.seat_index, user.user_id)
    return CwOut[SeatResponse](results=result)


@router.post("/seat/leave")
async def leave_seat(
    body: SeatIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[SeatResponse]:
    result = await service.leave_seat(body.session_id, body.seat_index, user.user_id)
    return CwOut[SeatResponse](results=result)


@router.post("/host_action")
async def host_action(
    body: HostActionIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[SeatResponse]:
    """Moderate a seat occupant (host only)."""
    result = await service.host_action(
        session_id=body.session_id,
        acting_user_id=user.user_id,
        target_user_id=body.target_user_id,
        seat_index=body.seat_index,
        action=body.action,
    )
    return CwOut[SeatResponse](results=result)


# ==================== GIFTS ====================


@router.post("/send_gift")
async def send_gift(
    body: SendGiftIn,
    user: CurrentUser,
    service: LiveSessionService = Depends(get_live_service),
) -> CwOut[GiftSentResponse]:
    result = await service.send_gift(
        session_id=body.session_id,
        sender_user_id=user.user_id,
        gift_id=body.gift_id,
        quantity=body.quantity,
    )
    return CwOut[GiftSentResponse](results=result)
