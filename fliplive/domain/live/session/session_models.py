"""Live session domain models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from fliplive.schemas import LiveKind, LiveSession, LiveSessionStatus, LiveViewer, Seat


class HostAction(str, Enum):
    """Moderation actions a host can apply to a seat occupant."""

    MUTE = "mute"
    UNMUTE = "unmute"
    DISABLE_VIDEO = "disable_video"
    APPROVE_AUDIO = "approve_audio"
    REMOVE_USER = "remove_user"

    def __str__(self) -> str:
        return self.value


class SessionCreateParams(BaseModel):
    """Parameters for creating a live session."""

    host_user_id: str
    kind: str
    chair_count: int | None = None
    is_private: bool = False
    title: str | None = None


class SessionResponse(BaseModel):
    session_id: str
    host_user_id: str
    kind: LiveKind
    chair_count: int
    is_private: bool
    title: str | None = None

    status: LiveSessionStatus
    is_ghost: bool
    last_heartbeat: datetime

    viewer_count: int
    removed_user_ids: list[str] = Field(default_factory=list)
    diamonds_earned: int

    created_at: datetime
    updated_at: datetime
    ended_at: datetime | None = None

    @classmethod
    def from_document(cls, session: LiveSession) -> "SessionResponse":
        return cls(
            **session.model_dump(exclude={"id", "viewer_ids", "version"}),
            viewer_count=len(session.viewer_ids),
        )


class SessionListResponse(BaseModel):
    """Session list response with pagination."""

    sessions: list[SessionResponse]
    next_cursor: str | None = None


class SeatResponse(BaseModel):
    session_id: str
    seat_index: int
    occupant_user_id: str | None = None
    joined_at: datetime | None = None
    can_talk: bool
    audio_enabled: bool
    video_enabled: bool
    muted_by_host: list[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, seat: Seat) -> "SeatResponse":
        return cls(
            session_id=seat.session_id,
            seat_index=seat.seat_index,
            occupant_user_id=seat.occupant_user_id,
            joined_at=seat.occupant.joined_at if seat.occupant else None,
            can_talk=seat.can_talk,
            audio_enabled=seat.audio_enabled,
            video_enabled=seat.video_enabled,
            muted_by_host=seat.muted_by_host,
        )


class ViewerJoinResponse(BaseModel):
    session_id: str
    user_id: str
    viewer_count: int


class ViewerResponse(BaseModel):
    user_id: str
    watching: bool
    joined_at: datetime
    left_at: datetime | None = None
    watch_duration: int

    @classmethod
    def from_document(cls, viewer: LiveViewer) -> "ViewerResponse":
        return cls(
            user_id=viewer.user_id,
            watching=viewer.watching,
            joined_at=viewer.joined_at,
            left_at=viewer.left_at,
            watch_duration=viewer.watch_duration,
        )


class ViewerListResponse(BaseModel):
    session_id: str
    viewers: list[ViewerResponse]
    next_cursor: str | None = None


class EndSessionResponse(BaseModel):
    session: SessionResponse
    viewers_released: int
    seats_released: int


class GiftSentResponse(BaseModel):
    session_id: str
    sender_user_id: str
    host_user_id: str
    gift_id: str
    quantity: int
    total_coins: int
    diamonds: int
    sender_coins: int
    diamonds_earned: int
