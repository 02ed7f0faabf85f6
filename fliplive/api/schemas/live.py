from pydantic import BaseModel, Field, field_validator

from fliplive.domain.live.session.session_models import HostAction
from fliplive.schemas import LiveKind


class CreateLiveIn(BaseModel):
    kind: LiveKind = Field(description="broadcast, party-video or party-audio")
    chair_count: int | None = Field(
        default=None, description="Seats for party kinds, defaults to LIVE_DEFAULT_CHAIRS"
    )
    is_private: bool = Field(default=False, description="Hide from the active session list")
    title: str | None = Field(default=None, max_length=120, description="Title of the session")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None


class SessionIdIn(BaseModel):
    session_id: str = Field(description="Live session ID")


class SeatIn(BaseModel):
    session_id: str = Field(description="Live session ID")
    seat_index: int = Field(ge=0, description="Zero-based seat index")


class HostActionIn(BaseModel):
    session_id: str = Field(description="Live session ID")
    target_user_id: str = Field(description="User currently occupying the seat")
    seat_index: int = Field(ge=0, description="Zero-based seat index")
    action: HostAction = Field(description="Moderation action")


class SendGiftIn(BaseModel):
    session_id: str = Field(description="Live session ID")
    gift_id: str = Field(description="Gift catalogue ID")
    quantity: int = Field(default=1, ge=1, le=9999, description="Number of gifts")
