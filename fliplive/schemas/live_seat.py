"""Party seat ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document
from pydantic import BaseModel, Field, field_validator
from pymongo import IndexModel

from .schema_utils import parse_mongo_datetime


class SeatOccupant(BaseModel):
    """Who sits in a seat. A seat with no occupant stores `None`."""

    user_id: str
    joined_at: datetime

    @field_validator("joined_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)


# Field values written whenever a seat is vacated
EMPTY_SEAT_FIELDS: dict[str, Any] = {
    "occupant": None,
    "can_talk": False,
    "audio_enabled": False,
    "video_enabled": False,
}


class Seat(Document):
    """One chair of a party session, created together with the session."""

    session_id: str
    seat_index: int

    occupant: SeatOccupant | None = None
    can_talk: bool = False
    audio_enabled: bool = False
    video_enabled: bool = False

    # Display/audit only, orthogonal to audio_enabled
    muted_by_host: list[str] = Field(default_factory=list)

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    @property
    def occupant_user_id(self) -> str | None:
        return self.occupant.user_id if self.occupant else None

    class Settings:
        name = "live_seat"
        indexes = [
            IndexModel(
                [("session_id", 1), ("seat_index", 1)],
                unique=True,
                name="session_seat_index_unique",
            ),
            IndexModel([("session_id", 1), ("occupant.user_id", 1)], name="session_occupant"),
        ]
