"""Viewer membership ODM schema."""

from datetime import datetime
from typing import Any

from beanie import Document
from pydantic import field_validator
from pymongo import IndexModel

from .schema_utils import parse_mongo_datetime


class LiveViewer(Document):
    """Membership of one user in one live session.

    Leaving never deletes the record; it flips `watching` and accumulates
    `watch_duration` (seconds) so lifetime analytics survive the session.
    """

    session_id: str
    user_id: str
    host_user_id: str

    watching: bool = True
    joined_at: datetime
    left_at: datetime | None = None
    watch_duration: int = 0

    created_at: datetime

    @field_validator("joined_at", "left_at", "created_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "live_viewer"
        indexes = [
            IndexModel(
                [("session_id", 1), ("user_id", 1)],
                unique=True,
                name="session_user_unique",
            ),
            IndexModel([("session_id", 1), ("watching", 1)], name="session_watching"),
        ]
