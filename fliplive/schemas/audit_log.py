"""Audit trail of economic and moderation actions."""

from datetime import datetime
from typing import Any

from beanie import Document
from pydantic import Field, field_validator
from pymongo import IndexModel

from .schema_utils import parse_mongo_datetime


class AuditLog(Document):
    user_id: str | None = None
    action: str
    success: bool = True
    details: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None

    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "audit_log"
        indexes = [
            IndexModel([("user_id", 1), ("created_at", -1)], name="user_created_at"),
            IndexModel([("action", 1), ("created_at", -1)], name="action_created_at"),
        ]
