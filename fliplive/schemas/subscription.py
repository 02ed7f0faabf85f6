"""Entitlement purchase history ODM schema."""

from datetime import datetime
from enum import Enum
from typing import Any

from beanie import Document, Indexed
from pydantic import field_validator
from pymongo import IndexModel

from .schema_utils import parse_mongo_datetime
from .user_account import EntitlementKind


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value


class Subscription(Document):
    subscription_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    user_id: str
    kind: EntitlementKind
    tier: str | None = None
    target_user_id: str | None = None
    months: int
    start_date: datetime
    end_date: datetime
    payment_method: str = "coins"
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE

    created_at: datetime

    @field_validator("start_date", "end_date", "created_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "subscription"
        indexes = [
            [("subscription_id", 1)],  # unique handled by Indexed
            IndexModel([("user_id", 1), ("status", 1), ("end_date", 1)], name="user_status_end"),
        ]
