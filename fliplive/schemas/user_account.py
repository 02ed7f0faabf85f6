"""User account ODM schema with the embedded economy account."""

from datetime import datetime
from enum import Enum
from typing import Any

from beanie import Document, Indexed
from pydantic import BaseModel, Field, field_validator

from .schema_utils import parse_mongo_datetime


class EntitlementKind(str, Enum):
    VIP = "vip"
    MVP = "mvp"
    GUARDIAN = "guardian"

    def __str__(self) -> str:
        return self.value


class Entitlement(BaseModel):
    """Time-bounded grant. Only `active and expires_at > now` counts as active."""

    active: bool = False
    tier: str | None = None
    expires_at: datetime | None = None

    @field_validator("expires_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    def is_active(self, now: datetime) -> bool:
        return self.active and self.expires_at is not None and self.expires_at > now


class GuardianEntitlement(Entitlement):
    target_user_id: str | None = None


class EconomyAccount(BaseModel):
    # Balances
    coins: int = 0
    diamonds: int = 0
    points: int = 0
    experience_points: int = 0

    # Lifetime totals driving the derived levels
    credits_sent: int = 0
    gifts_received: int = 0
    wealth_level: int = 0
    live_level: int = 0

    # Entitlements
    vip: Entitlement = Field(default_factory=Entitlement)
    mvp: Entitlement = Field(default_factory=Entitlement)
    guardian: GuardianEntitlement = Field(default_factory=GuardianEntitlement)

    # Denormalized back-reference set by whoever guards this user
    guarded_by_user_id: str | None = None

    def balance(self, currency: str) -> int:
        return int(getattr(self, str(currency)))


class UserAccount(Document):
    """User document model. Only economy-related profile fields live here."""

    user_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    display_name: str | None = None

    economy: EconomyAccount = Field(default_factory=EconomyAccount)

    is_deleted: bool = False

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "user_account"
        indexes = [
            [("user_id", 1)],  # unique handled by Indexed
            [("economy.vip.active", 1), ("economy.vip.expires_at", 1)],
            [("economy.mvp.active", 1), ("economy.mvp.expires_at", 1)],
        ]
