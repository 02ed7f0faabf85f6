"""Append-only ledger transaction ODM schema."""

from datetime import datetime
from enum import Enum
from typing import Any

from beanie import Document, Indexed
from pydantic import Field, field_validator
from pymongo import IndexModel

from .schema_utils import parse_mongo_datetime


class Currency(str, Enum):
    COINS = "coins"
    DIAMONDS = "diamonds"
    POINTS = "points"

    def __str__(self) -> str:
        return self.value


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    REWARD = "reward"
    GIFT_SENT = "gift_sent"
    GIFT_RECEIVED = "gift_received"
    VIP_PURCHASE = "vip_purchase"
    MVP_PURCHASE = "mvp_purchase"
    GUARDIAN_PURCHASE = "guardian_purchase"
    REFUND = "refund"
    ADMIN_ADJUSTMENT = "admin_adjustment"

    def __str__(self) -> str:
        return self.value


class LedgerTransaction(Document):
    """One balance movement. Written pending, finalized once the balance moves."""

    transaction_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    user_id: str
    type: TransactionType
    currency: Currency

    # Signed: credits are positive, debits negative
    amount: int
    # Unset while pending: the entry is written before the balance moves
    balance_after: int | None = None
    pending: bool = False

    related_user_id: str | None = None
    payment_reference: str | None = None
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "ledger_transaction"
        indexes = [
            [("transaction_id", 1)],  # unique handled by Indexed
            IndexModel([("user_id", 1), ("created_at", -1)], name="user_created_at"),
            IndexModel([("user_id", 1), ("currency", 1)], name="user_currency"),
        ]
