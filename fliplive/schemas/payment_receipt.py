"""Idempotency record for externally verified payments."""

from datetime import datetime
from enum import Enum
from typing import Any

from beanie import Document, Indexed
from pydantic import field_validator

from .ledger import Currency
from .schema_utils import parse_mongo_datetime


class PaymentReceiptStatus(str, Enum):
    CLAIMED = "claimed"
    APPLIED = "applied"

    def __str__(self) -> str:
        return self.value


class PaymentReceipt(Document):
    """Claimed before crediting; the unique provider id blocks double credits."""

    provider_txn_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    provider: str
    user_id: str
    amount: int
    currency: Currency
    status: PaymentReceiptStatus = PaymentReceiptStatus.CLAIMED
    transaction_id: str | None = None

    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return parse_mongo_datetime(v)

    class Settings:
        name = "payment_receipt"
