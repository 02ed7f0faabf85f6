"""Economy domain models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from fliplive.schemas import Currency, EntitlementKind, TransactionType


class TransactionMeta(BaseModel):
    """Describes why a balance moved. Copied onto the ledger entry."""

    type: TransactionType
    related_user_id: str | None = None
    payment_reference: str | None = None
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class BalanceResponse(BaseModel):
    user_id: str
    coins: int
    diamonds: int
    points: int
    experience_points: int


class TransactionResponse(BaseModel):
    transaction_id: str
    user_id: str
    type: TransactionType
    currency: Currency
    amount: int
    balance_after: int | None = None
    pending: bool = False
    related_user_id: str | None = None
    payment_reference: str | None = None
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    next_cursor: str | None = None


class EntitlementStatus(BaseModel):
    kind: EntitlementKind
    active: bool
    tier: str | None = None
    expires_at: datetime | None = None
    target_user_id: str | None = None


class PurchaseResponse(BaseModel):
    """Result of buying an entitlement with coins."""

    user_id: str
    kind: EntitlementKind
    tier: str | None = None
    months: int
    price: int
    expires_at: datetime
    coins_after: int
    target_user_id: str | None = None


class LevelsResponse(BaseModel):
    user_id: str
    credits_sent: int
    gifts_received: int
    wealth_level: int
    live_level: int
    experience_points: int


class TransferResponse(BaseModel):
    from_user_id: str
    to_user_id: str
    currency: Currency
    amount: int
    sender_balance: int
    receiver_balance: int


class PaymentResult(BaseModel):
    user_id: str
    provider: str
    provider_txn_id: str
    currency: Currency
    amount: int
    balance: int
    transaction_id: str


class DailyRewardResult(BaseModel):
    """Summary of one daily reward run."""

    processed: int = 0
    rewarded: int = 0
    failed: int = 0
    coins_distributed: int = 0
    experience_distributed: int = 0
