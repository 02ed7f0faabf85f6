"""Beanie ODM schemas for MongoDB collections."""

from .audit_log import AuditLog
from .gift import Gift
from .init import DOCUMENT_MODELS, init_beanie_odm
from .ledger import Currency, LedgerTransaction, TransactionType
from .live_seat import EMPTY_SEAT_FIELDS, Seat, SeatOccupant
from .live_session import LiveSession
from .live_state import LiveKind, LiveSessionStatus
from .live_viewer import LiveViewer
from .payment_receipt import PaymentReceipt, PaymentReceiptStatus
from .subscription import Subscription, SubscriptionStatus
from .user_account import (
    EconomyAccount,
    Entitlement,
    EntitlementKind,
    GuardianEntitlement,
    UserAccount,
)

__all__ = [
    "DOCUMENT_MODELS",
    "EMPTY_SEAT_FIELDS",
    "AuditLog",
    "Currency",
    "EconomyAccount",
    "Entitlement",
    "EntitlementKind",
    "Gift",
    "GuardianEntitlement",
    "LedgerTransaction",
    "LiveKind",
    "LiveSession",
    "LiveSessionStatus",
    "LiveViewer",
    "PaymentReceipt",
    "PaymentReceiptStatus",
    "Seat",
    "SeatOccupant",
    "Subscription",
    "SubscriptionStatus",
    "TransactionType",
    "UserAccount",
    "init_beanie_odm",
]
