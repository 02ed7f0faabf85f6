"""Economy domain service - balances, ledger, entitlements and levels."""

from datetime import datetime
from typing import Any

from fliplive.schemas import Currency, EntitlementKind
from fliplive.services.audit import AuditLogger, get_audit_logger
from fliplive.services.payments import PaymentVerifier

from ._entitlements import EntitlementOperations
from ._gifting import GiftPaymentOperations
from ._ledger import LedgerOperations
from ._payments import PaymentOperations
from ._progress import ProgressOperations
from ._rewards import DailyRewardOperations
from .economy_models import (
    BalanceResponse,
    DailyRewardResult,
    EntitlementStatus,
    LevelsResponse,
    PaymentResult,
    PurchaseResponse,
    TransactionListResponse,
    TransactionMeta,
    TransferResponse,
)
from .levels import compute_level


class EconomyService:
    def __init__(
        self,
        audit: AuditLogger | None = None,
        payment_verifier: PaymentVerifier | None = None,
    ):
        audit = audit or get_audit_logger()
        self._ledger = LedgerOperations(audit=audit)
        self._entitlements = EntitlementOperations(audit=audit)
        self._progress = ProgressOperations(audit=audit)
        self._rewards = DailyRewardOperations(audit=audit)
        self._gifting = GiftPaymentOperations(audit=audit)
        self._payment_verifier = payment_verifier
        self._audit = audit

    # ==================== LEDGER ====================

    async def credit(
        self, user_id: str, currency: Currency | str, amount: int, meta: TransactionMeta
    ) -> int:
        """Raises AppError E_INVALID_AMOUNT / E_USER_NOT_FOUND."""
        return await self._ledger.credit(user_id, currency, amount, meta)

    async def debit(
        self, user_id: str, currency: Currency | str, amount: int, meta: TransactionMeta
    ) -> int:
        """Raises AppError E_INSUFFICIENT_FUNDS without touching the balance."""
        return await self._ledger.debit(user_id, currency, amount, meta)

    async def transfer(
        self,
        from_user_id: str,
        to_user_id: str,
        currency: Currency | str,
        amount: int,
        description: str | None = None,
    ) -> TransferResponse:
        result = await self._ledger.transfer(
            from_user_id, to_user_id, currency, amount, description=description
        )
        await self._progress.refresh_levels(from_user_id)
        await self._progress.refresh_levels(to_user_id)
        return result

    async def get_balance(self, user_id: str) -> BalanceResponse:
        return await self._ledger.get_balance(user_id)

    async def list_transactions(
        self,
        user_id: str,
        cursor: str | None = None,
        page_size: int = 20,
        currency: Currency | None = None,
    ) -> TransactionListResponse:
        return await self._ledger.list_transactions(
            user_id, cursor=cursor, page_size=page_size, currency=currency
        )

    # ==================== ENTITLEMENTS ====================

    async def activate_entitlement(
        self,
        user_id: str,
        kind: EntitlementKind | str,
        tier: str | None,
        months: int,
        target_user_id: str | None = None,
    ) -> datetime:
        return await self._entitlements.activate_entitlement(
            user_id, kind, tier, months, target_user_id=target_user_id
        )

    async def check_and_expire_entitlements(self, user_id: str) -> list[EntitlementKind]:
        return await self._entitlements.check_and_expire_entitlements(user_id)

    async def get_entitlements(self, user_id: str) -> list[EntitlementStatus]:
        return await self._entitlements.get_entitlements(user_id)

    async def purchase_vip(self, user_id: str, tier: str, months: int) -> PurchaseResponse:
        return await self._entitlements.purchase_vip(user_id, tier, months)

    async def purchase_mvp(self, user_id: str, package_days: int) -> PurchaseResponse:
        return await self._entitlements.purchase_mvp(user_id, package_days)

    async def purchase_guardian(
        self, user_id: str, target_user_id: str, tier: str, months: int
    ) -> PurchaseResponse:
        return await self._entitlements.purchase_guardian(user_id, target_user_id, tier, months)

    # ==================== LEVELS ====================

    @staticmethod
    def compute_level(cumulative_amount: int, thresholds: list[int] | tuple[int, ...]) -> int:
        return compute_level(cumulative_amount, thresholds)

    async def get_levels(self, user_id: str) -> LevelsResponse:
        return await self._progress.get_levels(user_id)

    async def add_experience(self, user_id: str, xp: int) -> int:
        return await self._progress.add_experience(user_id, xp)

    # ==================== GIFTS ====================

    async def pay_for_gift(
        self,
        sender_user_id: str,
        receiver_user_id: str,
        total_coins: int,
        metadata: dict[str, Any],
    ) -> tuple[int, int]:
        return await self._gifting.pay_for_gift(
            sender_user_id, receiver_user_id, total_coins, metadata
        )

    # ==================== PAYMENTS ====================

    async def apply_verified_payment(
        self, user_id: str, provider: str, provider_txn_id: str
    ) -> PaymentResult:
        operations = PaymentOperations(audit=self._audit, verifier=self._payment_verifier)
        return await operations.apply_verified_payment(user_id, provider, provider_txn_id)

    # ==================== DAILY JOBS ====================

    async def credit_vip_daily_coins(self) -> DailyRewardResult:
        return await self._rewards.credit_vip_daily_coins()

    async def credit_mvp_daily_rewards(self) -> DailyRewardResult:
        return await self._rewards.credit_mvp_daily_rewards()
