"""VIP / MVP / Guardian entitlements: activation, purchase and lazy expiry."""

from datetime import datetime
from typing import Any

from beanie.operators import In
from dateutil.relativedelta import relativedelta
from loguru import logger

from fliplive.domain.utils.idgen import new_subscription_id
from fliplive.schemas import (
    Currency,
    EntitlementKind,
    Subscription,
    SubscriptionStatus,
    TransactionType,
    UserAccount,
)
from fliplive.services.audit import AuditLogger
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import EconomyBaseService
from ._ledger import LedgerOperations
from ._progress import ProgressOperations
from .economy_models import EntitlementStatus, PurchaseResponse, TransactionMeta
from .pricing import guardian_price, mvp_package, tiers_for, vip_price

PURCHASE_TRANSACTION_TYPES: dict[EntitlementKind, TransactionType] = {
    EntitlementKind.VIP: TransactionType.VIP_PURCHASE,
    EntitlementKind.MVP: TransactionType.MVP_PURCHASE,
    EntitlementKind.GUARDIAN: TransactionType.GUARDIAN_PURCHASE,
}

# Optimistic retries when another activation extends the same entitlement
MAX_ACTIVATION_ATTEMPTS = 3


class EntitlementOperations(EconomyBaseService):
    def __init__(self, audit: AuditLogger | None = None):
        super().__init__(audit=audit)
        self._ledger = LedgerOperations(audit=self.audit)
        self._progress = ProgressOperations(audit=self.audit)

    @staticmethod
    def _parse_kind(kind: EntitlementKind | str) -> EntitlementKind:
        try:
            return EntitlementKind(kind)
        except ValueError as e:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_KIND,
                errmesg=f"Unknown entitlement kind: {kind}",
                status_code=HttpStatusCode.BAD_REQUEST,
            ) from e

    @staticmethod
    def _validate_tier(kind: EntitlementKind, tier: str | None) -> str | None:
        valid = tiers_for(kind)
        if valid is None:
            return None
        if tier not in valid:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_TIER,
                errmesg=f"Invalid {kind.value} tier '{tier}', expected one of {sorted(valid)}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        return tier

    async def _set_guarded_by(
        self, target_user_id: str, guardian_user_id: str | None, expected: str | None
    ) -> bool:
        result = await UserAccount.find_one(
            {"user_id": target_user_id, "economy.guarded_by_user_id": expected}
        ).update({"$set": {"economy.guarded_by_user_id": guardian_user_id, "updated_at": utc_now()}})
        return bool(result and result.modified_count)

    async def activate_entitlement(
        self,
        user_id: str,
        kind: EntitlementKind | str,
        tier: str | None,
        months: int,
        target_user_id: str | None = None,
        payment_method: str = "coins",
    ) -> datetime:
        """Grant or extend an entitlement and return its new expiry.

        Time stacks from whichever is later, now or the current expiry, so
        unexpired time is carried over. The tier is replaced by the new one.
        Guardian also points the target's `guarded_by_user_id` at the buyer.
        """
        kind = self._parse_kind(kind)
        tier = self._validate_tier(kind, tier)
        if isinstance(months, bool) or not isinstance(months, int) or months < 1:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_MONTHS,
                errmesg=f"Months must be a positive integer, got {months!r}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        previous_guarded_by: str | None = None
        if kind == EntitlementKind.GUARDIAN:
            if not target_user_id or target_user_id == user_id:
                raise AppError(
                    errcode=AppErrorCode.E_INVALID_REQUEST,
                    errmesg="Guardian requires a target user other than the buyer",
                    status_code=HttpStatusCode.BAD_REQUEST,
                )
            target = await self._require_account(target_user_id)
            previous_guarded_by = target.economy.guarded_by_user_id
        else:
            target_user_id = None

        field = f"economy.{kind.value}"
        for attempt in range(MAX_ACTIVATION_ATTEMPTS):
            account = await self._require_account(user_id)
            current = getattr(account.economy, kind.value)
            now = utc_now()
            base = max(now, current.expires_at) if current.expires_at else now
            expires_at = base + relativedelta(months=months)

            updates: dict[str, Any] = {
                f"{field}.active": True,
                f"{field}.tier": tier,
                f"{field}.expires_at": expires_at,
                "updated_at": now,
            }
            previous_target = None
            if kind == EntitlementKind.GUARDIAN:
                updates[f"{field}.target_user_id"] = target_user_id
                previous_target = account.economy.guardian.target_user_id
                if previous_guarded_by != user_id:
                    await self._set_guarded_by(target_user_id, user_id, previous_guarded_by)

            try:
                # Conditional on the expiry we stacked from
                result = await UserAccount.find_one(
                    {"user_id": user_id, f"{field}.expires_at": current.expires_at}
                ).update({"$set": updates})
            except Exception:
                if kind == EntitlementKind.GUARDIAN and previous_guarded_by != user_id:
                    await self._set_guarded_by(target_user_id, previous_guarded_by, user_id)
                raise

            if result and result.modified_count:
                break

            logger.debug(
                f"Entitlement {kind.value} for {user_id} changed concurrently "
                f"(attempt {attempt + 1}), retrying"
            )
        else:
            if kind == EntitlementKind.GUARDIAN and previous_guarded_by != user_id:
                await self._set_guarded_by(target_user_id, previous_guarded_by, user_id)
            raise AppError(
                errcode=AppErrorCode.E_ACCOUNT_CONFLICT,
                errmesg=f"Could not activate {kind.value} for {user_id}: concurrent updates",
                status_code=HttpStatusCode.CONFLICT,
            )

        if previous_target and previous_target != target_user_id:
            await self._set_guarded_by(previous_target, None, user_id)

        try:
            await Subscription(
                subscription_id=new_subscription_id(),
                user_id=user_id,
                kind=kind,
                tier=tier,
                target_user_id=target_user_id,
                months=months,
                start_date=now,
                end_date=expires_at,
                payment_method=payment_method,
                created_at=now,
            ).insert()
        except Exception as e:
            logger.error(f"Failed to record {kind.value} subscription history for {user_id}: {e}")

        logger.info(
            f"Activated {kind.value} ({tier or '-'}) for {user_id} until {expires_at.isoformat()}"
        )
        return expires_at

    async def check_and_expire_entitlements(self, user_id: str) -> list[EntitlementKind]:
        """Flip `active` off for every entitlement whose expiry has passed.

        Tier and target fields are left in place. Returns the kinds that were
        expired by this call; a second call returns an empty list.
        """
        now = utc_now()
        expired: list[EntitlementKind] = []

        for kind in EntitlementKind:
            field = f"economy.{kind.value}"
            result = await UserAccount.find_one(
                {"user_id": user_id, f"{field}.active": True, f"{field}.expires_at": {"$lte": now}}
            ).update({"$set": {f"{field}.active": False, "updated_at": now}})
            if result and result.modified_count:
                expired.append(kind)

        if not expired:
            return expired

        await Subscription.find(
            Subscription.user_id == user_id,
            In(Subscription.kind, expired),
            Subscription.status == SubscriptionStatus.ACTIVE,
            Subscription.end_date <= now,
        ).update({"$set": {"status": SubscriptionStatus.EXPIRED.value}})

        if EntitlementKind.GUARDIAN in expired:
            account = await self._get_account(user_id)
            target = account.economy.guardian.target_user_id if account else None
            if target:
                await self._set_guarded_by(target, None, user_id)

        logger.info(f"Expired entitlements for {user_id}: {[k.value for k in expired]}")
        return expired

    async def get_entitlements(self, user_id: str) -> list[EntitlementStatus]:
        await self.check_and_expire_entitlements(user_id)
        account = await self._require_account(user_id)
        now = utc_now()

        statuses = []
        for kind in EntitlementKind:
            entitlement = getattr(account.economy, kind.value)
            statuses.append(
                EntitlementStatus(
                    kind=kind,
                    active=entitlement.is_active(now),
                    tier=entitlement.tier,
                    expires_at=entitlement.expires_at,
                    target_user_id=getattr(entitlement, "target_user_id", None),
                )
            )
        return statuses

    async def _purchase(
        self,
        user_id: str,
        kind: EntitlementKind,
        tier: str | None,
        months: int,
        price: int,
        target_user_id: str | None = None,
    ) -> PurchaseResponse:
        if target_user_id:
            await self._require_account(target_user_id)

        coins_after = await self._ledger.debit(
            user_id,
            Currency.COINS,
            price,
            TransactionMeta(
                type=PURCHASE_TRANSACTION_TYPES[kind],
                related_user_id=target_user_id,
                description=" ".join(filter(None, [kind.value.upper(), tier, f"x{months} month(s)"])),
                metadata={"tier": tier, "months": months},
            ),
        )

        try:
            expires_at = await self.activate_entitlement(
                user_id, kind, tier, months, target_user_id=target_user_id
            )
        except Exception as e:
            logger.error(f"Activating {kind.value} for {user_id} failed, refunding {price} coins: {e}")
            await self._ledger.credit(
                user_id,
                Currency.COINS,
                price,
                TransactionMeta(
                    type=TransactionType.REFUND,
                    description=f"Refund for failed {kind.value} activation",
                ),
            )
            await self.audit.log_action(
                user_id,
                f"{kind.value}_purchase",
                success=False,
                details={"tier": tier, "months": months, "price": price},
                error=str(e),
            )
            raise

        await self._progress.record_spend(user_id, price)
        await self.audit.log_action(
            user_id,
            f"{kind.value}_purchase",
            details={
                "tier": tier,
                "months": months,
                "price": price,
                "target_user_id": target_user_id,
                "expires_at": expires_at.isoformat(),
            },
        )

        return PurchaseResponse(
            user_id=user_id,
            kind=kind,
            tier=tier,
            months=months,
            price=price,
            expires_at=expires_at,
            coins_after=coins_after,
            target_user_id=target_user_id,
        )

    async def purchase_vip(self, user_id: str, tier: str, months: int) -> PurchaseResponse:
        price = vip_price(tier, months)
        return await self._purchase(user_id, EntitlementKind.VIP, tier, months, price)

    async def purchase_mvp(self, user_id: str, package_days: int) -> PurchaseResponse:
        package = mvp_package(package_days)
        return await self._purchase(
            user_id, EntitlementKind.MVP, None, package.months, package.price
        )

    async def purchase_guardian(
        self, user_id: str, target_user_id: str, tier: str, months: int
    ) -> PurchaseResponse:
        if target_user_id == user_id:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Cannot become your own guardian",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        price = guardian_price(tier, months)
        return await self._purchase(
            user_id, EntitlementKind.GUARDIAN, tier, months, price, target_user_id=target_user_id
        )
