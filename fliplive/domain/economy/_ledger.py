"""Balance mutations paired with append-only ledger entries."""

from typing import Any

from beanie import UpdateResponse
from beanie.operators import LT, Set
from bson import ObjectId
from bson.errors import InvalidId
from loguru import logger
from pymongo import DESCENDING

from fliplive.domain.utils.idgen import new_transaction_id
from fliplive.schemas import Currency, LedgerTransaction, TransactionType, UserAccount
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, internal_error

from ._base import EconomyBaseService
from .economy_models import (
    BalanceResponse,
    TransactionListResponse,
    TransactionMeta,
    TransactionResponse,
    TransferResponse,
)


class LedgerOperations(EconomyBaseService):
    """Credit, debit and transfer.

    MongoDB only guarantees atomicity per document, so the ledger entry is
    written first as pending, then the balance moves with an atomic
    conditional `$inc`, then the entry is finalized. If the balance cannot
    move the pending entry is deleted. The ledger side never has a floor,
    so undoing it cannot be blocked by the user spending in between.
    """

    async def _discard_entry(self, entry: LedgerTransaction) -> None:
        try:
            await entry.delete()
        except Exception as e:
            logger.critical(
                f"Could not discard pending ledger entry {entry.transaction_id} for user "
                f"{entry.user_id}; ledger needs reconciliation: {e}"
            )

    async def _apply_delta(
        self,
        user_id: str,
        currency: Currency,
        delta: int,
        meta: TransactionMeta,
        extra_inc: dict[str, int] | None = None,
    ) -> LedgerTransaction:
        entry = LedgerTransaction(
            transaction_id=new_transaction_id(),
            user_id=user_id,
            type=meta.type,
            currency=currency,
            amount=delta,
            pending=True,
            related_user_id=meta.related_user_id,
            payment_reference=meta.payment_reference,
            description=meta.description,
            metadata=meta.metadata,
            created_at=utc_now(),
        )
        try:
            await entry.insert()
        except Exception as e:
            logger.error(f"Ledger insert failed for user {user_id} ({currency.value} {delta:+d}): {e}")
            raise internal_error(
                f"Failed to record {meta.type.value} transaction for user {user_id}",
                details={"currency": currency.value, "amount": delta},
            ) from e

        field = f"economy.{currency.value}"
        filters: dict[str, Any] = {"user_id": user_id, "is_deleted": False}
        if delta < 0:
            # The store enforces the floor, concurrent debits cannot both pass
            filters[field] = {"$gte": -delta}

        inc = {field: delta, **(extra_inc or {})}
        try:
            account = await UserAccount.find_one(filters).update(
                {"$inc": inc, "$set": {"updated_at": utc_now()}},
                response_type=UpdateResponse.NEW_DOCUMENT,
            )
        except Exception:
            await self._discard_entry(entry)
            raise

        if account is None:
            await self._discard_entry(entry)
            existing = await self._require_account(user_id)
            current = existing.economy.balance(currency)
            raise AppError(
                errcode=AppErrorCode.E_INSUFFICIENT_FUNDS,
                errmesg=f"Insufficient {currency.value}: required {-delta}, current {current}",
                status_code=HttpStatusCode.PAYMENT_REQUIRED,
                details={"currency": currency.value, "required": -delta, "current": current},
            )

        entry.balance_after = account.economy.balance(currency)
        entry.pending = False
        try:
            await LedgerTransaction.find_one(LedgerTransaction.id == entry.id).update(
                Set(
                    {
                        LedgerTransaction.balance_after: entry.balance_after,
                        LedgerTransaction.pending: False,
                    }
                )
            )
        except Exception as e:
            # The balance moved and the entry already carries its amount
            logger.error(f"Could not finalize ledger entry {entry.transaction_id}: {e}")

        logger.debug(
            f"Ledger {entry.transaction_id}: {user_id} {currency.value} {delta:+d} "
            f"-> {entry.balance_after} ({meta.type.value})"
        )
        return entry

    async def credit_entry(
        self,
        user_id: str,
        currency: Currency | str,
        amount: int,
        meta: TransactionMeta,
        extra_inc: dict[str, int] | None = None,
    ) -> LedgerTransaction:
        """Credit and return the ledger entry. `extra_inc` rides along in the same update."""
        self._validate_amount(amount)
        return await self._apply_delta(
            user_id, self._parse_currency(currency), amount, meta, extra_inc
        )

    async def debit_entry(
        self,
        user_id: str,
        currency: Currency | str,
        amount: int,
        meta: TransactionMeta,
        extra_inc: dict[str, int] | None = None,
    ) -> LedgerTransaction:
        self._validate_amount(amount)
        return await self._apply_delta(
            user_id, self._parse_currency(currency), -amount, meta, extra_inc
        )

    async def credit(
        self,
        user_id: str,
        currency: Currency | str,
        amount: int,
        meta: TransactionMeta,
    ) -> int:
        """Add `amount` to a balance and record the entry. Returns the new balance."""
        entry = await self.credit_entry(user_id, currency, amount, meta)
        return entry.balance_after

    async def debit(
        self,
        user_id: str,
        currency: Currency | str,
        amount: int,
        meta: TransactionMeta,
    ) -> int:
        """Remove `amount` from a balance and record the entry. Returns the new balance.

        Raises:
            AppError: E_INSUFFICIENT_FUNDS (balance untouched) or E_USER_NOT_FOUND.
        """
        entry = await self.debit_entry(user_id, currency, amount, meta)
        return entry.balance_after

    async def transfer(
        self,
        from_user_id: str,
        to_user_id: str,
        currency: Currency | str,
        amount: int,
        description: str | None = None,
    ) -> TransferResponse:
        """Move coins between wallets as a gift_sent / gift_received pair."""
        self._validate_amount(amount)
        currency = self._parse_currency(currency)
        if from_user_id == to_user_id:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Cannot transfer to yourself",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        await self._require_account(to_user_id)

        # Lifetime totals move with the balances they describe
        sender = await self.debit_entry(
            from_user_id,
            currency,
            amount,
            TransactionMeta(
                type=TransactionType.GIFT_SENT,
                related_user_id=to_user_id,
                description=description or f"Transfer to {to_user_id}",
            ),
            extra_inc={"economy.credits_sent": amount},
        )
        try:
            receiver = await self.credit_entry(
                to_user_id,
                currency,
                amount,
                TransactionMeta(
                    type=TransactionType.GIFT_RECEIVED,
                    related_user_id=from_user_id,
                    description=description or f"Transfer from {from_user_id}",
                ),
                extra_inc={"economy.gifts_received": amount},
            )
        except AppError:
            await self.credit_entry(
                from_user_id,
                currency,
                amount,
                TransactionMeta(
                    type=TransactionType.REFUND,
                    related_user_id=to_user_id,
                    description="Transfer refund",
                ),
                extra_inc={"economy.credits_sent": -amount},
            )
            raise

        await self.audit.log_action(
            from_user_id,
            "wallet_transfer",
            details={"to_user_id": to_user_id, "currency": currency.value, "amount": amount},
        )
        return TransferResponse(
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            currency=currency,
            amount=amount,
            sender_balance=sender.balance_after,
            receiver_balance=receiver.balance_after,
        )

    async def get_balance(self, user_id: str) -> BalanceResponse:
        account = await self._require_account(user_id)
        economy = account.economy
        return BalanceResponse(
            user_id=user_id,
            coins=economy.coins,
            diamonds=economy.diamonds,
            points=economy.points,
            experience_points=economy.experience_points,
        )

    async def list_transactions(
        self,
        user_id: str,
        cursor: str | None = None,
        page_size: int = 20,
        currency: Currency | None = None,
    ) -> TransactionListResponse:
        """Newest first. The cursor is the ObjectId of the last entry returned."""
        if page_size < 1 or page_size > 100:
            logger.warning(f"Invalid page_size: {page_size}")
            page_size = 20

        conditions: list[Any] = [LedgerTransaction.user_id == user_id]
        if currency is not None:
            conditions.append(LedgerTransaction.currency == currency)
        if cursor:
            try:
                conditions.append(LT(LedgerTransaction.id, ObjectId(cursor)))
            except InvalidId:
                logger.warning(f"Invalid cursor format: {cursor}")

        entries = (
            await LedgerTransaction.find(*conditions)
            .sort([("_id", DESCENDING)])  # type: ignore[list-item]
            .limit(page_size + 1)
            .to_list()
        )

        next_cursor = None
        if len(entries) > page_size:
            entries = entries[:page_size]
            next_cursor = str(entries[-1].id)

        return TransactionListResponse(
            transactions=[
                TransactionResponse(**e.model_dump(exclude={"id"})) for e in entries
            ],
            next_cursor=next_cursor,
        )
