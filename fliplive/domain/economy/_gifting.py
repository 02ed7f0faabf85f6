"""Coin side of sending a gift: sender pays coins, receiver earns diamonds."""

from loguru import logger

from fliplive.schemas import Currency, TransactionType
from fliplive.services.audit import AuditLogger
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import EconomyBaseService
from ._ledger import LedgerOperations
from ._progress import ProgressOperations
from .economy_models import TransactionMeta

# Diamonds credited to the receiver per coin spent by the sender
DIAMONDS_PER_COIN = 1


class GiftPaymentOperations(EconomyBaseService):
    def __init__(self, audit: AuditLogger | None = None):
        super().__init__(audit=audit)
        self._ledger = LedgerOperations(audit=self.audit)
        self._progress = ProgressOperations(audit=self.audit)

    async def pay_for_gift(
        self,
        sender_user_id: str,
        receiver_user_id: str,
        total_coins: int,
        metadata: dict,
    ) -> tuple[int, int]:
        """Debit the sender and credit the receiver.

        Returns (sender coins after, diamonds credited). If the credit fails
        the sender is refunded before the error propagates.
        """
        self._validate_amount(total_coins)
        if sender_user_id == receiver_user_id:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="Cannot send a gift to yourself",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        await self._require_account(receiver_user_id)

        sent = await self._ledger.debit_entry(
            sender_user_id,
            Currency.COINS,
            total_coins,
            TransactionMeta(
                type=TransactionType.GIFT_SENT,
                related_user_id=receiver_user_id,
                description=f"Gift {metadata.get('gift_id')} x{metadata.get('quantity', 1)}",
                metadata=metadata,
            ),
            extra_inc={"economy.credits_sent": total_coins},
        )

        diamonds = total_coins * DIAMONDS_PER_COIN
        try:
            await self._ledger.credit_entry(
                receiver_user_id,
                Currency.DIAMONDS,
                diamonds,
                TransactionMeta(
                    type=TransactionType.GIFT_RECEIVED,
                    related_user_id=sender_user_id,
                    description=f"Gift {metadata.get('gift_id')} received",
                    metadata=metadata,
                ),
                extra_inc={"economy.gifts_received": diamonds},
            )
        except AppError:
            logger.error(
                f"Crediting gift to {receiver_user_id} failed, refunding {total_coins} coins "
                f"to {sender_user_id}"
            )
            await self._ledger.credit_entry(
                sender_user_id,
                Currency.COINS,
                total_coins,
                TransactionMeta(
                    type=TransactionType.REFUND,
                    related_user_id=receiver_user_id,
                    description="Gift refund",
                    metadata=metadata,
                ),
                extra_inc={"economy.credits_sent": -total_coins},
            )
            raise

        await self._progress.refresh_levels(sender_user_id)
        await self._progress.refresh_levels(receiver_user_id)
        return sent.balance_after, diamonds
