"""Crediting externally verified payments exactly once."""

from loguru import logger
from pymongo.errors import DuplicateKeyError

from fliplive.schemas import PaymentReceipt, PaymentReceiptStatus, TransactionType
from fliplive.services.audit import AuditLogger
from fliplive.services.payments import PaymentVerifier, get_payment_verifier
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import EconomyBaseService
from ._ledger import LedgerOperations
from .economy_models import PaymentResult, TransactionMeta


class PaymentOperations(EconomyBaseService):
    def __init__(
        self,
        audit: AuditLogger | None = None,
        verifier: PaymentVerifier | None = None,
    ):
        super().__init__(audit=audit)
        self.verifier = verifier or get_payment_verifier()
        self._ledger = LedgerOperations(audit=self.audit)

    async def apply_verified_payment(
        self,
        user_id: str,
        provider: str,
        provider_txn_id: str,
    ) -> PaymentResult:
        """Verify a provider reference and credit the purchased amount once.

        The provider transaction id is claimed in `payment_receipt` (unique
        index) before crediting. A second request with the same id fails with
        E_DUPLICATE_PAYMENT. If crediting fails the claim is released so the
        client can retry.
        """
        await self._require_account(user_id)

        if await PaymentReceipt.find_one(PaymentReceipt.provider_txn_id == provider_txn_id):
            raise self._duplicate(provider_txn_id)

        verification = await self.verifier.verify(provider, provider_txn_id)
        if not verification.verified:
            await self.audit.log_action(
                user_id,
                "payment_verify",
                success=False,
                details={"provider": provider, "provider_txn_id": provider_txn_id},
                error=verification.error,
            )
            raise AppError(
                errcode=AppErrorCode.E_PAYMENT_NOT_VERIFIED,
                errmesg=f"Payment {provider_txn_id} was not verified by {provider}",
                status_code=HttpStatusCode.BAD_REQUEST,
                details={"reason": verification.error},
            )

        currency = self._parse_currency(verification.currency)
        amount = verification.amount
        self._validate_amount(amount)

        now = utc_now()
        receipt = PaymentReceipt(
            provider_txn_id=provider_txn_id,
            provider=provider,
            user_id=user_id,
            amount=amount,
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        try:
            await receipt.insert()
        except DuplicateKeyError as e:
            raise self._duplicate(provider_txn_id) from e

        try:
            entry = await self._ledger.credit_entry(
                user_id,
                currency,
                amount,
                TransactionMeta(
                    type=TransactionType.PURCHASE,
                    payment_reference=provider_txn_id,
                    description=f"{provider} purchase",
                    metadata={"provider": provider},
                ),
            )
        except Exception:
            logger.error(f"Crediting payment {provider_txn_id} failed, releasing the claim")
            await receipt.delete()
            raise

        receipt.status = PaymentReceiptStatus.APPLIED
        receipt.transaction_id = entry.transaction_id
        receipt.updated_at = utc_now()
        await receipt.save()

        await self.audit.log_action(
            user_id,
            "payment_credit",
            details={
                "provider": provider,
                "provider_txn_id": provider_txn_id,
                "currency": currency.value,
                "amount": amount,
            },
        )
        logger.info(f"Payment {provider_txn_id} credited {amount} {currency.value} to {user_id}")

        return PaymentResult(
            user_id=user_id,
            provider=provider,
            provider_txn_id=provider_txn_id,
            currency=currency,
            amount=amount,
            balance=entry.balance_after,
            transaction_id=entry.transaction_id,
        )

    @staticmethod
    def _duplicate(provider_txn_id: str) -> AppError:
        return AppError(
            errcode=AppErrorCode.E_DUPLICATE_PAYMENT,
            errmesg=f"Payment already processed: {provider_txn_id}",
            status_code=HttpStatusCode.CONFLICT,
        )
