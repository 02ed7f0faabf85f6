"""Base service for economy operations."""

from fliplive.schemas import Currency, UserAccount
from fliplive.services.audit import AuditLogger, get_audit_logger
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class EconomyBaseService:
    """Shared account lookups and input checks for economy operations."""

    def __init__(self, audit: AuditLogger | None = None):
        self.audit = audit or get_audit_logger()

    async def _get_account(self, user_id: str) -> UserAccount | None:
        return await UserAccount.find_one(
            UserAccount.user_id == user_id,
            UserAccount.is_deleted == False,  # noqa: E712
        )

    async def _require_account(self, user_id: str) -> UserAccount:
        account = await self._get_account(user_id)
        if not account:
            raise AppError(
                errcode=AppErrorCode.E_USER_NOT_FOUND,
                errmesg=f"User not found: {user_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return account

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_AMOUNT,
                errmesg=f"Amount must be a positive integer, got {amount!r}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

    @staticmethod
    def _parse_currency(currency: Currency | str) -> Currency:
        try:
            return Currency(currency)
        except ValueError as e:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_CURRENCY,
                errmesg=f"Unknown currency: {currency}",
                status_code=HttpStatusCode.BAD_REQUEST,
            ) from e
