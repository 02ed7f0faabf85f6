"""Application error types shared by domain services, workers and HTTP handlers."""

import inspect
from enum import Enum, IntEnum
from typing import Any
from uuid import uuid4


class HttpStatusCode(IntEnum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    PAYMENT_REQUIRED = 402
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502


class ErrorKind(str, Enum):
    """Stable, transport-independent error categories."""

    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    INVALID_STATE = "InvalidState"
    INVALID_INPUT = "InvalidInput"
    UNAUTHORIZED = "Unauthorized"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    INTERNAL = "Internal"

    def __str__(self) -> str:
        return self.value


class AppErrorCode(str, Enum):
    # Live sessions
    E_SESSION_NOT_FOUND = "E_SESSION_NOT_FOUND"
    E_SESSION_ENDED = "E_SESSION_ENDED"
    E_SESSION_VERSION_CONFLICT = "E_SESSION_VERSION_CONFLICT"
    E_INVALID_STATE_TRANSITION = "E_INVALID_STATE_TRANSITION"
    E_INVALID_KIND = "E_INVALID_KIND"
    E_INVALID_CHAIR_COUNT = "E_INVALID_CHAIR_COUNT"
    E_USER_REMOVED = "E_USER_REMOVED"
    E_NOT_HOST = "E_NOT_HOST"

    # Seats
    E_SEAT_NOT_FOUND = "E_SEAT_NOT_FOUND"
    E_INVALID_SEAT_INDEX = "E_INVALID_SEAT_INDEX"
    E_SEAT_OCCUPIED = "E_SEAT_OCCUPIED"
    E_NOT_IN_SEAT = "E_NOT_IN_SEAT"
    E_SEAT_MISMATCH = "E_SEAT_MISMATCH"

    # Economy
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"
    E_GIFT_NOT_FOUND = "E_GIFT_NOT_FOUND"
    E_INVALID_AMOUNT = "E_INVALID_AMOUNT"
    E_INVALID_CURRENCY = "E_INVALID_CURRENCY"
    E_INVALID_TIER = "E_INVALID_TIER"
    E_INVALID_MONTHS = "E_INVALID_MONTHS"
    E_INSUFFICIENT_FUNDS = "E_INSUFFICIENT_FUNDS"
    E_ACCOUNT_CONFLICT = "E_ACCOUNT_CONFLICT"

    # Payments
    E_DUPLICATE_PAYMENT = "E_DUPLICATE_PAYMENT"
    E_PAYMENT_NOT_VERIFIED = "E_PAYMENT_NOT_VERIFIED"
    E_PAYMENT_PROVIDER_ERROR = "E_PAYMENT_PROVIDER_ERROR"

    # Calls
    E_CALL_NOT_FOUND = "E_CALL_NOT_FOUND"

    # Generic
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_BAD_TOKEN = "E_BAD_TOKEN"
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"

    def __str__(self) -> str:
        return self.value

    @property
    def kind(self) -> ErrorKind:
        return ERROR_KINDS.get(self, ErrorKind.INTERNAL)


ERROR_KINDS: dict[AppErrorCode, ErrorKind] = {
    AppErrorCode.E_SESSION_NOT_FOUND: ErrorKind.NOT_FOUND,
    AppErrorCode.E_SEAT_NOT_FOUND: ErrorKind.NOT_FOUND,
    AppErrorCode.E_USER_NOT_FOUND: ErrorKind.NOT_FOUND,
    AppErrorCode.E_GIFT_NOT_FOUND: ErrorKind.NOT_FOUND,
    AppErrorCode.E_CALL_NOT_FOUND: ErrorKind.NOT_FOUND,
    AppErrorCode.E_SEAT_OCCUPIED: ErrorKind.CONFLICT,
    AppErrorCode.E_DUPLICATE_PAYMENT: ErrorKind.CONFLICT,
    AppErrorCode.E_SESSION_VERSION_CONFLICT: ErrorKind.CONFLICT,
    AppErrorCode.E_ACCOUNT_CONFLICT: ErrorKind.CONFLICT,
    AppErrorCode.E_SESSION_ENDED: ErrorKind.INVALID_STATE,
    AppErrorCode.E_USER_REMOVED: ErrorKind.INVALID_STATE,
    AppErrorCode.E_SEAT_MISMATCH: ErrorKind.INVALID_STATE,
    AppErrorCode.E_INVALID_STATE_TRANSITION: ErrorKind.INVALID_STATE,
    AppErrorCode.E_INVALID_KIND: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_INVALID_CHAIR_COUNT: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_INVALID_SEAT_INDEX: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_INVALID_AMOUNT: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_INVALID_CURRENCY: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_INVALID_TIER: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_INVALID_MONTHS: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_PAYMENT_NOT_VERIFIED: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_INVALID_REQUEST: ErrorKind.INVALID_INPUT,
    AppErrorCode.E_NOT_HOST: ErrorKind.UNAUTHORIZED,
    AppErrorCode.E_NOT_IN_SEAT: ErrorKind.UNAUTHORIZED,
    AppErrorCode.E_BAD_TOKEN: ErrorKind.UNAUTHORIZED,
    AppErrorCode.E_INSUFFICIENT_FUNDS: ErrorKind.INSUFFICIENT_FUNDS,
    AppErrorCode.E_PAYMENT_PROVIDER_ERROR: ErrorKind.INTERNAL,
    AppErrorCode.E_INTERNAL_ERROR: ErrorKind.INTERNAL,
}


class AppError(Exception):
    """Expected failure surfaced to callers with a stable code and kind.

    The caller location is captured at construction so handlers can log
    where the error was raised rather than where it was rendered.
    """

    def __init__(
        self,
        errcode: AppErrorCode,
        errmesg: str,
        status_code: HttpStatusCode | int = HttpStatusCode.BAD_REQUEST,
        *,
        details: dict[str, Any] | None = None,
    ):
        self.errcode = str(errcode)
        self.errkind = str(errcode.kind) if isinstance(errcode, AppErrorCode) else str(ErrorKind.INTERNAL)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.details = details
        self.erresid = uuid4().hex[:10]

        frame = inspect.currentframe()
        caller = frame.f_back if frame else None
        if caller is not None:
            module_name = caller.f_globals.get("__name__", caller.f_code.co_filename)
            self.caller_info = f"{module_name}:{caller.f_code.co_name}:{caller.f_lineno}"
        else:
            self.caller_info = "unknown"

        super().__init__(f"{self.errcode}: {errmesg}")


def internal_error(errmesg: str, *, details: dict[str, Any] | None = None) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_INTERNAL_ERROR,
        errmesg=errmesg,
        status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
        details=details,
    )
