"""Tests for the application error taxonomy."""

import pytest

from fliplive.utils.app_errors import (
    ERROR_KINDS,
    AppError,
    AppErrorCode,
    ErrorKind,
    HttpStatusCode,
    internal_error,
)


class TestErrorTaxonomy:
    @pytest.mark.parametrize("code", list(AppErrorCode))
    def test_every_code_has_an_explicit_kind(self, code):
        assert code in ERROR_KINDS

    def test_app_error_carries_code_kind_and_status(self):
        error = AppError(
            errcode=AppErrorCode.E_INSUFFICIENT_FUNDS,
            errmesg="Insufficient coins",
            status_code=HttpStatusCode.PAYMENT_REQUIRED,
            details={"currency": "coins"},
        )

        assert error.errcode == AppErrorCode.E_INSUFFICIENT_FUNDS
        assert error.errkind == "InsufficientFunds"
        assert error.status_code == 402
        assert error.details == {"currency": "coins"}
        assert "test_app_error_carries_code_kind_and_status" in error.caller_info

    def test_internal_error(self):
        error = internal_error("boom")

        assert error.errcode == AppErrorCode.E_INTERNAL_ERROR
        assert error.errkind == str(ErrorKind.INTERNAL)
        assert error.status_code == 500
