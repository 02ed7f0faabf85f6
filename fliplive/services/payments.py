"""Payment provider verification client."""

from typing import Protocol

import httpx
from loguru import logger
from pydantic import BaseModel

from fliplive.app_config import get_app_environ_config
from fliplive.schemas import Currency
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class PaymentVerification(BaseModel):
    verified: bool
    amount: int = 0
    currency: Currency = Currency.COINS
    error: str | None = None


class PaymentVerifier(Protocol):
    async def verify(self, provider: str, reference: str) -> PaymentVerification: ...


class HttpPaymentVerifier:
    """Asks the payment gateway service whether a provider reference settled."""

    def __init__(self, base_url: str | None = None, api_key: str | None = None):
        app_config = get_app_environ_config()
        self.base_url = (base_url or app_config.PAYMENT_VERIFY_URL or "").rstrip("/")
        self.api_key = api_key or app_config.PAYMENT_VERIFY_API_KEY

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        return headers

    async def verify(self, provider: str, reference: str) -> PaymentVerification:
        if not self.base_url:
            raise AppError(
                errcode=AppErrorCode.E_PAYMENT_PROVIDER_ERROR,
                errmesg="Payment verification endpoint is not configured",
                status_code=HttpStatusCode.BAD_GATEWAY,
            )

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.base_url}/verify",
                    json={"provider": provider, "reference": reference},
                    headers=self._build_headers(),
                    timeout=30,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Payment verification failed for {provider}:{reference}: {e}")
            raise AppError(
                errcode=AppErrorCode.E_PAYMENT_PROVIDER_ERROR,
                errmesg=f"Payment provider unavailable: {provider}",
                status_code=HttpStatusCode.BAD_GATEWAY,
            ) from e

        logger.debug(f"payment verification response for {provider}:{reference}: {data}")
        return PaymentVerification.model_validate(data)


_payment_verifier: HttpPaymentVerifier | None = None


def get_payment_verifier() -> HttpPaymentVerifier:
    global _payment_verifier
    if _payment_verifier is None:
        _payment_verifier = HttpPaymentVerifier()
    return _payment_verifier
