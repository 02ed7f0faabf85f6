from fastapi import APIRouter, Depends

from fliplive.api.dependency import CurrentUser
from fliplive.api.schemas.base import CwOut
from fliplive.api.schemas.economy import VerifyPaymentIn
from fliplive.domain.economy import EconomyService
from fliplive.domain.economy.economy_models import PaymentResult
from fliplive.services.payments import get_payment_verifier

router = APIRouter(prefix="/payments")

_payment_service: EconomyService | None = None


def get_payment_service() -> EconomyService:
    """Economy service wired to the configured payment verifier."""
    global _payment_service
    if _payment_service is None:
        _payment_service = EconomyService(payment_verifier=get_payment_verifier())
    return _payment_service


@router.post("/verify")
async def verify_payment(
    body: VerifyPaymentIn,
    user: CurrentUser,
    service: EconomyService = Depends(get_payment_service),
) -> CwOut[PaymentResult]:
    """Verify a provider receipt and credit the caller once per transaction id."""
    result = await service.apply_verified_payment(
        user.user_id, body.provider, body.provider_txn_id
    )
    return CwOut[PaymentResult](results=result)
