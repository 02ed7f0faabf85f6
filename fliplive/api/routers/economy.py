from fastapi import APIRouter, Depends, Query

from fliplive.api.dependency import CurrentUser
from fliplive.api.schemas.base import CwOut
from fliplive.api.schemas.economy import (
    PurchaseGuardianIn,
    PurchaseMvpIn,
    PurchaseVipIn,
    TransferIn,
)
from fliplive.domain.economy import EconomyService
from fliplive.domain.economy.economy_models import (
    BalanceResponse,
    EntitlementStatus,
    LevelsResponse,
    PurchaseResponse,
    TransactionListResponse,
    TransferResponse,
)
from fliplive.schemas import Currency

router = APIRouter(prefix="/economy")

# Singleton instance
_economy_service = EconomyService()


def get_economy_service() -> EconomyService:
    """Get the singleton EconomyService instance."""
    return _economy_service


@router.get("/balance")
async def get_balance(
    user: CurrentUser,
    service: EconomyService = Depends(get_economy_service),
) -> CwOut[BalanceResponse]:
    result = await service.get_balance(user.user_id)
    return CwOut[BalanceResponse](results=result)


@router.get("/transactions")
async def list_transactions(
    user: CurrentUser,
    service: EconomyService = Depends(get_economy_service),
    cursor: str | None = Query(None, description="Pagination cursor"),
    page_size: int = Query(20, ge=1, le=100, description="Number of items per page"),
    currency: Currency | None = Query(None, description="Filter by currency"),
) -> CwOut[TransactionListResponse]:
    """List the caller's ledger entries, newest first."""
    result = await service.list_transactions(
        user.user_id, cursor=cursor, page_size=page_size, currency=currency
    )
    return CwOut[TransactionListResponse](results=result)


@router.get("/levels")
async def get_levels(
    user: CurrentUser,
    service: EconomyService = Depends(get_economy_service),
) -> CwOut[LevelsResponse]:
    result = await service.get_levels(user.user_id)
    return CwOut[LevelsResponse](results=result)


@router.get("/entitlements")
async def get_entitlements(
    user: CurrentUser,
    service: EconomyService = Depends(get_economy_service),
) -> CwOut[list[EntitlementStatus]]:
    """Expire lapsed entitlements, then report the current ones."""
    await service.check_and_expire_entitlements(user.user_id)
    result = await service.get_entitlements(user.user_id)
    return CwOut[list[EntitlementStatus]](results=result)


@router.post("/purchase_vip")
async def purchase_vip(
    body: PurchaseVipIn,
    user: CurrentUser,
    service: EconomyService = Depends(get_economy_service),
) -> CwOut[PurchaseResponse]:
    result = await service.purchase_vip(user.user_id, body.tier, body.months)
    return CwOut[PurchaseResponse](results=result)


@router.post("/purchase_mvp")
async def purchase_mvp(
    body: PurchaseMvpIn,
    user: CurrentUser,
    service: EconomyService = Depends(get_economy_service),
) -> CwOut[PurchaseResponse]:
    result = await service.purchase_mvp(user.user_id, body.package_days)
    return CwOut[PurchaseResponse](results=result)


@router.post("/purchase_guardian")
async def purchase_guardian(
    body: PurchaseGuardianIn,
    user: CurrentUser,
    service: EconomyService = Depends(get_economy_service),
) -> CwOut[PurchaseResponse]:
    result = await service.purchase_guardian(
        user.user_id, body.target_user_id, body.tier, body.months
    )
    return CwOut[PurchaseResponse](results=result)


@router.post("/transfer")
async def transfer(
    body: TransferIn,
    user: CurrentUser,
    service: EconomyService = Depends(get_economy_service),
) -> CwOut[TransferResponse]:
    result = await service.transfer(
        user.user_id,
        body.to_user_id,
        body.currency,
        body.amount,
        description=body.description,
    )
    return CwOut[TransferResponse](results=result)
