"""Coin prices for entitlements and daily reward amounts."""

from dataclasses import dataclass

from fliplive.schemas import EntitlementKind
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

MAX_PURCHASE_MONTHS = 12

VIP_MONTHLY_PRICES: dict[str, int] = {
    "normal": 95_000,
    "super": 100_000,
    "diamond": 250_000,
}

GUARDIAN_MONTHLY_PRICES: dict[str, int] = {
    "silver": 15_000,
    "gold": 30_000,
    "king": 150_000,
}


@dataclass(frozen=True)
class MvpPackage:
    days: int
    months: int
    price: int


# Keyed by the advertised package length in days
MVP_PACKAGES: dict[int, MvpPackage] = {
    30: MvpPackage(days=30, months=1, price=7_085),
    90: MvpPackage(days=90, months=3, price=20_000),
    180: MvpPackage(days=180, months=6, price=38_000),
    365: MvpPackage(days=365, months=12, price=70_000),
}

VIP_DAILY_COINS: dict[str, int] = {
    "normal": 3_500,
    "super": 16_000,
    "diamond": 35_000,
}

MVP_DAILY_COINS = 1_000
MVP_DAILY_XP = 100
MVP_XP_MULTIPLIER = 2


def tiers_for(kind: EntitlementKind) -> set[str] | None:
    """Valid tiers for a kind, or None when the kind has no tiers."""
    match kind:
        case EntitlementKind.VIP:
            return set(VIP_MONTHLY_PRICES)
        case EntitlementKind.GUARDIAN:
            return set(GUARDIAN_MONTHLY_PRICES)
        case EntitlementKind.MVP:
            return None


def _check_months(months: int) -> None:
    if not 1 <= months <= MAX_PURCHASE_MONTHS:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_MONTHS,
            errmesg=f"Months must be between 1 and {MAX_PURCHASE_MONTHS}, got {months}",
            status_code=HttpStatusCode.BAD_REQUEST,
        )


def _monthly_price(prices: dict[str, int], tier: str, months: int) -> int:
    if tier not in prices:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_TIER,
            errmesg=f"Invalid tier '{tier}', expected one of {sorted(prices)}",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    _check_months(months)
    return prices[tier] * months


def vip_price(tier: str, months: int) -> int:
    return _monthly_price(VIP_MONTHLY_PRICES, tier, months)


def guardian_price(tier: str, months: int) -> int:
    return _monthly_price(GUARDIAN_MONTHLY_PRICES, tier, months)


def mvp_package(days: int) -> MvpPackage:
    package = MVP_PACKAGES.get(days)
    if package is None:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_TIER,
            errmesg=f"Invalid MVP package '{days}', expected one of {sorted(MVP_PACKAGES)}",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    return package
