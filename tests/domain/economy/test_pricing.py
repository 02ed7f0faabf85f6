"""Tests for entitlement pricing."""

import pytest

from fliplive.domain.economy.pricing import guardian_price, mvp_package, tiers_for, vip_price
from fliplive.schemas import EntitlementKind
from fliplive.utils.app_errors import AppError, AppErrorCode


class TestPricing:
    def test_vip_price_scales_with_months(self):
        assert vip_price("normal", 1) == 95_000
        assert vip_price("diamond", 3) == 750_000

    def test_guardian_price(self):
        assert guardian_price("gold", 2) == 60_000

    def test_mvp_package_lookup(self):
        package = mvp_package(90)
        assert package.months == 3
        assert package.price == 20_000

    def test_unknown_tier(self):
        with pytest.raises(AppError) as exc_info:
            vip_price("platinum", 1)
        assert exc_info.value.errcode == AppErrorCode.E_INVALID_TIER

    def test_unknown_mvp_package(self):
        with pytest.raises(AppError) as exc_info:
            mvp_package(45)
        assert exc_info.value.errcode == AppErrorCode.E_INVALID_TIER

    @pytest.mark.parametrize("months", [0, 13])
    def test_months_out_of_range(self, months):
        with pytest.raises(AppError) as exc_info:
            guardian_price("silver", months)
        assert exc_info.value.errcode == AppErrorCode.E_INVALID_MONTHS

    def test_mvp_has_no_tiers(self):
        assert tiers_for(EntitlementKind.MVP) is None
        assert tiers_for(EntitlementKind.VIP) == {"normal", "super", "diamond"}
