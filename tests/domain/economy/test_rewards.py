"""Tests for daily VIP/MVP rewards and experience."""

from datetime import datetime, timedelta, timezone

import pytest

from fliplive.domain.economy._progress import ProgressOperations
from fliplive.domain.economy._rewards import DailyRewardOperations
from fliplive.schemas import Entitlement, LedgerTransaction, UserAccount
from fliplive.utils.app_errors import AppError, AppErrorCode
from tests.fixtures.domain_fixtures import create_account


def _active(tier: str | None = None, days: int = 5) -> Entitlement:
    return Entitlement(
        active=True, tier=tier, expires_at=datetime.now(timezone.utc) + timedelta(days=days)
    )


async def _economy(user_id: str):
    account = await UserAccount.find_one(UserAccount.user_id == user_id)
    return account.economy


@pytest.mark.usefixtures("clear_collections")
class TestDailyRewards:
    async def test_vip_daily_coins_follow_tier(self, beanie_db, audit):
        # Arrange
        await create_account("u.normal", vip=_active("normal"))
        await create_account("u.diamond", vip=_active("diamond"))
        await create_account("u.lapsed", vip=_active("super", days=-1))
        await create_account("u.plain")

        # Act
        result = await DailyRewardOperations(audit=audit).credit_vip_daily_coins()

        # Assert
        assert result.processed == 2
        assert result.rewarded == 2
        assert result.coins_distributed == 3_500 + 35_000
        assert (await _economy("u.normal")).coins == 3_500
        assert (await _economy("u.diamond")).coins == 35_000
        assert (await _economy("u.lapsed")).coins == 0
        assert await LedgerTransaction.find_all().count() == 2

    async def test_mvp_daily_reward_adds_coins_and_xp(self, beanie_db, audit):
        await create_account("u.mvp", mvp=_active())

        result = await DailyRewardOperations(audit=audit).credit_mvp_daily_rewards()

        assert result.rewarded == 1
        economy = await _economy("u.mvp")
        assert economy.coins == 1_000
        assert economy.experience_points == 100

    async def test_deleted_accounts_are_skipped(self, beanie_db, audit):
        account = await create_account("u.gone", vip=_active("normal"))
        account.is_deleted = True
        await account.save()

        result = await DailyRewardOperations(audit=audit).credit_vip_daily_coins()

        assert result.processed == 0


@pytest.mark.usefixtures("clear_collections")
class TestProgress:
    async def test_experience_is_doubled_for_active_mvp(self, beanie_db, audit):
        await create_account("u.mvp", mvp=_active())
        await create_account("u.plain")
        ops = ProgressOperations(audit=audit)

        assert await ops.add_experience("u.mvp", 10) == 20
        assert await ops.add_experience("u.plain", 10) == 10
        assert (await _economy("u.mvp")).experience_points == 20

    async def test_levels_follow_lifetime_totals(self, beanie_db, audit):
        await create_account("u.star", credits_sent=6_000, gifts_received=70_000)

        levels = await ProgressOperations(audit=audit).get_levels("u.star")

        assert levels.wealth_level == 2
        assert levels.live_level == 2
        stored = await _economy("u.star")
        assert stored.wealth_level == 2
        assert stored.live_level == 2

    async def test_levels_never_move_backwards(self, beanie_db, audit):
        await create_account("u.star", credits_sent=0, wealth_level=5)

        levels = await ProgressOperations(audit=audit).refresh_levels("u.star")

        assert levels.wealth_level == 5
        assert (await _economy("u.star")).wealth_level == 5

    async def test_experience_must_be_positive(self, beanie_db, audit):
        await create_account("u.plain")

        with pytest.raises(AppError) as exc_info:
            await ProgressOperations(audit=audit).add_experience("u.plain", 0)

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_AMOUNT
