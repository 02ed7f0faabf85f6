"""Tests for GiftOperations."""

import pytest

from fliplive.domain.economy import EconomyService
from fliplive.domain.live.session._gifts import GiftOperations
from fliplive.domain.live.session._sessions import SessionOperations
from fliplive.domain.live.session.session_models import SessionCreateParams
from fliplive.schemas import LedgerTransaction, LiveSession, TransactionType, UserAccount
from fliplive.services.events import LIVE_GIFT_SENT
from fliplive.utils.app_errors import AppError, AppErrorCode
from tests.fixtures.domain_fixtures import create_account, create_gift


@pytest.fixture
async def gift_setup(beanie_db, clear_collections, events, audit) -> str:
    await create_account("u.host")
    await create_account("u.fan", coins=100)
    await create_gift("rose", coins=10)
    created = await SessionOperations(events=events, audit=audit).create_session(
        SessionCreateParams(host_user_id="u.host", kind="broadcast")
    )
    return created.session_id


class TestSendGift:
    async def test_gift_moves_coins_to_host_diamonds(self, gift_setup, events, audit):
        # Arrange
        ops = GiftOperations(events=events, audit=audit, economy=EconomyService(audit=audit))

        # Act
        result = await ops.send_gift(gift_setup, "u.fan", "rose", quantity=3)

        # Assert
        assert result.total_coins == 30
        assert result.sender_coins == 70
        assert result.diamonds == 30
        assert result.diamonds_earned == 30

        fan = await UserAccount.find_one(UserAccount.user_id == "u.fan")
        host = await UserAccount.find_one(UserAccount.user_id == "u.host")
        assert fan.economy.coins == 70
        assert fan.economy.credits_sent == 30
        assert host.economy.diamonds == 30
        assert host.economy.gifts_received == 30

        session = await LiveSession.find_one(LiveSession.session_id == gift_setup)
        assert session.diamonds_earned == 30

        types = {t.type for t in await LedgerTransaction.find_all().to_list()}
        assert types == {TransactionType.GIFT_SENT, TransactionType.GIFT_RECEIVED}
        assert LIVE_GIFT_SENT in events.topics()

    async def test_insufficient_coins_changes_nothing(self, gift_setup, events, audit):
        ops = GiftOperations(events=events, audit=audit, economy=EconomyService(audit=audit))

        with pytest.raises(AppError) as exc_info:
            await ops.send_gift(gift_setup, "u.fan", "rose", quantity=11)

        assert exc_info.value.errcode == AppErrorCode.E_INSUFFICIENT_FUNDS
        fan = await UserAccount.find_one(UserAccount.user_id == "u.fan")
        assert fan.economy.coins == 100
        assert await LedgerTransaction.find_all().count() == 0
        session = await LiveSession.find_one(LiveSession.session_id == gift_setup)
        assert session.diamonds_earned == 0

    async def test_unknown_gift_is_rejected(self, gift_setup, events, audit):
        ops = GiftOperations(events=events, audit=audit, economy=EconomyService(audit=audit))

        with pytest.raises(AppError) as exc_info:
            await ops.send_gift(gift_setup, "u.fan", "dragon")

        assert exc_info.value.errcode == AppErrorCode.E_GIFT_NOT_FOUND

    @pytest.mark.parametrize("quantity", [0, -1, 10000])
    async def test_invalid_quantity_is_rejected(self, gift_setup, events, audit, quantity):
        ops = GiftOperations(events=events, audit=audit, economy=EconomyService(audit=audit))

        with pytest.raises(AppError) as exc_info:
            await ops.send_gift(gift_setup, "u.fan", "rose", quantity=quantity)

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_AMOUNT
