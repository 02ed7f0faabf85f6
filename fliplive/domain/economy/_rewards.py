"""Daily rewards for VIP and MVP holders."""

from typing import Any

from beanie.operators import GT
from bson import ObjectId
from loguru import logger

from fliplive.schemas import Currency, TransactionType, UserAccount
from fliplive.services.audit import AuditLogger
from fliplive.shared.utils import utc_now

from ._base import EconomyBaseService
from ._ledger import LedgerOperations
from .economy_models import DailyRewardResult, TransactionMeta
from .pricing import MVP_DAILY_COINS, MVP_DAILY_XP, VIP_DAILY_COINS

REWARD_PAGE_SIZE = 200


class DailyRewardOperations(EconomyBaseService):
    """Active tiers are re-derived at run time from `active && expires_at > now`,
    so no expiry sweep is needed before a run.
    """

    def __init__(self, audit: AuditLogger | None = None):
        super().__init__(audit=audit)
        self._ledger = LedgerOperations(audit=self.audit)

    async def _iter_active(self, kind: str):
        """Yield accounts holding an active `kind` entitlement, paged by _id."""
        now = utc_now()
        last_id: ObjectId | None = None
        while True:
            query: dict[str, Any] = {
                "is_deleted": False,
                f"economy.{kind}.active": True,
                f"economy.{kind}.expires_at": {"$gt": now},
            }
            conditions: list[Any] = [query]
            if last_id is not None:
                conditions.append(GT(UserAccount.id, last_id))

            page = (
                await UserAccount.find(*conditions)
                .sort([("_id", 1)])  # type: ignore[list-item]
                .limit(REWARD_PAGE_SIZE)
                .to_list()
            )
            if not page:
                return
            for account in page:
                yield account
            last_id = page[-1].id

    async def credit_vip_daily_coins(self) -> DailyRewardResult:
        result = DailyRewardResult()
        async for account in self._iter_active("vip"):
            result.processed += 1
            tier = account.economy.vip.tier
            coins = VIP_DAILY_COINS.get(tier or "")
            if not coins:
                logger.warning(f"Skipping VIP daily coins for {account.user_id}: unknown tier {tier}")
                continue
            try:
                await self._ledger.credit(
                    account.user_id,
                    Currency.COINS,
                    coins,
                    TransactionMeta(
                        type=TransactionType.REWARD,
                        description=f"VIP {tier} daily coins",
                        metadata={"source": "vip_daily_coins", "tier": tier},
                    ),
                )
            except Exception as e:
                result.failed += 1
                logger.error(f"Failed VIP daily coins for {account.user_id}: {e}")
                continue
            result.rewarded += 1
            result.coins_distributed += coins

        logger.info(
            f"VIP daily coins done: processed={result.processed} rewarded={result.rewarded} "
            f"failed={result.failed} coins={result.coins_distributed}"
        )
        return result

    async def credit_mvp_daily_rewards(self) -> DailyRewardResult:
        result = DailyRewardResult()
        async for account in self._iter_active("mvp"):
            result.processed += 1
            try:
                await self._ledger.credit(
                    account.user_id,
                    Currency.COINS,
                    MVP_DAILY_COINS,
                    TransactionMeta(
                        type=TransactionType.REWARD,
                        description="MVP daily reward",
                        metadata={"source": "mvp_daily_reward"},
                    ),
                )
                # Base amount, the MVP boost applies to earned XP only
                await UserAccount.find_one(UserAccount.user_id == account.user_id).update(
                    {"$inc": {"economy.experience_points": MVP_DAILY_XP}}
                )
            except Exception as e:
                result.failed += 1
                logger.error(f"Failed MVP daily reward for {account.user_id}: {e}")
                continue
            result.rewarded += 1
            result.coins_distributed += MVP_DAILY_COINS
            result.experience_distributed += MVP_DAILY_XP

        logger.info(
            f"MVP daily rewards done: processed={result.processed} rewarded={result.rewarded} "
            f"failed={result.failed} coins={result.coins_distributed}"
        )
        return result
