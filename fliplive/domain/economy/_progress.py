"""Lifetime totals, derived levels and experience points."""

from loguru import logger

from fliplive.schemas import UserAccount
from fliplive.shared.utils import utc_now

from ._base import EconomyBaseService
from .economy_models import LevelsResponse
from .levels import live_level, wealth_level
from .pricing import MVP_XP_MULTIPLIER


class ProgressOperations(EconomyBaseService):
    """Keeps wealth/live levels in step with the totals they derive from.

    Levels are written with `$max` so concurrent updates that read different
    totals can never move a level backwards.
    """

    async def refresh_levels(self, user_id: str) -> LevelsResponse:
        account = await self._require_account(user_id)
        economy = account.economy
        wealth = wealth_level(economy.credits_sent)
        live = live_level(economy.gifts_received)

        if wealth != economy.wealth_level or live != economy.live_level:
            await UserAccount.find_one(UserAccount.user_id == user_id).update(
                {
                    "$max": {"economy.wealth_level": wealth, "economy.live_level": live},
                    "$set": {"updated_at": utc_now()},
                }
            )
            if wealth > economy.wealth_level:
                logger.info(f"User {user_id} reached wealth level {wealth}")
            if live > economy.live_level:
                logger.info(f"User {user_id} reached live level {live}")

        return LevelsResponse(
            user_id=user_id,
            credits_sent=economy.credits_sent,
            gifts_received=economy.gifts_received,
            wealth_level=max(wealth, economy.wealth_level),
            live_level=max(live, economy.live_level),
            experience_points=economy.experience_points,
        )

    async def record_spend(self, user_id: str, amount: int) -> LevelsResponse:
        """Add coins spent outside of gifting (entitlement purchases) to the wealth total."""
        self._validate_amount(amount)
        await UserAccount.find_one(UserAccount.user_id == user_id).update(
            {"$inc": {"economy.credits_sent": amount}}
        )
        return await self.refresh_levels(user_id)

    async def add_experience(self, user_id: str, xp: int) -> int:
        """Grant experience, doubled while MVP is active. Returns the XP actually added."""
        self._validate_amount(xp)
        account = await self._require_account(user_id)

        boosted = account.economy.mvp.is_active(utc_now())
        xp_to_add = xp * MVP_XP_MULTIPLIER if boosted else xp

        await UserAccount.find_one(UserAccount.user_id == user_id).update(
            {"$inc": {"economy.experience_points": xp_to_add}, "$set": {"updated_at": utc_now()}}
        )
        logger.debug(f"Added {xp_to_add} XP to {user_id} (MVP boost: {'yes' if boosted else 'no'})")
        return xp_to_add

    async def get_levels(self, user_id: str) -> LevelsResponse:
        return await self.refresh_levels(user_id)
