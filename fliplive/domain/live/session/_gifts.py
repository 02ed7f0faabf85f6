"""Gifts sent to the host of a live session."""

from beanie import UpdateResponse
from loguru import logger

from fliplive.domain.economy import EconomyService
from fliplive.schemas import Gift, LiveSession
from fliplive.services.audit import AuditLogger
from fliplive.services.events import LIVE_GIFT_SENT, EventPublisher
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from .session_models import GiftSentResponse

MAX_GIFT_QUANTITY = 9999


class GiftOperations(BaseService):
    def __init__(
        self,
        events: EventPublisher | None = None,
        audit: AuditLogger | None = None,
        economy: EconomyService | None = None,
    ):
        super().__init__(events=events, audit=audit)
        self.economy = economy or EconomyService(audit=self.audit)

    async def send_gift(
        self,
        session_id: str,
        sender_user_id: str,
        gift_id: str,
        quantity: int = 1,
    ) -> GiftSentResponse:
        """Pay for a gift from the sender's coins and credit the host's diamonds.

        Raises:
            AppError: E_SESSION_ENDED, E_GIFT_NOT_FOUND, E_INVALID_AMOUNT or
                E_INSUFFICIENT_FUNDS.
        """
        if quantity < 1 or quantity > MAX_GIFT_QUANTITY:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_AMOUNT,
                errmesg=f"Gift quantity must be between 1 and {MAX_GIFT_QUANTITY}",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        session = await self._require_session(session_id)
        self._ensure_streaming(session)
        self._ensure_not_removed(session, sender_user_id)

        gift = await Gift.find_one(Gift.gift_id == gift_id, Gift.active == True)  # noqa: E712
        if not gift:
            raise AppError(
                errcode=AppErrorCode.E_GIFT_NOT_FOUND,
                errmesg=f"Gift not found: {gift_id}",
                status_code=HttpStatusCode.NOT_FOUND,
            )

        total_coins = gift.coins * quantity
        sender_coins, diamonds = await self.economy.pay_for_gift(
            sender_user_id,
            session.host_user_id,
            total_coins,
            metadata={"gift_id": gift_id, "quantity": quantity, "session_id": session_id},
        )

        updated = await LiveSession.find_one(LiveSession.session_id == session_id).update(
            {"$inc": {"diamonds_earned": diamonds}},
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        diamonds_earned = updated.diamonds_earned if updated else session.diamonds_earned + diamonds
        logger.info(
            f"Gift {gift_id} x{quantity} from {sender_user_id} to live session {session_id} "
            f"({total_coins} coins)"
        )

        await self.audit.log_action(
            sender_user_id,
            "gift_sent",
            details={
                "session_id": session_id,
                "host_user_id": session.host_user_id,
                "gift_id": gift_id,
                "quantity": quantity,
                "coins": total_coins,
            },
        )

        response = GiftSentResponse(
            session_id=session_id,
            sender_user_id=sender_user_id,
            host_user_id=session.host_user_id,
            gift_id=gift_id,
            quantity=quantity,
            total_coins=total_coins,
            diamonds=diamonds,
            sender_coins=sender_coins,
            diamonds_earned=diamonds_earned,
        )
        await self._publish(LIVE_GIFT_SENT, response.model_dump(mode="json"))
        return response
