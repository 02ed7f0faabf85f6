"""Seat occupancy for party sessions."""

from typing import Any

from beanie import UpdateResponse
from loguru import logger

from fliplive.schemas import EMPTY_SEAT_FIELDS, LiveSession, Seat, SeatOccupant
from fliplive.services.events import LIVE_SEAT_UPDATED
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from .session_models import SeatResponse
from .session_state_machine import SessionStateMachine


class SeatOperations(BaseService):
    """Seat claims are compare-and-swap updates on `occupant: null`.

    Every write is conditional on the occupant it expects, so two callers
    racing for the same seat resolve to exactly one winner without locks.
    """

    @staticmethod
    def _seat_occupied(seat_index: int, session_id: str) -> AppError:
        return AppError(
            errcode=AppErrorCode.E_SEAT_OCCUPIED,
            errmesg=f"Seat {seat_index} in live session {session_id} is occupied",
            status_code=HttpStatusCode.CONFLICT,
        )

    async def vacate_seat(self, seat_id: Any, user_id: str) -> Seat | None:
        """Clear a seat only if `user_id` still holds it."""
        return await Seat.find_one({"_id": seat_id, "occupant.user_id": user_id}).update(
            {"$set": {**EMPTY_SEAT_FIELDS, "updated_at": utc_now()}},
            response_type=UpdateResponse.NEW_DOCUMENT,
        )

    async def _publish_seat(self, seat: Seat) -> None:
        await self._publish(LIVE_SEAT_UPDATED, SeatResponse.from_document(seat).model_dump(mode="json"))

    async def join_seat(self, session_id: str, seat_index: int, user_id: str) -> SeatResponse:
        """Take an empty seat, moving out of any seat the user already holds.

        The target is claimed before the previous seat is vacated, so losing
        the claim leaves the caller where they were.

        Raises:
            AppError: E_SESSION_ENDED, E_USER_REMOVED, E_INVALID_SEAT_INDEX,
                E_SEAT_NOT_FOUND or E_SEAT_OCCUPIED.
        """
        session = await self._require_session(session_id)
        self._ensure_streaming(session)
        self._ensure_not_removed(session, user_id)

        target = await self._require_seat(session, seat_index)
        if target.occupant_user_id == user_id:
            return SeatResponse.from_document(target)
        if target.occupant is not None:
            raise self._seat_occupied(seat_index, session_id)

        # Step 1: claim the target seat if, and only if, it is still empty
        now = utc_now()
        claimed = await Seat.find_one(
            {"session_id": session_id, "seat_index": seat_index, "occupant": None}
        ).update(
            {
                "$set": {
                    "occupant": SeatOccupant(user_id=user_id, joined_at=now).model_dump(),
                    "can_talk": False,
                    "audio_enabled": True,
                    "video_enabled": False,
                    "updated_at": now,
                }
            },
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if claimed is None:
            raise self._seat_occupied(seat_index, session_id)

        # Step 2: the session may have ended or removed the user while we claimed
        fresh = await self._get_session_by_id(session_id)
        if (
            fresh is None
            or SessionStateMachine.is_terminal(fresh.status)
            or user_id in fresh.removed_user_ids
        ):
            await self.vacate_seat(claimed.id, user_id)
            if fresh is None:
                await self._require_session(session_id)
            self._ensure_streaming(fresh)
            self._ensure_not_removed(fresh, user_id)

        # Step 3: leave the previous seat, and any seat a concurrent join of the same user took
        others = await Seat.find(
            {"session_id": session_id, "occupant.user_id": user_id, "_id": {"$ne": claimed.id}}
        ).to_list()
        moved = False
        for other in others:
            vacated = await self.vacate_seat(other.id, user_id)
            if vacated is None:
                continue
            moved = True
            logger.info(
                f"User {user_id} moved from seat {vacated.seat_index} to {seat_index} "
                f"in live session {session_id}"
            )
            await self._publish_seat(vacated)

        if not moved:
            logger.info(f"User {user_id} joined seat {seat_index} in live session {session_id}")

        await self._publish_seat(claimed)
        return SeatResponse.from_document(claimed)

    async def leave_seat(self, session_id: str, seat_index: int, user_id: str) -> SeatResponse:
        """Vacate a seat held by the caller.

        Raises:
            AppError: E_NOT_IN_SEAT when the caller is not the occupant.
        """
        session = await self._require_session(session_id)
        self._ensure_streaming(session)
        seat = await self._require_seat(session, seat_index)

        vacated = await self.vacate_seat(seat.id, user_id)
        if vacated is None:
            raise AppError(
                errcode=AppErrorCode.E_NOT_IN_SEAT,
                errmesg=f"User {user_id} is not in seat {seat_index} of live session {session_id}",
                status_code=HttpStatusCode.FORBIDDEN,
            )

        logger.info(f"User {user_id} left seat {seat_index} in live session {session_id}")
        await self._publish_seat(vacated)
        return SeatResponse.from_document(vacated)

    async def release_all_seats(self, session: LiveSession) -> int:
        """Clear every occupied seat of a session. Returns how many were cleared."""
        result = await Seat.find(
            {"session_id": session.session_id, "occupant": {"$ne": None}}
        ).update({"$set": {**EMPTY_SEAT_FIELDS, "updated_at": utc_now()}})
        released = result.modified_count if result else 0
        if released:
            logger.info(f"Released {released} seat(s) of live session {session.session_id}")
        return released
