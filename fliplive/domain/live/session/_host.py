"""Host moderation of seat occupants."""

from typing import Any

from beanie import UpdateResponse
from loguru import logger

from fliplive.schemas import LiveSession, LiveSessionStatus, Seat
from fliplive.services.audit import AuditLogger
from fliplive.services.events import LIVE_HOST_ACTION, LIVE_USER_REMOVED, EventPublisher
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._base import BaseService
from ._seats import SeatOperations
from ._viewers import ViewerOperations
from .session_models import HostAction, SeatResponse


class HostActionOperations(BaseService):
    def __init__(
        self,
        events: EventPublisher | None = None,
        audit: AuditLogger | None = None,
    ):
        super().__init__(events=events, audit=audit)
        self._seats = SeatOperations(events=self.events, audit=self.audit)
        self._viewers = ViewerOperations(events=self.events, audit=self.audit)

    @staticmethod
    def _parse_action(action: HostAction | str) -> HostAction:
        try:
            return HostAction(action)
        except ValueError as e:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg=f"Unknown host action: {action}",
                status_code=HttpStatusCode.BAD_REQUEST,
            ) from e

    @staticmethod
    def _seat_mismatch(seat_index: int, target_user_id: str) -> AppError:
        return AppError(
            errcode=AppErrorCode.E_SEAT_MISMATCH,
            errmesg=f"Seat {seat_index} is not occupied by {target_user_id}",
            status_code=HttpStatusCode.CONFLICT,
        )

    async def host_action(
        self,
        session_id: str,
        acting_user_id: str,
        target_user_id: str,
        seat_index: int,
        action: HostAction | str,
    ) -> SeatResponse:
        """Apply a moderation action to the occupant of a seat.

        Raises:
            AppError: E_NOT_HOST, E_SESSION_ENDED, E_SEAT_MISMATCH or
                E_INVALID_REQUEST for unknown actions.
        """
        action = self._parse_action(action)
        session = await self._require_session(session_id)
        self._ensure_host(session, acting_user_id)
        self._ensure_streaming(session)

        seat = await self._require_seat(session, seat_index)
        if seat.occupant_user_id != target_user_id:
            raise self._seat_mismatch(seat_index, target_user_id)

        update: dict[str, Any]
        match action:
            case HostAction.MUTE:
                update = {
                    "$set": {"audio_enabled": False},
                    "$addToSet": {"muted_by_host": target_user_id},
                }
            case HostAction.UNMUTE:
                update = {"$set": {"audio_enabled": True, "can_talk": True}}
            case HostAction.APPROVE_AUDIO:
                update = {"$set": {"audio_enabled": True, "can_talk": True, "muted_by_host": []}}
            case HostAction.DISABLE_VIDEO:
                update = {"$set": {"video_enabled": False}}
            case HostAction.REMOVE_USER:
                return await self._remove_user(session, seat, target_user_id)

        update["$set"]["updated_at"] = utc_now()
        updated = await Seat.find_one(
            {"_id": seat.id, "occupant.user_id": target_user_id}
        ).update(update, response_type=UpdateResponse.NEW_DOCUMENT)
        if updated is None:
            raise self._seat_mismatch(seat_index, target_user_id)

        logger.info(
            f"Host {acting_user_id} applied {action} to {target_user_id} "
            f"(seat {seat_index}) in live session {session_id}"
        )
        await self.audit.log_action(
            acting_user_id,
            f"host_{action.value}",
            details={"session_id": session_id, "target_user_id": target_user_id, "seat_index": seat_index},
        )

        response = SeatResponse.from_document(updated)
        await self._publish(
            LIVE_HOST_ACTION,
            {"session_id": session_id, "action": action.value, "seat": response.model_dump(mode="json")},
        )
        return response

    async def _remove_user(self, session: LiveSession, seat: Seat, target_user_id: str) -> SeatResponse:
        """Ban the target for the rest of the session, then clear their seat.

        The ban is written first so the target cannot slip back into a seat
        or the audience between the two writes.
        """
        if target_user_id == session.host_user_id:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="The host cannot remove themselves",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        banned = await LiveSession.find_one(
            LiveSession.session_id == session.session_id,
            LiveSession.status == LiveSessionStatus.STREAMING,
        ).update(
            {
                "$addToSet": {"removed_user_ids": target_user_id},
                "$set": {"updated_at": utc_now()},
            }
        )
        if not banned or not banned.matched_count:
            fresh = await self._require_session(session.session_id)
            self._ensure_streaming(fresh)

        vacated = await self._seats.vacate_seat(seat.id, target_user_id)
        if vacated is None:
            vacated = await Seat.get(seat.id)

        await self._viewers.leave_as_viewer(session.session_id, target_user_id)

        logger.info(
            f"Host removed {target_user_id} from seat {seat.seat_index} "
            f"in live session {session.session_id}"
        )
        await self.audit.log_action(
            session.host_user_id,
            f"host_{HostAction.REMOVE_USER.value}",
            details={
                "session_id": session.session_id,
                "target_user_id": target_user_id,
                "seat_index": seat.seat_index,
            },
        )

        response = SeatResponse.from_document(vacated)
        await self._publish(
            LIVE_HOST_ACTION,
            {
                "session_id": session.session_id,
                "action": HostAction.REMOVE_USER.value,
                "seat": response.model_dump(mode="json"),
            },
        )
        await self._publish(
            LIVE_USER_REMOVED,
            {"session_id": session.session_id, "user_id": target_user_id},
        )
        return response
