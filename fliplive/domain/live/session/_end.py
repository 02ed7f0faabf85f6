"""Session ending operations."""

from loguru import logger
from pymongo import UpdateOne

from fliplive.schemas import LiveSession, LiveSessionStatus, LiveViewer
from fliplive.services.audit import AuditLogger
from fliplive.services.events import LIVE_ENDED, EventPublisher
from fliplive.shared.utils import utc_now

from ._base import BaseService
from ._seats import SeatOperations
from .session_models import EndSessionResponse, SessionResponse

VIEWER_RELEASE_BATCH = 500


class EndSessionOperations(BaseService):
    """Operations for ending sessions."""

    def __init__(
        self,
        events: EventPublisher | None = None,
        audit: AuditLogger | None = None,
    ):
        super().__init__(events=events, audit=audit)
        self._seats = SeatOperations(events=self.events, audit=self.audit)

    async def end_session(self, session_id: str, caller_user_id: str) -> EndSessionResponse:
        """End a session on behalf of its host.

        Raises:
            AppError: E_SESSION_NOT_FOUND, E_NOT_HOST, E_SESSION_ENDED, or
                E_SESSION_VERSION_CONFLICT if the ghost reaper ended it first.
        """
        session = await self._require_session(session_id)
        self._ensure_host(session, caller_user_id)
        self._ensure_streaming(session)

        logger.info(f"Ending live session {session_id} (host request)")
        return await self.terminate_session(session, reason="host_ended")

    async def terminate_session(self, session: LiveSession, reason: str) -> EndSessionResponse:
        """Move a streaming session to ENDED, then tear down seats and viewers.

        The status change comes first: from then on every seat claim or viewer
        join fails its own status check, so the teardown cannot be undone by
        a client racing it. The same write sets `teardown_pending`; if the
        teardown fails the ghost reaper finishes it through `finish_teardown`.
        """
        session = await self.update_session_status(session, LiveSessionStatus.ENDED)
        seats_released, viewers_released = await self.finish_teardown(session)

        response = EndSessionResponse(
            session=SessionResponse.from_document(session),
            viewers_released=viewers_released,
            seats_released=seats_released,
        )
        logger.info(
            f"Live session {session.session_id} ended ({reason}): "
            f"seats={seats_released} viewers={viewers_released} diamonds={session.diamonds_earned}"
        )

        await self._publish(
            LIVE_ENDED,
            {
                "session_id": session.session_id,
                "host_user_id": session.host_user_id,
                "reason": reason,
                "viewer_count": len(session.viewer_ids),
                "diamonds_earned": session.diamonds_earned,
            },
        )
        return response

    async def finish_teardown(self, session: LiveSession) -> tuple[int, int]:
        """Release the seats and viewers of an ended session and clear `teardown_pending`.

        Each step only touches what is still held, so repeating it is harmless.
        Returns (seats_released, viewers_released).
        """
        seats_released = await self._seats.release_all_seats(session)
        viewers_released = await self._release_viewers(session)

        await LiveSession.find_one(LiveSession.session_id == session.session_id).update(
            {"$set": {"viewer_ids": [], "teardown_pending": False}}
        )
        session.teardown_pending = False
        return seats_released, viewers_released

    async def _release_viewers(self, session: LiveSession) -> int:
        """Flip every watching membership to not watching and stamp its duration."""
        collection = LiveViewer.get_pymongo_collection()
        released = 0

        while True:
            viewers = (
                await LiveViewer.find(
                    LiveViewer.session_id == session.session_id,
                    LiveViewer.watching == True,  # noqa: E712
                )
                .limit(VIEWER_RELEASE_BATCH)
                .to_list()
            )
            if not viewers:
                return released

            now = utc_now()
            operations = [
                UpdateOne(
                    {"_id": viewer.id, "watching": True},
                    {
                        "$set": {"watching": False, "left_at": now},
                        "$inc": {
                            "watch_duration": max(int((now - viewer.joined_at).total_seconds()), 0)
                        },
                    },
                )
                for viewer in viewers
            ]
            result = await collection.bulk_write(operations, ordered=False)
            released += result.modified_count
