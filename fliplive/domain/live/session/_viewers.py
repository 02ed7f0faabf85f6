"""Viewer membership operations."""

from typing import Any

from beanie import UpdateResponse
from beanie.operators import GT, Inc, Set
from bson import ObjectId
from bson.errors import InvalidId
from loguru import logger
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from fliplive.schemas import LiveSession, LiveSessionStatus, LiveViewer
from fliplive.services.events import LIVE_VIEWER_JOINED, LIVE_VIEWER_LEFT
from fliplive.shared.utils import utc_now

from ._base import BaseService
from .session_state_machine import SessionStateMachine
from .session_models import ViewerJoinResponse, ViewerListResponse, ViewerResponse


class ViewerOperations(BaseService):
    async def join_as_viewer(self, session_id: str, user_id: str) -> ViewerJoinResponse:
        """Add the user to the audience. Rejoining does not duplicate membership.

        Raises:
            AppError: E_SESSION_NOT_FOUND, E_SESSION_ENDED or E_USER_REMOVED.
        """
        session = await self._require_session(session_id)
        self._ensure_streaming(session)
        self._ensure_not_removed(session, user_id)

        # Status and removal are re-checked by the write itself
        updated = await LiveSession.find_one(
            {
                "session_id": session_id,
                "status": LiveSessionStatus.STREAMING.value,
                "removed_user_ids": {"$ne": user_id},
            }
        ).update(
            {"$addToSet": {"viewer_ids": user_id}},
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if updated is None:
            session = await self._require_session(session_id)
            self._ensure_streaming(session)
            self._ensure_not_removed(session, user_id)
            updated = session

        now = utc_now()
        rejoined = await LiveViewer.find_one(
            LiveViewer.session_id == session_id,
            LiveViewer.user_id == user_id,
            LiveViewer.watching == False,  # noqa: E712
        ).update(Set({LiveViewer.watching: True, LiveViewer.joined_at: now, LiveViewer.left_at: None}))

        if not rejoined or not rejoined.modified_count:
            try:
                await LiveViewer(
                    session_id=session_id,
                    user_id=user_id,
                    host_user_id=session.host_user_id,
                    watching=True,
                    joined_at=now,
                    created_at=now,
                ).insert()
            except DuplicateKeyError:
                logger.debug(f"User {user_id} already watching live session {session_id}")

        # The session may have ended while the membership was written
        fresh = await self._require_session(session_id)
        if SessionStateMachine.is_terminal(fresh.status):
            await LiveViewer.find_one(
                LiveViewer.session_id == session_id,
                LiveViewer.user_id == user_id,
                LiveViewer.watching == True,  # noqa: E712
            ).update(Set({LiveViewer.watching: False, LiveViewer.left_at: utc_now()}))
            self._ensure_streaming(fresh)

        viewer_count = len(updated.viewer_ids)
        logger.info(f"User {user_id} joined live session {session_id} (viewers: {viewer_count})")

        await self._publish(
            LIVE_VIEWER_JOINED,
            {"session_id": session_id, "user_id": user_id, "viewer_count": viewer_count},
        )
        return ViewerJoinResponse(session_id=session_id, user_id=user_id, viewer_count=viewer_count)

    async def leave_as_viewer(self, session_id: str, user_id: str) -> ViewerJoinResponse:
        """Remove the user from the audience and stamp watch time. Idempotent."""
        session = await self._require_session(session_id)
        self._ensure_streaming(session)

        updated = await LiveSession.find_one(LiveSession.session_id == session_id).update(
            {"$pull": {"viewer_ids": user_id}},
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        viewer_count = len(updated.viewer_ids) if updated else 0

        viewer = await LiveViewer.find_one(
            LiveViewer.session_id == session_id,
            LiveViewer.user_id == user_id,
            LiveViewer.watching == True,  # noqa: E712
        )
        if not viewer:
            return ViewerJoinResponse(session_id=session_id, user_id=user_id, viewer_count=viewer_count)

        now = utc_now()
        duration = max(int((now - viewer.joined_at).total_seconds()), 0)
        result = await LiveViewer.find_one(
            LiveViewer.id == viewer.id,
            LiveViewer.watching == True,  # noqa: E712
        ).update(
            Set({LiveViewer.watching: False, LiveViewer.left_at: now}),
            Inc({LiveViewer.watch_duration: duration}),
        )

        if result and result.modified_count:
            logger.info(f"User {user_id} left live session {session_id} after {duration}s")
            await self._publish(
                LIVE_VIEWER_LEFT,
                {"session_id": session_id, "user_id": user_id, "viewer_count": viewer_count},
            )

        return ViewerJoinResponse(session_id=session_id, user_id=user_id, viewer_count=viewer_count)

    async def list_viewers(
        self,
        session_id: str,
        watching_only: bool = True,
        cursor: str | None = None,
        page_size: int = 50,
    ) -> ViewerListResponse:
        await self._require_session(session_id)
        if page_size < 1 or page_size > 200:
            logger.warning(f"Invalid page_size: {page_size}")
            page_size = 50

        conditions: list[Any] = [LiveViewer.session_id == session_id]
        if watching_only:
            conditions.append(LiveViewer.watching == True)  # noqa: E712
        if cursor:
            try:
                conditions.append(GT(LiveViewer.id, ObjectId(cursor)))
            except InvalidId:
                logger.warning(f"Invalid cursor format: {cursor}")

        viewers = (
            await LiveViewer.find(*conditions)
            .sort([("_id", ASCENDING)])  # type: ignore[list-item]
            .limit(page_size + 1)
            .to_list()
        )

        next_cursor = None
        if len(viewers) > page_size:
            viewers = viewers[:page_size]
            next_cursor = str(viewers[-1].id)

        return ViewerListResponse(
            session_id=session_id,
            viewers=[ViewerResponse.from_document(v) for v in viewers],
            next_cursor=next_cursor,
        )
