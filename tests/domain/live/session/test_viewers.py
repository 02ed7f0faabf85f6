"""Tests for ViewerOperations."""

from unittest.mock import patch

import pytest

from fliplive.domain.live.session._sessions import SessionOperations
from fliplive.domain.live.session._viewers import ViewerOperations
from fliplive.domain.live.session.session_models import SessionCreateParams
from fliplive.schemas import LiveSession, LiveSessionStatus, LiveViewer
from fliplive.services.events import LIVE_VIEWER_JOINED, LIVE_VIEWER_LEFT
from fliplive.utils.app_errors import AppError, AppErrorCode


async def _create_broadcast(events, audit) -> str:
    ops = SessionOperations(events=events, audit=audit)
    created = await ops.create_session(SessionCreateParams(host_user_id="u.host", kind="broadcast"))
    return created.session_id


@pytest.mark.usefixtures("clear_collections")
class TestJoinAsViewer:
    async def test_join_adds_membership_and_counts_viewer(self, beanie_db, events, audit):
        # Arrange
        session_id = await _create_broadcast(events, audit)
        ops = ViewerOperations(events=events, audit=audit)

        # Act
        result = await ops.join_as_viewer(session_id, "u.viewer")

        # Assert
        assert result.viewer_count == 1
        viewer = await LiveViewer.find_one(
            LiveViewer.session_id == session_id, LiveViewer.user_id == "u.viewer"
        )
        assert viewer is not None
        assert viewer.watching is True
        assert LIVE_VIEWER_JOINED in events.topics()

    async def test_join_twice_does_not_duplicate(self, beanie_db, events, audit):
        session_id = await _create_broadcast(events, audit)
        ops = ViewerOperations(events=events, audit=audit)

        await ops.join_as_viewer(session_id, "u.viewer")
        result = await ops.join_as_viewer(session_id, "u.viewer")

        assert result.viewer_count == 1
        assert await LiveViewer.find(LiveViewer.session_id == session_id).count() == 1

    async def test_rejoin_after_leave_reuses_membership(self, beanie_db, events, audit):
        session_id = await _create_broadcast(events, audit)
        ops = ViewerOperations(events=events, audit=audit)

        await ops.join_as_viewer(session_id, "u.viewer")
        await ops.leave_as_viewer(session_id, "u.viewer")
        result = await ops.join_as_viewer(session_id, "u.viewer")

        assert result.viewer_count == 1
        viewers = await LiveViewer.find(LiveViewer.session_id == session_id).to_list()
        assert len(viewers) == 1
        assert viewers[0].watching is True
        assert viewers[0].left_at is None

    async def test_join_ended_session_fails(self, beanie_db, events, audit):
        session_id = await _create_broadcast(events, audit)
        await LiveSession.get_pymongo_collection().update_one(
            {"session_id": session_id}, {"$set": {"status": LiveSessionStatus.ENDED.value}}
        )
        ops = ViewerOperations(events=events, audit=audit)

        with pytest.raises(AppError) as exc_info:
            await ops.join_as_viewer(session_id, "u.viewer")

        assert exc_info.value.errcode == AppErrorCode.E_SESSION_ENDED

    async def test_removed_user_cannot_join(self, beanie_db, events, audit):
        session_id = await _create_broadcast(events, audit)
        await LiveSession.get_pymongo_collection().update_one(
            {"session_id": session_id}, {"$addToSet": {"removed_user_ids": "u.banned"}}
        )
        ops = ViewerOperations(events=events, audit=audit)

        with pytest.raises(AppError) as exc_info:
            await ops.join_as_viewer(session_id, "u.banned")

        assert exc_info.value.errcode == AppErrorCode.E_USER_REMOVED

    async def test_session_ended_during_join_leaves_no_watcher(self, beanie_db, events, audit):
        # Arrange: the session ends after the audience write, before the membership insert
        session_id = await _create_broadcast(events, audit)
        ops = ViewerOperations(events=events, audit=audit)
        original_insert = LiveViewer.insert

        async def end_then_insert(viewer, *args, **kwargs):
            await LiveSession.get_pymongo_collection().update_one(
                {"session_id": session_id}, {"$set": {"status": LiveSessionStatus.ENDED.value}}
            )
            return await original_insert(viewer, *args, **kwargs)

        # Act
        with patch.object(LiveViewer, "insert", end_then_insert):
            with pytest.raises(AppError) as exc_info:
                await ops.join_as_viewer(session_id, "u.viewer")

        # Assert
        assert exc_info.value.errcode == AppErrorCode.E_SESSION_ENDED
        assert await LiveViewer.find(
            LiveViewer.session_id == session_id, LiveViewer.watching == True  # noqa: E712
        ).count() == 0
        assert LIVE_VIEWER_JOINED not in events.topics()


@pytest.mark.usefixtures("clear_collections")
class TestLeaveAsViewer:
    async def test_leave_marks_not_watching_and_keeps_record(self, beanie_db, events, audit):
        # Arrange
        session_id = await _create_broadcast(events, audit)
        ops = ViewerOperations(events=events, audit=audit)
        await ops.join_as_viewer(session_id, "u.viewer")

        # Act
        result = await ops.leave_as_viewer(session_id, "u.viewer")

        # Assert
        assert result.viewer_count == 0
        viewer = await LiveViewer.find_one(LiveViewer.user_id == "u.viewer")
        assert viewer.watching is False
        assert viewer.left_at is not None
        assert viewer.watch_duration >= 0
        assert LIVE_VIEWER_LEFT in events.topics()

    async def test_leave_is_idempotent(self, beanie_db, events, audit):
        session_id = await _create_broadcast(events, audit)
        ops = ViewerOperations(events=events, audit=audit)
        await ops.join_as_viewer(session_id, "u.viewer")

        await ops.leave_as_viewer(session_id, "u.viewer")
        result = await ops.leave_as_viewer(session_id, "u.viewer")

        assert result.viewer_count == 0
        assert events.topics().count(LIVE_VIEWER_LEFT) == 1

    async def test_list_viewers_only_returns_watching(self, beanie_db, events, audit):
        session_id = await _create_broadcast(events, audit)
        ops = ViewerOperations(events=events, audit=audit)
        await ops.join_as_viewer(session_id, "u.one")
        await ops.join_as_viewer(session_id, "u.two")
        await ops.leave_as_viewer(session_id, "u.one")

        watching = await ops.list_viewers(session_id)
        everyone = await ops.list_viewers(session_id, watching_only=False)

        assert [v.user_id for v in watching.viewers] == ["u.two"]
        assert {v.user_id for v in everyone.viewers} == {"u.one", "u.two"}
