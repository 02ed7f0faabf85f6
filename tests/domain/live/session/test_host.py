"""Tests for HostActionOperations."""

import pytest

from fliplive.domain.live.session._host import HostActionOperations
from fliplive.domain.live.session._seats import SeatOperations
from fliplive.domain.live.session._sessions import SessionOperations
from fliplive.domain.live.session._viewers import ViewerOperations
from fliplive.domain.live.session.session_models import HostAction, SessionCreateParams
from fliplive.schemas import LiveSession, LiveViewer, Seat
from fliplive.services.events import LIVE_HOST_ACTION, LIVE_USER_REMOVED
from fliplive.utils.app_errors import AppError, AppErrorCode


@pytest.fixture
async def party_with_guest(beanie_db, clear_collections, events, audit) -> str:
    """Party session with u.guest watching and sitting in seat 1."""
    created = await SessionOperations(events=events, audit=audit).create_session(
        SessionCreateParams(host_user_id="u.host", kind="party-video", chair_count=4)
    )
    await ViewerOperations(events=events, audit=audit).join_as_viewer(created.session_id, "u.guest")
    await SeatOperations(events=events, audit=audit).join_seat(created.session_id, 1, "u.guest")
    return created.session_id


class TestHostAction:
    async def test_mute_disables_audio_and_records_the_mute(self, party_with_guest, events, audit):
        # Arrange
        ops = HostActionOperations(events=events, audit=audit)

        # Act
        result = await ops.host_action(party_with_guest, "u.host", "u.guest", 1, HostAction.MUTE)

        # Assert
        assert result.audio_enabled is False
        assert result.muted_by_host == ["u.guest"]
        assert result.occupant_user_id == "u.guest"
        assert LIVE_HOST_ACTION in events.topics()
        audit.log_action.assert_awaited()

    async def test_approve_audio_lets_the_guest_talk(self, party_with_guest, events, audit):
        ops = HostActionOperations(events=events, audit=audit)
        await ops.host_action(party_with_guest, "u.host", "u.guest", 1, HostAction.MUTE)

        result = await ops.host_action(party_with_guest, "u.host", "u.guest", 1, "approve_audio")

        assert result.can_talk is True
        assert result.audio_enabled is True
        assert result.muted_by_host == []

    async def test_unmute_restores_audio(self, party_with_guest, events, audit):
        ops = HostActionOperations(events=events, audit=audit)
        await ops.host_action(party_with_guest, "u.host", "u.guest", 1, HostAction.MUTE)

        result = await ops.host_action(party_with_guest, "u.host", "u.guest", 1, HostAction.UNMUTE)

        assert result.audio_enabled is True
        assert result.can_talk is True

    async def test_disable_video(self, party_with_guest, events, audit):
        ops = HostActionOperations(events=events, audit=audit)

        result = await ops.host_action(
            party_with_guest, "u.host", "u.guest", 1, HostAction.DISABLE_VIDEO
        )

        assert result.video_enabled is False

    async def test_non_host_is_rejected(self, party_with_guest, events, audit):
        ops = HostActionOperations(events=events, audit=audit)

        with pytest.raises(AppError) as exc_info:
            await ops.host_action(party_with_guest, "u.guest", "u.guest", 1, HostAction.MUTE)

        assert exc_info.value.errcode == AppErrorCode.E_NOT_HOST
        assert exc_info.value.errkind == "Unauthorized"

    async def test_target_must_occupy_the_seat(self, party_with_guest, events, audit):
        ops = HostActionOperations(events=events, audit=audit)

        with pytest.raises(AppError) as exc_info:
            await ops.host_action(party_with_guest, "u.host", "u.other", 1, HostAction.MUTE)

        assert exc_info.value.errcode == AppErrorCode.E_SEAT_MISMATCH

    async def test_unknown_action_is_rejected(self, party_with_guest, events, audit):
        ops = HostActionOperations(events=events, audit=audit)

        with pytest.raises(AppError) as exc_info:
            await ops.host_action(party_with_guest, "u.host", "u.guest", 1, "kick")

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_REQUEST


class TestRemoveUser:
    async def test_remove_clears_seat_bans_and_drops_viewer(self, party_with_guest, events, audit):
        # Arrange
        ops = HostActionOperations(events=events, audit=audit)

        # Act
        result = await ops.host_action(
            party_with_guest, "u.host", "u.guest", 1, HostAction.REMOVE_USER
        )

        # Assert
        assert result.occupant_user_id is None
        session = await LiveSession.find_one(LiveSession.session_id == party_with_guest)
        assert "u.guest" in session.removed_user_ids
        assert "u.guest" not in session.viewer_ids
        viewer = await LiveViewer.find_one(LiveViewer.user_id == "u.guest")
        assert viewer.watching is False
        assert LIVE_USER_REMOVED in events.topics()

    async def test_removed_user_cannot_come_back(self, party_with_guest, events, audit):
        ops = HostActionOperations(events=events, audit=audit)
        await ops.host_action(party_with_guest, "u.host", "u.guest", 1, HostAction.REMOVE_USER)

        with pytest.raises(AppError) as seat_exc:
            await SeatOperations(events=events, audit=audit).join_seat(party_with_guest, 2, "u.guest")
        with pytest.raises(AppError) as viewer_exc:
            await ViewerOperations(events=events, audit=audit).join_as_viewer(
                party_with_guest, "u.guest"
            )

        assert seat_exc.value.errcode == AppErrorCode.E_USER_REMOVED
        assert viewer_exc.value.errcode == AppErrorCode.E_USER_REMOVED
        seat = await Seat.find_one(Seat.session_id == party_with_guest, Seat.seat_index == 2)
        assert seat.occupant is None

    async def test_host_cannot_remove_themselves(self, party_with_guest, events, audit):
        ops = HostActionOperations(events=events, audit=audit)

        with pytest.raises(AppError) as exc_info:
            await ops.host_action(party_with_guest, "u.host", "u.host", 0, HostAction.REMOVE_USER)

        assert exc_info.value.errcode == AppErrorCode.E_INVALID_REQUEST
