"""End-to-end flow through LiveSessionService."""

import pytest

from fliplive.domain.economy import EconomyService
from fliplive.domain.live.session.session_domain import LiveSessionService
from fliplive.domain.live.session.session_models import HostAction, SessionCreateParams
from fliplive.schemas import LiveSessionStatus
from fliplive.services.events import LIVE_CREATED, LIVE_ENDED
from fliplive.utils.app_errors import AppError, AppErrorCode
from tests.fixtures.domain_fixtures import create_account, create_gift


@pytest.mark.usefixtures("clear_collections")
class TestLiveSessionService:
    async def test_party_session_lifecycle(self, beanie_db, events, audit):
        # Arrange
        await create_account("u.host")
        await create_account("u.fan", coins=50)
        await create_gift("heart", coins=5)
        service = LiveSessionService(events=events, audit=audit, economy=EconomyService(audit=audit))

        # Act
        created = await service.create_session(
            SessionCreateParams(host_user_id="u.host", kind="party-video", chair_count=3)
        )
        await service.join_as_viewer(created.session_id, "u.fan")
        await service.join_seat(created.session_id, 2, "u.fan")
        await service.host_action(created.session_id, "u.host", "u.fan", 2, HostAction.MUTE)
        gift = await service.send_gift(created.session_id, "u.fan", "heart", quantity=2)
        seats = await service.list_seats(created.session_id)
        ended = await service.end_session(created.session_id, "u.host")

        # Assert
        assert [s.occupant_user_id for s in seats] == ["u.host", None, "u.fan"]
        assert seats[2].audio_enabled is False
        assert gift.diamonds_earned == 10
        assert ended.session.status == LiveSessionStatus.ENDED
        assert ended.seats_released == 2
        assert events.topics()[0] == LIVE_CREATED
        assert events.topics()[-1] == LIVE_ENDED

        with pytest.raises(AppError) as exc_info:
            await service.heartbeat(created.session_id, "u.host")
        assert exc_info.value.errcode == AppErrorCode.E_SESSION_ENDED

    async def test_private_sessions_hidden_unless_requested(self, beanie_db, events, audit):
        service = LiveSessionService(events=events, audit=audit)
        await service.create_session(
            SessionCreateParams(host_user_id="u.a", kind="broadcast", is_private=True)
        )
        await service.create_session(SessionCreateParams(host_user_id="u.b", kind="broadcast"))

        public = await service.list_active_sessions()
        everything = await service.list_active_sessions(include_private=True)

        assert [s.host_user_id for s in public.sessions] == ["u.b"]
        assert len(everything.sessions) == 2
