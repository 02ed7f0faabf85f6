"""Tests for SessionStateMachine."""

from fliplive.domain.live.session.session_state_machine import SessionStateMachine
from fliplive.schemas import LiveSessionStatus


class TestSessionStateMachine:
    def test_streaming_can_end(self):
        assert SessionStateMachine.can_transition(
            LiveSessionStatus.STREAMING, LiveSessionStatus.ENDED
        )

    def test_ended_is_terminal(self):
        assert SessionStateMachine.is_terminal(LiveSessionStatus.ENDED)
        assert not SessionStateMachine.is_terminal(LiveSessionStatus.STREAMING)

    def test_ended_has_no_outgoing_transitions(self):
        for status in LiveSessionStatus:
            assert not SessionStateMachine.can_transition(LiveSessionStatus.ENDED, status)
        assert SessionStateMachine.get_valid_transitions(LiveSessionStatus.ENDED) == set()

    def test_streaming_cannot_transition_to_itself(self):
        assert not SessionStateMachine.can_transition(
            LiveSessionStatus.STREAMING, LiveSessionStatus.STREAMING
        )

    def test_valid_sources_for_ended(self):
        assert SessionStateMachine.get_valid_sources(LiveSessionStatus.ENDED) == {
            LiveSessionStatus.STREAMING
        }
