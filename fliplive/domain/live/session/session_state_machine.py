"""Live session state machine for managing status transitions."""

from fliplive.schemas import LiveSessionStatus


class SessionStateMachine:
    """State machine for live session status transitions.

    State flow with triggers:
    - STREAMING (session created via create_session()) -> ENDED
    - ENDED is terminal

    Ghost detection is not a state: the ghost reaper sets `is_ghost` on a
    STREAMING session whose heartbeat went stale, and later moves it to
    ENDED through the same transition as end_session().
    """

    TRANSITIONS: dict[LiveSessionStatus, set[LiveSessionStatus]] = {
        LiveSessionStatus.STREAMING: {LiveSessionStatus.ENDED},
        LiveSessionStatus.ENDED: set(),
    }

    TERMINAL_STATES: set[LiveSessionStatus] = {LiveSessionStatus.ENDED}

    @classmethod
    def can_transition(cls, current: LiveSessionStatus, new: LiveSessionStatus) -> bool:
        """Check if status transition is valid."""
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_terminal(cls, status: LiveSessionStatus) -> bool:
        return status in cls.TERMINAL_STATES

    @classmethod
    def get_valid_transitions(cls, status: LiveSessionStatus) -> set[LiveSessionStatus]:
        return cls.TRANSITIONS.get(status, set())

    @classmethod
    def get_valid_sources(cls, target: LiveSessionStatus) -> set[LiveSessionStatus]:
        """Get all statuses that can transition to the target status."""
        return {status for status, targets in cls.TRANSITIONS.items() if target in targets}
