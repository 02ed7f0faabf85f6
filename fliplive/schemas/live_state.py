"""Enums describing live session lifecycle and layout."""

from enum import Enum


class LiveSessionStatus(str, Enum):
    """Live session lifecycle states.

    STREAMING -> ENDED

    Ghost detection does not add a state: a streaming session whose heartbeat
    went stale carries `is_ghost=True` until it is reclaimed or heartbeats again.
    ENDED is terminal.
    """

    STREAMING = "streaming"
    ENDED = "ended"

    def __str__(self) -> str:
        return self.value


class LiveKind(str, Enum):
    BROADCAST = "broadcast"
    PARTY_VIDEO = "party-video"
    PARTY_AUDIO = "party-audio"

    def __str__(self) -> str:
        return self.value

    @property
    def is_party(self) -> bool:
        return self in (LiveKind.PARTY_VIDEO, LiveKind.PARTY_AUDIO)

    @classmethod
    def party_kinds(cls) -> list["LiveKind"]:
        return [LiveKind.PARTY_VIDEO, LiveKind.PARTY_AUDIO]


__all__ = ["LiveKind", "LiveSessionStatus"]
