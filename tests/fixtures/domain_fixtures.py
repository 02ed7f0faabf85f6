"""Shared collaborators and document factories for domain tests."""

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from fliplive.schemas import EconomyAccount, Gift, LiveKind, LiveSession, UserAccount
from fliplive.services.audit import AuditLogger


class RecordingEventPublisher:
    """In-memory EventPublisher that keeps every published event."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        self.events.append((topic, payload))

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.events]


@pytest.fixture
def events() -> RecordingEventPublisher:
    return RecordingEventPublisher()


@pytest.fixture
def audit() -> AsyncMock:
    return AsyncMock(spec=AuditLogger)


async def create_account(user_id: str, **economy: Any) -> UserAccount:
    now = datetime.now(timezone.utc)
    account = UserAccount(
        user_id=user_id,
        economy=EconomyAccount(**economy),
        created_at=now,
        updated_at=now,
    )
    await account.insert()
    return account


async def create_gift(gift_id: str = "rose", coins: int = 10, active: bool = True) -> Gift:
    gift = Gift(gift_id=gift_id, name=gift_id.title(), coins=coins, active=active)
    await gift.insert()
    return gift


async def create_stale_session(
    session_id: str,
    kind: LiveKind = LiveKind.PARTY_AUDIO,
    heartbeat_age: timedelta = timedelta(minutes=16),
    age: timedelta = timedelta(minutes=25),
    is_ghost: bool = False,
    host_user_id: str = "u.host",
    chair_count: int = 4,
) -> LiveSession:
    """Insert a streaming session directly, with back-dated timestamps."""
    now = datetime.now(timezone.utc)
    session = LiveSession(
        session_id=session_id,
        host_user_id=host_user_id,
        kind=kind,
        chair_count=chair_count if kind.is_party else 0,
        is_ghost=is_ghost,
        last_heartbeat=now - heartbeat_age,
        created_at=now - age,
        updated_at=now - heartbeat_age,
    )
    await session.insert()
    return session
