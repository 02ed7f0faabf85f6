"""Periodic sweep over abandoned party sessions.

A party session whose host stopped sending heartbeats is first marked as a
ghost, then reclaimed (ended, seats cleared) once it is old enough. The
sweep is idempotent: re-running it after a crash only repeats work that
the conditional updates turn into no-ops.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from beanie.operators import GT, In
from loguru import logger
from pymongo import ASCENDING

from fliplive.app_config import get_app_environ_config
from fliplive.domain.live.session._end import EndSessionOperations
from fliplive.schemas import LiveKind, LiveSession, LiveSessionStatus
from fliplive.services.audit import AuditLogger, get_audit_logger
from fliplive.services.events import LIVE_GHOST_MARKED, EventPublisher, get_event_publisher
from fliplive.shared.utils import utc_now
from fliplive.utils.app_errors import AppError, AppErrorCode

PARTY_KINDS = LiveKind.party_kinds()


@dataclass
class ReaperResult:
    scanned: int = 0
    affected: int = 0
    failed: int = 0


@dataclass
class SweepResult:
    marked: ReaperResult
    reclaimed: ReaperResult
    torn_down: ReaperResult = field(default_factory=ReaperResult)


class GhostReaper:
    def __init__(
        self,
        events: EventPublisher | None = None,
        audit: AuditLogger | None = None,
        end_ops: EndSessionOperations | None = None,
    ):
        self.events = events or get_event_publisher()
        self.audit = audit or get_audit_logger()
        self._end = end_ops or EndSessionOperations(events=self.events, audit=self.audit)

        cfg = get_app_environ_config()
        self.ghost_timeout = timedelta(minutes=cfg.GHOST_TIMEOUT_MINUTES)
        self.cleanup_threshold = timedelta(minutes=cfg.GHOST_CLEANUP_THRESHOLD_MINUTES)
        self.page_size = cfg.GHOST_REAPER_PAGE_SIZE
        self.max_pages = cfg.GHOST_REAPER_MAX_PAGES

    async def _iter_sessions(self, *conditions: Any) -> AsyncIterator[LiveSession]:
        """Yield matching sessions page by page, ordered by _id."""
        last_id = None
        for _ in range(self.max_pages):
            page_conditions = list(conditions)
            if last_id is not None:
                page_conditions.append(GT(LiveSession.id, last_id))

            page = (
                await LiveSession.find(*page_conditions)
                .sort([("_id", ASCENDING)])  # type: ignore[list-item]
                .limit(self.page_size)
                .to_list()
            )
            for session in page:
                yield session

            if len(page) < self.page_size:
                return
            last_id = page[-1].id

        logger.warning(f"Ghost reaper stopped after {self.max_pages} pages; rest deferred to next run")

    async def mark_pass(self) -> ReaperResult:
        """Flag streaming party sessions whose last heartbeat is too old."""
        result = ReaperResult()
        cutoff = utc_now() - self.ghost_timeout

        async for session in self._iter_sessions(
            LiveSession.status == LiveSessionStatus.STREAMING,
            In(LiveSession.kind, PARTY_KINDS),
            LiveSession.is_ghost == False,  # noqa: E712
            LiveSession.last_heartbeat < cutoff,
        ):
            result.scanned += 1
            try:
                # Conditional on the heartbeat still being stale
                updated = await LiveSession.find_one(
                    {
                        "_id": session.id,
                        "status": LiveSessionStatus.STREAMING.value,
                        "is_ghost": False,
                        "last_heartbeat": {"$lt": cutoff},
                    }
                ).update({"$set": {"is_ghost": True, "updated_at": utc_now()}})
                if not updated or not updated.modified_count:
                    continue

                result.affected += 1
                logger.info(
                    f"Marked live session {session.session_id} as ghost "
                    f"(last heartbeat {session.last_heartbeat.isoformat()})"
                )
                try:
                    await self.events.publish(
                        LIVE_GHOST_MARKED,
                        {"session_id": session.session_id, "host_user_id": session.host_user_id},
                    )
                except Exception as e:
                    logger.warning(f"Failed to publish ghost mark for {session.session_id}: {e}")
            except Exception as e:
                result.failed += 1
                logger.exception(f"Failed to mark live session {session.session_id} as ghost: {e}")

        return result

    async def reclaim_pass(self) -> ReaperResult:
        """End ghost sessions older than the cleanup threshold."""
        result = ReaperResult()
        cutoff = utc_now() - self.cleanup_threshold

        async for session in self._iter_sessions(
            LiveSession.is_ghost == True,  # noqa: E712
            LiveSession.status == LiveSessionStatus.STREAMING,
            LiveSession.created_at < cutoff,
        ):
            result.scanned += 1
            try:
                await self._end.terminate_session(session, reason="ghost")
            except AppError as e:
                if e.errcode == AppErrorCode.E_SESSION_VERSION_CONFLICT:
                    # Host ended it or sent a heartbeat meanwhile
                    logger.info(f"Skipped reclaiming live session {session.session_id}: {e.errmesg}")
                    continue
                result.failed += 1
                logger.error(f"Failed to reclaim live session {session.session_id}: {e.errmesg}")
                continue
            except Exception as e:
                result.failed += 1
                logger.exception(f"Failed to reclaim live session {session.session_id}: {e}")
                continue

            result.affected += 1
            await self.audit.log_action(
                session.host_user_id,
                "ghost_reclaimed",
                details={"session_id": session.session_id, "kind": session.kind.value},
            )

        return result

    async def teardown_pass(self) -> ReaperResult:
        """Finish releasing seats and viewers of ended sessions whose teardown was cut short."""
        result = ReaperResult()

        async for session in self._iter_sessions(
            LiveSession.status == LiveSessionStatus.ENDED,
            LiveSession.teardown_pending == True,  # noqa: E712
        ):
            result.scanned += 1
            try:
                seats_released, viewers_released = await self._end.finish_teardown(session)
            except Exception as e:
                result.failed += 1
                logger.exception(f"Failed to finish teardown of live session {session.session_id}: {e}")
                continue

            result.affected += 1
            logger.info(
                f"Finished teardown of live session {session.session_id}: "
                f"seats={seats_released} viewers={viewers_released}"
            )

        return result

    async def sweep(self) -> SweepResult:
        """Run the mark pass, the reclaim pass, then the teardown pass."""
        marked = await self.mark_pass()
        reclaimed = await self.reclaim_pass()
        torn_down = await self.teardown_pass()
        logger.info(
            f"Ghost sweep done: marked {marked.affected}/{marked.scanned} "
            f"(failed {marked.failed}), reclaimed {reclaimed.affected}/{reclaimed.scanned} "
            f"(failed {reclaimed.failed}), finished teardown {torn_down.affected}/{torn_down.scanned}"
        )
        return SweepResult(marked=marked, reclaimed=reclaimed, torn_down=torn_down)
