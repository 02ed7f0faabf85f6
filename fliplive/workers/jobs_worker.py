"""Streaq worker for periodic live and economy maintenance jobs."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from loguru import logger
from streaq import Worker

from fliplive.app_config import get_app_environ_config
from fliplive.schemas.init_schemas import init_schema
from fliplive.shared.api.utils import init_logger
from fliplive.shared.storage.redis import get_redis_manager

SVC_KEY = "fliplive"
QUEUE_KEY = f"{SVC_KEY}:streaq"
QUEUE_KEY_JOBS = f"{QUEUE_KEY}:jobs"

DAILY_REWARDS_CRON = "0 0 * * *"

queue_url = get_redis_manager().get_connection_info()["default"]["original_url"]


@asynccontextmanager
async def jobs_lifespan() -> AsyncIterator[None]:
    """Lifespan context manager for the jobs worker."""
    init_logger()
    logger.info("Starting jobs worker")
    await init_schema()
    logger.info("Jobs worker initialized")

    try:
        yield
    finally:
        await get_redis_manager().close_all()
        logger.info("Jobs worker stopped")


worker: Worker[None] = Worker(
    redis_url=queue_url,
    lifespan=jobs_lifespan,  # type: ignore[arg-type]
    queue_name=QUEUE_KEY_JOBS,
)


@worker.cron(get_app_environ_config().GHOST_REAPER_CRON)
async def sweep_ghost_sessions() -> dict[str, Any]:
    """Run the ghost sweep over party sessions."""
    from fliplive.domain.live.ghost.ghost_reaper import GhostReaper

    result = await GhostReaper().sweep()
    return {
        "marked": asdict(result.marked),
        "reclaimed": asdict(result.reclaimed),
        "torn_down": asdict(result.torn_down),
    }


@worker.cron(DAILY_REWARDS_CRON)
async def credit_vip_daily_coins() -> dict[str, Any]:
    """Credit the daily coin allowance to every active VIP."""
    from fliplive.domain.economy import EconomyService

    result = await EconomyService().credit_vip_daily_coins()
    logger.info(f"VIP daily coins: {result.model_dump()}")
    return result.model_dump()


@worker.cron(DAILY_REWARDS_CRON)
async def credit_mvp_daily_rewards() -> dict[str, Any]:
    """Credit daily coins and experience to every active MVP."""
    from fliplive.domain.economy import EconomyService

    result = await EconomyService().credit_mvp_daily_rewards()
    logger.info(f"MVP daily rewards: {result.model_dump()}")
    return result.model_dump()
