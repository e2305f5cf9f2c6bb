"""
Reset worker — the arq process that runs queued balance resets.

Running:
    arq balance_api.jobs.worker.WorkerSettings

The worker listens on settings.RESET_QUEUE_NAME and runs up to
settings.RESET_WORKER_MAX_JOBS jobs at once. Each job gets max_tries=1:
arq reports a failed reset as failed instead of retrying it, and whoever
enqueued it decides what to do next.
"""

import logging

from arq.worker import func

from balance_api.config import settings
from balance_api.database import Database
from balance_api.jobs.balance_reset import BalanceResetJob
from balance_api.jobs.queue import RESET_JOB_NAME, build_redis_settings
from balance_api.logging_config import configure_logging

logger = logging.getLogger(__name__)


async def reset_all_balances(ctx: dict, **payload) -> int:
    """arq entry point for the reset-all-balances job; payload is ignored."""
    job = BalanceResetJob(ctx["database"])
    return await job.process()


async def startup(ctx: dict) -> None:
    configure_logging()
    ctx["database"] = Database(
        settings.DATABASE_URL,
        lock_timeout_seconds=settings.DB_LOCK_TIMEOUT_SECONDS,
        echo=settings.DEBUG,
    )
    logger.info("Reset worker started on queue %s", settings.RESET_QUEUE_NAME)


async def shutdown(ctx: dict) -> None:
    database = ctx.get("database")
    if database is not None:
        await database.dispose()


class WorkerSettings:
    functions = [func(reset_all_balances, name=RESET_JOB_NAME, max_tries=1)]
    queue_name = settings.RESET_QUEUE_NAME
    redis_settings = build_redis_settings()
    max_jobs = settings.RESET_WORKER_MAX_JOBS
    on_startup = startup
    on_shutdown = shutdown
