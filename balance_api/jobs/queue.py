"""
Job queue — how the API hands work to the reset worker.

The API only needs one thing from a queue: put a named job on it and get an
identifier back. JobQueue describes that contract; ArqJobQueue implements
it on top of arq (Redis). The worker side lives in jobs/worker.py.

Queue names:
  RESET_JOB_NAME is the job (function) name the worker registers;
  settings.RESET_QUEUE_NAME is the Redis queue both sides agree on.
"""

import logging
from typing import Any, Protocol

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from balance_api.config import settings

logger = logging.getLogger(__name__)

RESET_JOB_NAME = "reset-all-balances"


class JobQueue(Protocol):
    async def enqueue(self, job_name: str, payload: dict[str, Any]) -> str | None:
        """Queue `job_name` with `payload`; return the job id if one was assigned."""
        ...


def build_redis_settings(overrides: dict[str, Any] | None = None) -> RedisSettings:
    """RedisSettings from config, with optional per-call overrides."""
    redis_settings = dict(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        database=settings.REDIS_DATABASE,
        password=settings.REDIS_PASSWORD,
    )

    if overrides:
        redis_settings.update(overrides)

    return RedisSettings(**redis_settings)


class ArqJobQueue:
    """JobQueue backed by an arq Redis pool."""

    def __init__(self, pool: ArqRedis, queue_name: str):
        self._pool = pool
        self.queue_name = queue_name

    @classmethod
    async def connect(
        cls,
        redis_settings: RedisSettings | None = None,
        queue_name: str | None = None,
    ) -> "ArqJobQueue":
        pool = await create_pool(redis_settings or build_redis_settings())
        return cls(pool, queue_name or settings.RESET_QUEUE_NAME)

    async def enqueue(self, job_name: str, payload: dict[str, Any]) -> str | None:
        job = await self._pool.enqueue_job(
            job_name,
            _queue_name=self.queue_name,
            **payload,
        )
        # arq returns None when a job with the same id is already queued
        if job is None:
            logger.warning("Job %s was not queued on %s", job_name, self.queue_name)
            return None

        logger.info("Queued job %s on %s (id=%s)", job_name, self.queue_name, job.job_id)
        return job.job_id

    async def close(self) -> None:
        await self._pool.aclose()
