"""
Tests for the balance-reset job, its queue, and the arq worker wiring.

These tests verify:
  - process() zeroes every balance and reports how many rows it touched
  - Running it twice is harmless (idempotent)
  - Failures are logged, leave balances untouched, and are re-raised
  - The job moves IDLE -> RUNNING -> COMMITTED / FAILED
  - ArqJobQueue enqueues by name on the configured queue
  - The worker registers the job under "reset-all-balances" without retries
"""

import logging
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from balance_api.jobs import worker
from balance_api.jobs.balance_reset import BalanceResetJob, ResetState
from balance_api.jobs.queue import RESET_JOB_NAME, ArqJobQueue
from balance_api.repositories import account_repository


class TestBalanceResetJob:

    async def test_zeroes_every_balance(self, database, create_account, balance_of):
        await create_account("alice", "100.00")
        await create_account("bob", "0.50")
        await create_account("carol")

        job = BalanceResetJob(database)
        affected = await job.process()

        assert affected == 3
        assert job.state is ResetState.COMMITTED
        for login in ("alice", "bob", "carol"):
            assert await balance_of(login) == Decimal("0.00")

    async def test_idempotent(self, database, create_account, balance_of):
        await create_account("alice", "12.34")

        await BalanceResetJob(database).process()
        second = BalanceResetJob(database)
        await second.process()

        assert second.state is ResetState.COMMITTED
        assert await balance_of("alice") == Decimal("0.00")

    async def test_repository_reset_twice(self, database, create_account, balance_of):
        await create_account("alice", "5.00")
        await create_account("bob", "7.00")

        for _ in range(2):
            async with database.transaction() as session:
                assert await account_repository.reset_all_balances(session) == 2
            assert await balance_of("alice") == Decimal("0.00")
            assert await balance_of("bob") == Decimal("0.00")

    async def test_empty_store(self, database):
        assert await BalanceResetJob(database).process() == 0

    async def test_logs_start_and_completion(self, database, create_account, caplog):
        await create_account("alice", "1.00")
        caplog.set_level(logging.INFO, logger="balance_api")

        await BalanceResetJob(database).process()

        messages = [record.getMessage() for record in caplog.records]
        assert "Starting reset balances job..." in messages
        assert any(m.startswith("Successfully reset all user balances") for m in messages)

    async def test_failure_logged_and_reraised(self, database, create_account, balance_of, caplog):
        await create_account("alice", "9.99")
        error = OperationalError("UPDATE accounts", {}, Exception("disk I/O error"))

        job = BalanceResetJob(database)
        with patch.object(
            account_repository, "reset_all_balances", AsyncMock(side_effect=error)
        ):
            with pytest.raises(OperationalError) as exc_info:
                await job.process()

        assert exc_info.value is error
        assert job.state is ResetState.FAILED
        assert any(
            record.levelno == logging.ERROR and "Error resetting balances" in record.getMessage()
            for record in caplog.records
        )
        assert await balance_of("alice") == Decimal("9.99")

    def test_starts_idle(self):
        assert BalanceResetJob(MagicMock()).state is ResetState.IDLE


class TestArqJobQueue:

    async def test_enqueue_returns_job_id(self):
        pool = SimpleNamespace(
            enqueue_job=AsyncMock(return_value=SimpleNamespace(job_id="abc123"))
        )
        queue = ArqJobQueue(pool, "reset-balance")

        job_id = await queue.enqueue(RESET_JOB_NAME, {})

        assert job_id == "abc123"
        pool.enqueue_job.assert_awaited_once_with(
            "reset-all-balances", _queue_name="reset-balance"
        )

    async def test_enqueue_without_job(self):
        pool = SimpleNamespace(enqueue_job=AsyncMock(return_value=None))
        queue = ArqJobQueue(pool, "reset-balance")

        assert await queue.enqueue(RESET_JOB_NAME, {}) is None


class TestWorker:

    def test_job_registered_without_retries(self):
        registered = {f.name: f for f in worker.WorkerSettings.functions}

        assert RESET_JOB_NAME in registered
        assert registered[RESET_JOB_NAME].max_tries == 1
        assert worker.WorkerSettings.queue_name == "reset-balance"
        assert worker.WorkerSettings.max_jobs >= 1

    async def test_job_function_runs_reset(self, database, create_account, balance_of):
        await create_account("alice", "3.00")

        affected = await worker.reset_all_balances({"database": database})

        assert affected == 1
        assert await balance_of("alice") == Decimal("0.00")
