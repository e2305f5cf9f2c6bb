"""
Balance-reset job — zeroes every account balance.

The job runs on the reset worker (see jobs/worker.py), one invocation per
queued "reset-all-balances" message. It executes a single
`UPDATE accounts SET balance = 0` in its own transaction.

Isolation:
  The reset runs at READ UNCOMMITTED, deliberately weaker than the
  REPEATABLE READ used for transfers. The statement is a blind overwrite,
  not a read-modify-write, so the end state (every balance is 0) is the
  same whatever it interleaves with. Row writes still take the storage
  engine's write locks, so the UPDATE waits for any transfer that holds a
  row lock and lands after it commits.

Idempotence:
  Running the job twice leaves the same state as running it once, which
  makes at-least-once delivery from the queue safe.

Lifecycle:
  IDLE -> RUNNING -> COMMITTED | FAILED
  Reaching a terminal state only emits a log line. Failures are logged and
  then re-raised unchanged so the queue marks the job as failed; there is
  no retry here.
"""

import enum
import logging

from balance_api.database import Database, IsolationLevel
from balance_api.repositories import account_repository

logger = logging.getLogger(__name__)

RESET_ISOLATION = IsolationLevel.READ_UNCOMMITTED


class ResetState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMMITTED = "committed"
    FAILED = "failed"


class BalanceResetJob:
    """One reset of every balance, bound to a Database."""

    def __init__(self, database: Database):
        self.database = database
        self.state = ResetState.IDLE
        self.affected_rows: int | None = None

    async def process(self) -> int:
        """
        Zero every balance in one transaction.

        Returns:
            Number of account rows the UPDATE touched.

        Raises:
            Whatever the store raised; the transaction is rolled back first.
        """
        logger.info("Starting reset balances job...")
        self.state = ResetState.RUNNING

        try:
            async with self.database.transaction(RESET_ISOLATION) as session:
                affected = await account_repository.reset_all_balances(session)
        except Exception:
            self.state = ResetState.FAILED
            logger.exception("Error resetting balances")
            raise

        self.state = ResetState.COMMITTED
        self.affected_rows = affected
        logger.info("Successfully reset all user balances (%d accounts)", affected)
        return affected
