"""
Balance-reset service — queues a reset of every balance.

The HTTP call returns as soon as the job is on the queue; it never waits
for the reset to run. The reset itself happens in the worker
(jobs/balance_reset.py).
"""

import logging

from balance_api.jobs.queue import RESET_JOB_NAME, JobQueue

logger = logging.getLogger(__name__)

QUEUED_MESSAGE = "Reset balances job has been queued successfully"


async def request_reset(job_queue: JobQueue) -> dict:
    """
    Put a reset-all-balances job on the queue.

    Returns:
        {"message": ..., "job_id": <id, or None if the queue assigned none>}
    """
    logger.info("Adding reset balances job to queue...")
    job_id = await job_queue.enqueue(RESET_JOB_NAME, {})
    return {"message": QUEUED_MESSAGE, "job_id": job_id}
