"""
Balance-reset router — queues a reset of every balance.

Endpoints:
  POST /balance-reset — Enqueue the reset job and return immediately

The response carries the queue's job id; the reset itself runs later on the
worker (see jobs/worker.py).
"""

from fastapi import APIRouter, Depends, status

from balance_api.dependencies import get_current_account, get_job_queue
from balance_api.jobs.queue import JobQueue
from balance_api.models.account import Account
from balance_api.schemas.balance import BalanceResetResponse
from balance_api.services import balance_reset_service

router = APIRouter()


@router.post(
    "",
    response_model=BalanceResetResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue a reset of all balances",
)
async def reset_all_balances(
    account: Account = Depends(get_current_account),
    job_queue: JobQueue = Depends(get_job_queue),
):
    queued = await balance_reset_service.request_reset(job_queue)
    return BalanceResetResponse(message=queued["message"], job_id=queued["job_id"])
