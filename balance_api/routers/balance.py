"""
Balance router — transfers between accounts.

Endpoints:
  POST /balance/transfer — Move an amount from one login to another

The transfer is atomic: either both balances change or neither does. The
service opens its own REPEATABLE READ transaction, so this handler does no
session management.
"""

from fastapi import APIRouter, Depends

from balance_api.database import Database, get_database
from balance_api.dependencies import get_current_account
from balance_api.models.account import Account
from balance_api.schemas.account import AccountResponse
from balance_api.schemas.balance import TransferRequest, TransferResponse
from balance_api.services import transfer_service

router = APIRouter()


@router.post(
    "/transfer",
    response_model=TransferResponse,
    summary="Transfer money between accounts",
)
async def transfer(
    request: TransferRequest,
    account: Account = Depends(get_current_account),
    database: Database = Depends(get_database),
):
    """
    Transfer money from one account to another.

    - **from**: Sender's login
    - **to**: Receiver's login (must differ from the sender)
    - **amount**: At least 0.01, at most 2 decimal places
    """
    result = await transfer_service.transfer(
        database,
        from_login=request.from_login,
        to_login=request.to_login,
        amount=request.amount,
    )

    return TransferResponse(
        from_user=AccountResponse.model_validate(result.from_account),
        to_user=AccountResponse.model_validate(result.to_account),
        transferred_amount=result.transferred_amount,
    )
