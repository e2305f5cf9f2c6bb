"""
Pydantic schemas for the transfer and balance-reset endpoints.

Field names on the wire follow the public contract ("from", "fromUser",
"jobId", ...); the Python attribute names are snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field

from balance_api.schemas.account import AccountResponse
from balance_api.schemas.money import MoneyOut, TransferAmount


class TransferRequest(BaseModel):
    """Request body for POST /balance/transfer."""
    model_config = ConfigDict(populate_by_name=True)

    from_login: str = Field(alias="from", min_length=1)
    to_login: str = Field(alias="to", min_length=1)
    amount: TransferAmount


class TransferResponse(BaseModel):
    """Response body for a successful transfer."""
    model_config = ConfigDict(populate_by_name=True)

    from_user: AccountResponse = Field(alias="fromUser")
    to_user: AccountResponse = Field(alias="toUser")
    transferred_amount: MoneyOut = Field(alias="transferredAmount")


class BalanceResetResponse(BaseModel):
    """Response body for POST /balance-reset."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    job_id: str | None = Field(alias="jobId")
