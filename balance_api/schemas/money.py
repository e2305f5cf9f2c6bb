"""
Money field types for request/response schemas.

Balances are Decimals internally and go over the wire as JSON numbers
with at most two decimal places (66.67, not "66.67").
"""

from decimal import Decimal
from typing import Annotated

from pydantic import Field, PlainSerializer

from balance_api.money import MAX_DIGITS

MoneyOut = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

# >= 0.01, no digits past the cent, and small enough to store as cents;
# anything else is rejected with 400 before our code runs
TransferAmount = Annotated[
    Decimal,
    Field(
        ge=Decimal("0.01"),
        max_digits=MAX_DIGITS,
        decimal_places=2,
        allow_inf_nan=False,
    ),
]
