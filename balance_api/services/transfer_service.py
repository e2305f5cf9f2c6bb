"""
Transfer service — atomic movement of funds between two accounts.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. Given two logins and an
amount it either moves the amount from one balance to the other, leaving
the total across both accounts unchanged, or fails with nothing changed.

Steps (all of 2-6 inside ONE transaction at REPEATABLE READ or stronger):
  1. Reject self-transfers and malformed amounts before touching storage
  2. Lock both account rows, lower login first
  3. Fail with AccountNotFoundError if either row is missing
  4. Fail with InsufficientFundsError if the sender can't cover the amount
  5. Debit the sender, credit the receiver, round both to the cent
  6. Save both rows in one batch
  7. Commit (Database.transaction does this on the way out)

Atomicity:
  Any exception raised after the transaction begins (including the domain
  errors in steps 3-4) rolls the whole transaction back, releasing both
  locks. Nothing is retried here: lock timeouts and deadlocks reach the
  caller unchanged, and exceptions.is_transient() says whether a retry
  makes sense.

Deadlock prevention:
  When a transfer involves two accounts, we always lock them in a
  consistent order (sorted by login). This prevents the classic deadlock
  scenario where:
    - Transfer A->B locks A, then tries to lock B
    - Transfer B->A locks B, then tries to lock A
  By always locking the lower login first, any set of transfers over
  overlapping pairs requests locks in the same global order, so no cycle
  of waits can form.

Isolation:
  REPEATABLE READ guarantees the balance read in step 4 is still the
  balance being written in step 5; no other transaction's write to either
  row can become visible in between.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from balance_api.database import Database, IsolationLevel
from balance_api.exceptions import (
    AccountNotFoundError,
    InsufficientFundsError,
    InvalidRequestError,
)
from balance_api.models.account import Account
from balance_api.money import has_at_most_two_places, quantize
from balance_api.repositories import account_repository

logger = logging.getLogger(__name__)

TRANSFER_ISOLATION = IsolationLevel.REPEATABLE_READ


@dataclass(frozen=True)
class TransferResult:
    """Both accounts as committed, plus the amount that moved."""
    from_account: Account
    to_account: Account
    transferred_amount: Decimal


def _validate(from_login: str, to_login: str, amount: Decimal) -> None:
    if from_login == to_login:
        raise InvalidRequestError("Cannot transfer money to yourself")
    if not isinstance(amount, Decimal):
        raise InvalidRequestError("Amount must be a Decimal")
    if not has_at_most_two_places(amount):
        raise InvalidRequestError("Amount must have at most 2 decimal places")
    if amount <= 0:
        raise InvalidRequestError("Amount must be positive")


async def transfer(
    database: Database,
    from_login: str,
    to_login: str,
    amount: Decimal,
) -> TransferResult:
    """
    Move `amount` from `from_login`'s balance to `to_login`'s balance.

    Args:
        database: Where the accounts live.
        from_login: Sender.
        to_login: Receiver; must differ from the sender.
        amount: Positive Decimal with at most two decimal places.

    Returns:
        TransferResult with both accounts' post-transfer state.

    Raises:
        InvalidRequestError: Self-transfer or malformed amount (no storage access).
        AccountNotFoundError: Either login doesn't exist (names the missing one).
        InsufficientFundsError: Sender's balance is below `amount`.
        sqlalchemy.exc.DBAPIError: Storage failures, unchanged.
    """
    _validate(from_login, to_login, amount)

    logger.debug("Transfer %s -> %s of %s requested", from_login, to_login, amount)

    async with database.transaction(TRANSFER_ISOLATION) as session:
        # Lock accounts in consistent order (sorted by login) to prevent deadlocks
        first_login, second_login = sorted([from_login, to_login])

        # Both lookups run before either is checked, so both locks are
        # requested in order even when one row turns out to be missing.
        first = await account_repository.find_by_login(
            session, first_login, with_lock=True
        )
        second = await account_repository.find_by_login(
            session, second_login, with_lock=True
        )

        # Map back to sender/receiver
        locked = {first_login: first, second_login: second}
        sender = locked[from_login]
        receiver = locked[to_login]

        if sender is None:
            raise AccountNotFoundError(from_login)
        if receiver is None:
            raise AccountNotFoundError(to_login)

        if sender.balance < amount:
            logger.warning(
                "Transfer %s -> %s declined: insufficient funds (available %s, required %s)",
                from_login,
                to_login,
                sender.balance,
                amount,
            )
            raise InsufficientFundsError(
                login=from_login,
                available=sender.balance,
                required=amount,
            )

        sender.balance = quantize(sender.balance - amount)
        receiver.balance = quantize(receiver.balance + amount)

        await account_repository.save_all(session, [sender, receiver])

    logger.info("Transferred %s from %s to %s", amount, from_login, to_login)

    return TransferResult(
        from_account=sender,
        to_account=receiver,
        transferred_amount=quantize(amount),
    )
