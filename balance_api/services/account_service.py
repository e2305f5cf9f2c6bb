"""
Account service — profile queries and changes used by the users endpoints.

Nothing here changes a balance. Reads for financial decisions happen
inside the transfer engine's own transaction, never through this module.

Profile changes (update, delete) follow the same order of checks:
  1. The target login must exist (404)
  2. It must be the caller's own account (403)
  3. Field-level rules, e.g. a new email must not belong to anyone else (409)
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from balance_api.exceptions import (
    AccountNotFoundError,
    DuplicateEmailError,
    UnauthorizedAccessError,
)
from balance_api.models.account import Account
from balance_api.repositories import account_repository
from balance_api.security import hash_password

logger = logging.getLogger(__name__)

# Fields that can't be cleared: a None for one of these means "leave it"
_NOT_NULLABLE = ("email", "password", "age")


async def list_accounts(
    db: AsyncSession,
    login: str | None = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Account], int]:
    """
    One page of accounts plus the total number of matches.

    Args:
        login: If given (and not blank), only this login is returned.
        limit: Max number of results.
        offset: Number of results to skip.
    """
    if login is not None and not login.strip():
        login = None

    items = await account_repository.list_accounts(
        db, login=login, limit=limit, offset=offset
    )
    total = await account_repository.count_accounts(db, login=login)
    return items, total


async def _get_own_account(db: AsyncSession, caller_login: str, login: str) -> Account:
    account = await account_repository.find_by_login(db, login, with_lock=True)
    if account is None:
        raise AccountNotFoundError(login)
    if account.login != caller_login:
        raise UnauthorizedAccessError()
    return account


async def update_account(
    db: AsyncSession,
    caller_login: str,
    login: str,
    updates: dict[str, Any],
) -> Account:
    """
    Apply a partial profile update to `login`.

    Args:
        caller_login: The authenticated account making the change.
        login: The account to change.
        updates: Only the fields the client sent: any of email, password,
            age, description. A new password is hashed before it's stored.

    Raises:
        AccountNotFoundError: `login` doesn't exist.
        UnauthorizedAccessError: `login` isn't the caller's account.
        DuplicateEmailError: The new email belongs to another account.
    """
    account = await _get_own_account(db, caller_login, login)

    changes = {
        field: value
        for field, value in updates.items()
        if value is not None or field not in _NOT_NULLABLE
    }

    new_email = changes.get("email")
    if new_email is not None and new_email != account.email:
        existing = await account_repository.find_by_email(db, new_email)
        if existing is not None and existing.login != account.login:
            raise DuplicateEmailError(new_email)

    password = changes.pop("password", None)
    if password is not None:
        account.hashed_password = hash_password(password)

    for field, value in changes.items():
        setattr(account, field, value)

    await account_repository.save_all(db, [account])
    logger.info("Updated account %s (%s)", login, ", ".join(sorted(updates)) or "no fields")
    return account


async def delete_account(db: AsyncSession, caller_login: str, login: str) -> Account:
    """
    Delete `login`'s account and return it as it was.

    The row is locked first, so a transfer touching it either finishes
    before the delete or fails with AccountNotFoundError after it.

    Raises:
        AccountNotFoundError: `login` doesn't exist.
        UnauthorizedAccessError: `login` isn't the caller's account.
    """
    account = await _get_own_account(db, caller_login, login)
    await account_repository.delete(db, account)
    logger.info("Deleted account %s", login)
    return account
