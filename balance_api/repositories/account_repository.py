"""
Account store — explicit queries over the accounts table.

Every function takes an AsyncSession that is already inside a transaction
(see Database.transaction). Nothing here commits: the caller's scope
decides when the work becomes durable, so a batch of calls either lands
together or not at all.

Locking:
  find_by_login(..., with_lock=True) issues SELECT ... FOR UPDATE. On
  PostgreSQL the row stays locked until the surrounding transaction commits
  or rolls back, and any other transaction asking for the same lock waits.
  On SQLite the clause is dropped by the dialect; the write lock taken by
  BEGIN IMMEDIATE covers it instead.

"Not found" is returned as None, never raised; the caller decides whether
that's an error.
"""

from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from balance_api.models.account import Account
from balance_api.money import ZERO


async def find_by_login(
    session: AsyncSession,
    login: str,
    *,
    with_lock: bool = False,
) -> Account | None:
    """
    Look up an account by login.

    Args:
        session: Session inside the caller's transaction.
        login: The account's login.
        with_lock: Hold an exclusive row lock until the transaction ends.

    Returns:
        The Account, or None if no account has this login.
    """
    query = select(Account).where(Account.login == login)
    if with_lock:
        query = query.with_for_update()
        # A row already in the identity map would be returned as-is;
        # populate_existing makes the locked read refresh it from the store.
        query = query.execution_options(populate_existing=True)

    result = await session.execute(query)
    return result.scalar_one_or_none()


async def find_by_email(session: AsyncSession, email: str) -> Account | None:
    result = await session.execute(select(Account).where(Account.email == email))
    return result.scalar_one_or_none()


async def create(session: AsyncSession, account: Account) -> Account:
    """Insert a new account and flush so constraint violations surface here."""
    session.add(account)
    await session.flush()
    return account


async def save_all(session: AsyncSession, accounts: Iterable[Account]) -> list[Account]:
    """
    Persist a batch of (usually mutated) accounts in the caller's transaction.

    All rows are flushed together; if any write fails, the caller's
    transaction rolls the whole batch back.
    """
    accounts = list(accounts)
    session.add_all(accounts)
    await session.flush()
    return accounts


async def reset_all_balances(session: AsyncSession) -> int:
    """
    Set every account's balance to zero in a single UPDATE statement.

    Returns:
        The number of rows the statement touched.
    """
    result = await session.execute(
        update(Account)
        .values(balance=ZERO)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def list_accounts(
    session: AsyncSession,
    *,
    login: str | None = None,
    limit: int = 10,
    offset: int = 0,
) -> list[Account]:
    """List accounts ordered by login, optionally filtered to one login."""
    query = select(Account).order_by(Account.login).limit(limit).offset(offset)
    if login:
        query = query.where(Account.login == login)

    result = await session.execute(query)
    return list(result.scalars().all())


async def count_accounts(session: AsyncSession, *, login: str | None = None) -> int:
    query = select(func.count()).select_from(Account)
    if login:
        query = query.where(Account.login == login)

    result = await session.execute(query)
    return result.scalar_one()


async def delete(session: AsyncSession, account: Account) -> None:
    """Remove `account` and flush so the DELETE runs inside the caller's transaction."""
    await session.delete(account)
    await session.flush()
