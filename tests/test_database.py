"""
Tests for the transaction scope and the account store functions.

These tests verify:
  - Database.transaction commits on success and rolls back on error
  - Isolation levels are translated to what SQLite accepts
  - The CHECK constraint rejects a negative balance
  - save_all writes a batch in the caller's transaction
  - Read-only scopes don't wait for the SQLite write lock
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from balance_api.database import Database, IsolationLevel
from balance_api.exceptions import is_transient
from balance_api.models.account import Account
from balance_api.repositories import account_repository


class TestTransactionScope:

    async def test_commits_on_success(self, database, create_account, balance_of):
        await create_account("alice", "1.00")

        async with database.transaction(IsolationLevel.REPEATABLE_READ) as session:
            account = await account_repository.find_by_login(session, "alice", with_lock=True)
            account.balance = Decimal("2.00")

        assert await balance_of("alice") == Decimal("2.00")

    async def test_rolls_back_on_error(self, database, create_account, balance_of):
        await create_account("alice", "1.00")

        with pytest.raises(ValueError):
            async with database.transaction() as session:
                account = await account_repository.find_by_login(session, "alice")
                account.balance = Decimal("2.00")
                await account_repository.save_all(session, [account])
                raise ValueError("abort")

        assert await balance_of("alice") == Decimal("1.00")

    async def test_sqlite_isolation_mapping(self, database):
        assert database.dialect_name == "sqlite"
        assert database.dialect_isolation_level(IsolationLevel.REPEATABLE_READ) == "SERIALIZABLE"
        assert database.dialect_isolation_level(IsolationLevel.READ_COMMITTED) == "SERIALIZABLE"
        assert (
            database.dialect_isolation_level(IsolationLevel.READ_UNCOMMITTED)
            == "READ UNCOMMITTED"
        )


class TestAccountStore:

    async def test_find_missing_returns_none(self, database):
        async with database.transaction() as session:
            assert await account_repository.find_by_login(session, "nobody") is None
            assert await account_repository.find_by_login(session, "nobody", with_lock=True) is None

    async def test_negative_balance_rejected_by_constraint(self, database, create_account, balance_of):
        await create_account("alice", "1.00")

        with pytest.raises(IntegrityError):
            async with database.transaction() as session:
                account = await account_repository.find_by_login(session, "alice")
                account.balance = Decimal("-0.01")
                await account_repository.save_all(session, [account])

        assert await balance_of("alice") == Decimal("1.00")

    async def test_save_all_writes_batch(self, database, create_account, balance_of):
        await create_account("alice", "1.00")
        await create_account("bob", "2.00")

        async with database.transaction() as session:
            alice = await account_repository.find_by_login(session, "alice")
            bob = await account_repository.find_by_login(session, "bob")
            alice.balance = Decimal("3.00")
            bob.balance = Decimal("0.00")
            saved = await account_repository.save_all(session, [alice, bob])

        assert [a.login for a in saved] == ["alice", "bob"]
        assert await balance_of("alice") == Decimal("3.00")
        assert await balance_of("bob") == Decimal("0.00")


class TestReadOnlyScope:

    async def test_read_does_not_queue_behind_a_writer(self, tmp_path):
        """A writer holds the SQLite write lock; a read-only scope still reads at once."""
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'locks.db'}", lock_timeout_seconds=0.2)
        await database.create_all()
        try:
            async with database.transaction() as writer:
                await account_repository.create(
                    writer,
                    Account(login="alice", email="alice@example.com",
                            hashed_password="x", age=30, balance=Decimal("1.00")),
                )

            async with database.transaction() as writer:
                # BEGIN IMMEDIATE: this connection now owns the write lock
                alice = await account_repository.find_by_login(writer, "alice", with_lock=True)
                alice.balance = Decimal("2.00")
                await account_repository.save_all(writer, [alice])

                async with database.transaction(read_only=True) as reader:
                    seen = await account_repository.find_by_login(reader, "alice")
                    assert seen.balance == Decimal("1.00")

                # A second writer still has to wait and gives up after the timeout
                with pytest.raises(OperationalError) as exc_info:
                    async with database.transaction() as other_writer:
                        await account_repository.find_by_login(other_writer, "alice")
                assert is_transient(exc_info.value)
        finally:
            await database.dispose()
