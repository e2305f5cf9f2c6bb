"""
Tests for storage error classification and domain error messages.
"""

import sqlite3
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from balance_api.exceptions import (
    AccountNotFoundError,
    InsufficientFundsError,
    is_transient,
)


class TestIsTransient:

    def test_sqlite_locked(self):
        exc = OperationalError("UPDATE", {}, sqlite3.OperationalError("database is locked"))
        assert is_transient(exc)

    def test_postgres_deadlock(self):
        orig = SimpleNamespace(sqlstate="40P01")
        assert is_transient(OperationalError("UPDATE", {}, orig))

    def test_postgres_serialization_failure(self):
        orig = SimpleNamespace(pgcode="40001")
        assert is_transient(DBAPIError("UPDATE", {}, orig))

    def test_postgres_lock_timeout(self):
        orig = SimpleNamespace(sqlstate="55P03")
        assert is_transient(OperationalError("SELECT", {}, orig))

    def test_lost_connection(self):
        exc = DBAPIError("SELECT", {}, Exception("server closed"), connection_invalidated=True)
        assert is_transient(exc)

    def test_constraint_violation_is_fatal(self):
        exc = IntegrityError(
            "UPDATE", {}, sqlite3.IntegrityError("CHECK constraint failed")
        )
        assert not is_transient(exc)

    def test_other_operational_error_is_fatal(self):
        exc = OperationalError("SELECT", {}, sqlite3.OperationalError("no such table: accounts"))
        assert not is_transient(exc)

    def test_non_storage_error(self):
        assert not is_transient(RuntimeError("boom"))


class TestDomainErrors:

    def test_insufficient_funds_message(self):
        exc = InsufficientFundsError("alice", Decimal("5"), Decimal("10.5"))
        assert exc.detail == "Insufficient funds. Available: $5.00, Required: $10.50"

    def test_not_found_names_login(self):
        exc = AccountNotFoundError("ghost")
        assert exc.login == "ghost"
        assert exc.detail == "User with login ghost not found"
