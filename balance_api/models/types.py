"""
Custom column types.

Money stores a two-place Decimal as an integer number of cents. The
column is a 64-bit integer on every backend (BIGINT on PostgreSQL, INTEGER
on SQLite), so SQLite, which has no exact decimal type, never rounds
through a float, and `UPDATE ... SET balance = 0` stays a single cheap
statement.
"""

from decimal import Decimal

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator

from balance_api.money import from_cents, to_cents


class Money(TypeDecorator):
    """Decimal in Python, integer cents in the database."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_cents(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return from_cents(value)
