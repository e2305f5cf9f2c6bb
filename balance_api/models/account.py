"""
Account model — a registered user together with their balance.

Each account has:
  - A login: the unique, immutable identifier (primary key)
  - Profile fields: email (unique), age, optional description
  - An Argon2 hash of the password (never the plaintext)
  - A balance: a non-negative Decimal with two places

Balance management:
  New accounts start at 0.00. After that the balance is changed by exactly
  two code paths: the transfer engine (two accounts at a time, under row
  locks) and the balance-reset job (every account at once).

  A CHECK constraint at the database level enforces that the balance can
  never go negative. The transfer engine checks before debiting; the
  constraint is the final safety net against bugs or race conditions.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from balance_api.database import Base
from balance_api.models.types import Money
from balance_api.money import ZERO


class Account(Base):
    __tablename__ = "accounts"

    # Database-level constraint: balance can never be negative
    __table_args__ = (
        CheckConstraint(
            "balance >= 0",
            name="ck_accounts_non_negative_balance",
        ),
    )

    login: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    age: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    # Stored as integer cents, read back as Decimal("12.34")
    balance: Mapped[Decimal] = mapped_column(
        Money,
        nullable=False,
        default=ZERO,
        server_default="0",
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Account login={self.login!r} balance={self.balance}>"
