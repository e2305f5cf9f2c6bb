"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. Other modules can import from balance_api.models directly
"""

from balance_api.models.account import Account  # noqa: F401
