"""
Test fixtures for the Balance API test suite.

This module provides shared fixtures used across all test files:

  - database: A fresh file-backed SQLite database for each test
  - create_account / balance_of: Seed an account, read a balance back
  - job_queue: An in-memory stand-in for the arq queue that records jobs
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Test client with a registered user and JWT

Key design decisions:
  - A temporary SQLite *file* (not :memory:) is used so that concurrent
    tests get one connection per transaction, exactly like production,
    and BEGIN IMMEDIATE locking is really exercised.
  - We override the get_database / get_job_queue dependencies, so the
    application code runs unchanged. The app lifespan never runs under
    ASGITransport, so no Redis is needed.
  - authenticated_client registers through the real endpoint, so it
    exercises the real registration flow (not just DB inserts).
"""

import os

# Must be set before balance_api.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from balance_api.database import Database, get_database
from balance_api.dependencies import get_job_queue
from balance_api.main import app
from balance_api.models.account import Account
from balance_api.repositories import account_repository


class RecordingJobQueue:
    """Records enqueued jobs and hands out sequential ids."""

    def __init__(self):
        self.jobs: list[tuple[str, dict]] = []

    async def enqueue(self, job_name: str, payload: dict) -> str | None:
        self.jobs.append((job_name, payload))
        return str(len(self.jobs))


@pytest_asyncio.fixture
async def database(tmp_path):
    """A Database over a fresh SQLite file with all tables created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def create_account(database):
    """
    Factory fixture: insert an account with a given balance.

    Skips password hashing; accounts made this way can't log in, which is
    fine for engine-level tests.
    """

    async def _create(login: str, balance: str = "0.00") -> Account:
        async with database.transaction() as session:
            return await account_repository.create(
                session,
                Account(
                    login=login,
                    email=f"{login}@example.com",
                    hashed_password="not-a-real-hash",
                    age=30,
                    balance=Decimal(balance),
                ),
            )

    return _create


@pytest_asyncio.fixture
async def balance_of(database):
    """Factory fixture: the committed balance of a login, read fresh."""

    async def _balance_of(login: str) -> Decimal:
        async with database.transaction(read_only=True) as session:
            account = await account_repository.find_by_login(session, login)
        return account.balance

    return _balance_of


@pytest_asyncio.fixture
async def job_queue():
    return RecordingJobQueue()


@pytest_asyncio.fixture
async def client(database, job_queue):
    """
    Async HTTP test client with the test database and queue injected.
    """
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_job_queue] = lambda: job_queue

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(client):
    """
    Test client with a registered user ("testuser") and JWT token.
    """
    response = await client.post(
        "/users/register",
        json={
            "login": "testuser",
            "email": "testuser@example.com",
            "password": "SecurePass123!",
            "age": 30,
        },
    )
    assert response.status_code == 201, f"Register failed: {response.text}"
    token = response.json()["accessToken"]
    client.headers["Authorization"] = f"Bearer {token}"
    return client
