#!/usr/bin/env python3
"""
Demo seed script — populates the database with sample accounts for demos.

!! NOT FOR PRODUCTION !!
This script creates users with known passwords and hands them opening
balances. It is intended ONLY for local demos and frontend development.

Usage:
    # With the API server running on localhost:8000:
    python demo/seed.py

    # Reset the database and re-seed:
    python demo/seed.py --reset

    # Custom server URL:
    python demo/seed.py --base-url http://localhost:9000

    # Queue a balance reset after seeding (needs the worker running):
    python demo/seed.py --request-reset

Login credentials after seeding:
    ┌──────────┬──────────────────────────┬───────────────┬──────────┐
    │ Login    │ Email                    │ Password      │ Opening  │
    ├──────────┼──────────────────────────┼───────────────┼──────────┤
    │ alice    │ alice.chen@example.com   │ AliceDemo123! │  $850.00 │
    │ bob      │ bob.martinez@example.com │ BobDemo123!   │ $1200.00 │
    │ carol    │ carol.nguyen@example.com │ CarolDemo123! │ $3200.00 │
    │ dave     │ dave.johnson@example.com │ DaveDemo123!  │  $600.00 │
    │ erin     │ erin.patel@example.com   │ ErinDemo123!  │ $2500.00 │
    └──────────┴──────────────────────────┴───────────────┴──────────┘
"""

import argparse
import asyncio
import os
from decimal import Decimal

import httpx

BASE_URL = "http://localhost:8000"

# ---------------------------------------------------------------------------
# Demo users
# ---------------------------------------------------------------------------

USERS = [
    {
        "login": "alice",
        "email": "alice.chen@example.com",
        "password": "AliceDemo123!",
        "age": 34,
        "description": "Alice Chen",
        "opening_balance": Decimal("850.00"),
    },
    {
        "login": "bob",
        "email": "bob.martinez@example.com",
        "password": "BobDemo123!",
        "age": 41,
        "description": "Bob Martinez",
        "opening_balance": Decimal("1200.00"),
    },
    {
        "login": "carol",
        "email": "carol.nguyen@example.com",
        "password": "CarolDemo123!",
        "age": 29,
        "description": "Carol Nguyen",
        "opening_balance": Decimal("3200.00"),
    },
    {
        "login": "dave",
        "email": "dave.johnson@example.com",
        "password": "DaveDemo123!",
        "age": 52,
        "description": "Dave Johnson",
        "opening_balance": Decimal("600.00"),
    },
    {
        "login": "erin",
        "email": "erin.patel@example.com",
        "password": "ErinDemo123!",
        "age": 23,
        "description": "Erin Patel",
        "opening_balance": Decimal("2500.00"),
    },
]

# (from, to, amount): the last one is meant to be declined
TRANSFERS = [
    ("alice", "bob", "125.50"),
    ("carol", "alice", "400.00"),
    ("bob", "dave", "33.33"),
    ("erin", "carol", "999.99"),
    ("dave", "erin", "0.01"),
    ("dave", "alice", "5000.00"),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client: httpx.AsyncClient, user: dict) -> str:
    """Register a user, falling back to login if they already exist. Returns a JWT."""
    resp = await client.post(f"{BASE_URL}/users/register", json={
        "login": user["login"],
        "email": user["email"],
        "password": user["password"],
        "age": user["age"],
        "description": user["description"],
    })
    if resp.status_code == 409:
        resp = await client.post(f"{BASE_URL}/users/login", json={
            "login": user["login"],
            "password": user["password"],
        })
    resp.raise_for_status()
    return resp.json()["accessToken"]


async def do_transfer(client: httpx.AsyncClient, token: str,
                      from_login: str, to_login: str, amount: str) -> httpx.Response:
    return await client.post(
        f"{BASE_URL}/balance/transfer",
        json={"from": from_login, "to": to_login, "amount": amount},
        headers=auth_header(token),
    )


async def get_balances(client: httpx.AsyncClient, token: str) -> dict[str, float]:
    resp = await client.get(
        f"{BASE_URL}/users",
        params={"limit": 100},
        headers=auth_header(token),
    )
    resp.raise_for_status()
    return {item["login"]: item["balance"] for item in resp.json()["items"]}


async def fund_accounts() -> None:
    """Write opening balances directly to the database.

    There is no deposit endpoint; balances only ever move between accounts
    or get zeroed by the reset job, so the demo money is put in place here.
    """
    from balance_api.config import settings
    from balance_api.database import Database
    from balance_api.repositories import account_repository

    database = Database(settings.DATABASE_URL, settings.DB_LOCK_TIMEOUT_SECONDS)
    try:
        async with database.transaction() as session:
            funded = []
            for user in USERS:
                account = await account_repository.find_by_login(
                    session, user["login"], with_lock=True
                )
                if account is None:
                    continue
                account.balance = user["opening_balance"]
                funded.append(account)
            await account_repository.save_all(session, funded)
    finally:
        await database.dispose()


async def seed(base_url: str, request_reset: bool) -> None:
    global BASE_URL
    BASE_URL = base_url

    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    async with httpx.AsyncClient(timeout=10.0) as client:
        print("Registering users...")
        tokens = {}
        for user in USERS:
            tokens[user["login"]] = await register(client, user)
            log(f"{user['login']} ({user['email']})")

        print("\nFunding opening balances...")
        await fund_accounts()
        for user in USERS:
            log(f"{user['login']}: ${user['opening_balance']}")

        print("\nRunning sample transfers...")
        for from_login, to_login, amount in TRANSFERS:
            resp = await do_transfer(client, tokens[from_login], from_login, to_login, amount)
            body = resp.json()
            if resp.status_code == 200:
                log(f"{from_login} -> {to_login}: ${amount}")
            else:
                log(f"{from_login} -> {to_login}: ${amount} declined ({body.get('detail')})")

        print("\nBalances:")
        balances = await get_balances(client, tokens[USERS[0]["login"]])
        for login, balance in sorted(balances.items()):
            log(f"{login:<10s} ${balance:,.2f}")
        log(f"{'total':<10s} ${sum(balances.values()):,.2f}")

        if request_reset:
            print("\nRequesting balance reset...")
            resp = await client.post(
                f"{BASE_URL}/balance-reset",
                headers=auth_header(tokens[USERS[0]["login"]]),
            )
            resp.raise_for_status()
            body = resp.json()
            log(f"{body['message']} (job {body['jobId']})")

    print("\n========================================")
    print("  Seed complete")
    print("========================================")
    print(f"\n  {'Login':<10s} {'Password':<20s}")
    print(f"  {'─' * 10} {'─' * 20}")
    for user in USERS:
        print(f"  {user['login']:<10s} {user['password']:<20s}")
    print()


def reset_database() -> None:
    """Delete the SQLite database file so the server recreates it on restart."""
    db_path = os.path.join(os.path.dirname(__file__), "..", "data", "balance.db")
    db_path = os.path.normpath(db_path)

    if os.path.exists(db_path):
        os.remove(db_path)
        print(f"\n  Deleted {db_path}")
        print("  Restart the server to recreate empty tables.\n")
    else:
        print(f"\n  No database found at {db_path}\n")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Demo seed script — NOT FOR PRODUCTION",
        epilog="Creates sample users, opening balances and transfers for demos.",
    )
    parser.add_argument(
        "--base-url", default="http://localhost:8000",
        help="Base URL of the running API (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--reset", action="store_true",
        help="Delete the database file and exit (restart server to recreate)",
    )
    parser.add_argument(
        "--request-reset", action="store_true",
        help="Queue a balance reset once seeding is done",
    )
    args = parser.parse_args()

    if args.reset:
        reset_database()
        return

    await seed(args.base_url, args.request_reset)


if __name__ == "__main__":
    asyncio.run(main())
