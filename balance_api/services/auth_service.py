"""
Authentication service — register and login business logic.

Register flow:
  1. Reject a login or email that's already taken
  2. Hash the password with Argon2id
  3. Create the account with a zero balance
  4. Return a JWT token so the user is immediately logged in

Login flow:
  1. Look up the account by login
  2. Verify password against stored hash
  3. Return a JWT token

Login returns the same error for "wrong password" and "login not found"
to prevent user enumeration.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from balance_api.exceptions import (
    DuplicateEmailError,
    DuplicateLoginError,
    InvalidCredentialsError,
)
from balance_api.models.account import Account
from balance_api.money import ZERO
from balance_api.repositories import account_repository
from balance_api.security import create_access_token, hash_password, verify_password


async def register(
    db: AsyncSession,
    login: str,
    email: str,
    password: str,
    age: int,
    description: str | None = None,
) -> tuple[Account, str]:
    """
    Register a new account.

    Returns:
        Tuple of (Account instance, JWT token string).

    Raises:
        DuplicateLoginError: If the login is already registered.
        DuplicateEmailError: If the email is already registered.
    """
    if await account_repository.find_by_login(db, login) is not None:
        raise DuplicateLoginError(login)

    if await account_repository.find_by_email(db, email) is not None:
        raise DuplicateEmailError(email)

    account = await account_repository.create(
        db,
        Account(
            login=login,
            email=email,
            hashed_password=hash_password(password),
            age=age,
            description=description,
            balance=ZERO,
        ),
    )

    token = create_access_token(account.login)
    return account, token


async def login(
    db: AsyncSession,
    login: str,
    password: str,
) -> tuple[Account, str]:
    """
    Authenticate an account and return a JWT token.

    Raises:
        InvalidCredentialsError: If the login doesn't exist or password is wrong.
    """
    account = await account_repository.find_by_login(db, login)

    # Same error for both cases; prevents user enumeration
    if account is None:
        raise InvalidCredentialsError()

    if not verify_password(password, account.hashed_password):
        raise InvalidCredentialsError()

    token = create_access_token(account.login)
    return account, token
