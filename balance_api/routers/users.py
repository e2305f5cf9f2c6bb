"""
Users router — registration, login, account lookup and profile changes.

Endpoints:
  POST   /users/register — Register a new account and get a token (public)
  POST   /users/login    — Authenticate and get a token (public)
  GET    /users/me       — The authenticated account
  GET    /users          — Paginated account listing, optional login filter
  PATCH  /users/{login}  — Update your own profile fields
  DELETE /users/{login}  — Delete your own account

Plaintext passwords exist only in memory during request processing; they
are hashed before any database operation and never logged.
"""

from fastapi import APIRouter, Depends, Query, status

from balance_api.database import Database, get_database
from balance_api.dependencies import get_current_account
from balance_api.models.account import Account
from balance_api.schemas.account import (
    AccountPage,
    AccountResponse,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateAccountRequest,
)
from balance_api.services import account_service, auth_service

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(
    request: RegisterRequest,
    database: Database = Depends(get_database),
):
    """
    Register a new account with a zero balance.

    - **login**: At least 3 characters, unique
    - **email**: Valid email format, unique
    - **password**: At least 6 characters
    - **age** / **description**: Profile fields
    """
    async with database.transaction() as session:
        account, token = await auth_service.register(
            db=session,
            login=request.login,
            email=request.email,
            password=request.password,
            age=request.age,
            description=request.description,
        )

    return AuthResponse(user=AccountResponse.model_validate(account), access_token=token)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: LoginRequest,
    database: Database = Depends(get_database),
):
    """
    Authenticate with login and password.

    Returns a JWT bearer token that must be included in the Authorization
    header for all subsequent requests:

        Authorization: Bearer <token>
    """
    async with database.transaction(read_only=True) as session:
        account, token = await auth_service.login(
            db=session,
            login=request.login,
            password=request.password,
        )

    return AuthResponse(user=AccountResponse.model_validate(account), access_token=token)


@router.get(
    "/me",
    response_model=AccountResponse,
    summary="Get the authenticated account",
)
async def me(account: Account = Depends(get_current_account)):
    return account


@router.get(
    "",
    response_model=AccountPage,
    summary="List accounts",
)
async def list_accounts(
    login: str | None = Query(None, description="Only return this login"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    account: Account = Depends(get_current_account),
    database: Database = Depends(get_database),
):
    """List accounts ordered by login, with limit/offset pagination."""
    async with database.transaction(read_only=True) as session:
        items, total = await account_service.list_accounts(
            session, login=login, limit=limit, offset=offset
        )

    return AccountPage(
        items=[AccountResponse.model_validate(item) for item in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.patch(
    "/{login}",
    response_model=AccountResponse,
    summary="Update profile fields",
)
async def update_account(
    login: str,
    updates: UpdateAccountRequest,
    account: Account = Depends(get_current_account),
    database: Database = Depends(get_database),
):
    """
    Update your own profile: email, password, age and/or description.

    Only the fields sent are changed. Returns 404 if the login doesn't
    exist, 403 if it isn't yours, 409 if the new email is taken.
    """
    # model_dump(exclude_unset=True) only includes fields the client explicitly sent
    async with database.transaction() as session:
        updated = await account_service.update_account(
            session,
            caller_login=account.login,
            login=login,
            updates=updates.model_dump(exclude_unset=True),
        )

    return updated


@router.delete(
    "/{login}",
    response_model=AccountResponse,
    summary="Delete an account",
)
async def delete_account(
    login: str,
    account: Account = Depends(get_current_account),
    database: Database = Depends(get_database),
):
    """Delete your own account; the response is the account as it was."""
    async with database.transaction() as session:
        deleted = await account_service.delete_account(
            session, caller_login=account.login, login=login
        )

    return deleted
