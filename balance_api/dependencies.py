"""
FastAPI dependencies for authentication and job-queue access.

  get_current_account (JWT -> Account)   — every protected endpoint
  get_job_queue       (app -> JobQueue)  — endpoints that enqueue work

Both the Database and the JobQueue are created in the app lifespan and
stored on app.state; tests override the dependencies with their own.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from balance_api.database import Database, get_database
from balance_api.jobs.queue import JobQueue
from balance_api.models.account import Account
from balance_api.repositories import account_repository
from balance_api.security import login_from_token


# OAuth2PasswordBearer tells FastAPI where to look for the token:
# the "Authorization: Bearer <token>" header.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/users/login")


async def get_current_account(
    token: str = Depends(oauth2_scheme),
    database: Database = Depends(get_database),
) -> Account:
    """
    Extract and validate the JWT token, then return the matching Account.

    Raises:
        HTTPException 401: If the token is invalid or the login doesn't exist.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    login = login_from_token(token)
    if login is None:
        raise credentials_exception

    async with database.transaction(read_only=True) as session:
        account = await account_repository.find_by_login(session, login)

    if account is None:
        raise credentials_exception

    return account


def get_job_queue(request: Request) -> JobQueue:
    return request.app.state.job_queue
