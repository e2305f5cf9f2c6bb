"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like InsufficientFundsError)
without importing HTTP concepts. The handler layer then translates these
into HTTP responses with a consistent {"detail", "error_type"} body.

Exception hierarchy:
    BalanceAPIError (base)
    ├── InvalidRequestError      — malformed or self-referential input (400)
    ├── UnauthorizedAccessError  — acting on another user's account (403)
    ├── AccountNotFoundError     — referenced login doesn't exist (404)
    ├── InsufficientFundsError   — transfer larger than the sender's balance (400)
    ├── DuplicateLoginError      — registering a login that's taken (409)
    ├── DuplicateEmailError      — registering an email that's taken (409)
    └── InvalidCredentialsError  — wrong login or password (401)

None of these are retried. Storage errors are never wrapped: they reach
the caller as the SQLAlchemy exception the driver raised. is_transient()
tells the two storage cases apart:
  - transient (lock timeout, deadlock, serialization failure, lost
    connection): the caller may retry with backoff, HTTP 503
  - anything else: fatal, left to the default 500 handler
"""

import logging
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, OperationalError

from balance_api.money import format_money

logger = logging.getLogger(__name__)

# SQLSTATEs that mean "try again": serialization_failure, deadlock_detected,
# lock_not_available (raised when lock_timeout expires).
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})

# SQLite reports lock waits that ran out of busy timeout with these messages.
_SQLITE_BUSY_MESSAGES = ("database is locked", "database table is locked", "database is busy")

RETRY_AFTER_SECONDS = 1


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class BalanceAPIError(Exception):
    """Base exception for all Balance API domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class InvalidRequestError(BalanceAPIError):
    """Raised for requests that can never succeed, e.g. a transfer to self."""


class AccountNotFoundError(BalanceAPIError):
    """Raised when a referenced account does not exist."""

    def __init__(self, login: str):
        self.login = login
        super().__init__(f"User with login {login} not found")


class InsufficientFundsError(BalanceAPIError):
    """
    Raised when a transfer would take the sender's balance below zero.

    Attributes:
        login: The account that lacks sufficient funds.
        available: The sender's balance at the time of the check.
        required: The amount the caller tried to move.
    """

    def __init__(self, login: str, available: Decimal, required: Decimal):
        self.login = login
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient funds. Available: ${format_money(available)}, "
            f"Required: ${format_money(required)}"
        )


class UnauthorizedAccessError(BalanceAPIError):
    """Raised when a caller tries to change an account that isn't theirs."""

    def __init__(self, detail: str = "You can only modify your own account"):
        super().__init__(detail)


class DuplicateLoginError(BalanceAPIError):
    """Raised when registering a login that's already in use."""

    def __init__(self, login: str):
        self.login = login
        super().__init__("User with this login already exists")


class DuplicateEmailError(BalanceAPIError):
    """Raised when registering an email that's already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("User with this email already exists")


class InvalidCredentialsError(BalanceAPIError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid credentials")


# ---------------------------------------------------------------------------
# Storage error classification
# ---------------------------------------------------------------------------

def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    # asyncpg exposes .sqlstate, psycopg exposes .pgcode / .sqlstate
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if isinstance(code, str):
            return code
    return None


def is_transient(exc: BaseException) -> bool:
    """
    True if `exc` is a storage failure that is safe to retry.

    Covers lock-wait timeouts, deadlocks and serialization failures
    (PostgreSQL SQLSTATE 40001 / 40P01 / 55P03), SQLite busy errors, and
    connections dropped mid-transaction.
    """
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated:
        return True
    if _sqlstate(exc) in TRANSIENT_SQLSTATES:
        return True
    if isinstance(exc, OperationalError):
        message = str(exc.orig).lower()
        return any(text in message for text in _SQLITE_BUSY_MESSAGES)
    return False


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _describe_validation_errors(errors: list[dict]) -> str:
    """
    One line naming every failed field, e.g.
    "amount: Input should be greater than or equal to 0.01; to: Field required".
    """
    parts = []
    for error in errors:
        # Drop the "body" / "query" prefix FastAPI adds to every location
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Each handler maps a domain exception to an HTTP status code and a
    consistent JSON body: {"detail": "...", "error_type": "..."}

    This is called once during app creation in main.py.
    """

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        return JSONResponse(
            status_code=400,
            content={
                "detail": _describe_validation_errors(errors),
                "error_type": "invalid_request",
                "errors": jsonable_encoder(errors),
            },
        )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(
        request: Request, exc: InvalidRequestError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": exc.detail, "error_type": "invalid_request"},
        )

    @app.exception_handler(AccountNotFoundError)
    async def account_not_found_handler(
        request: Request, exc: AccountNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={
                "detail": exc.detail,
                "error_type": "account_not_found",
                "login": exc.login,
            },
        )

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "detail": exc.detail,
                "error_type": "insufficient_funds",
                "available": format_money(exc.available),
                "required": format_money(exc.required),
            },
        )

    @app.exception_handler(UnauthorizedAccessError)
    async def unauthorized_access_handler(
        request: Request, exc: UnauthorizedAccessError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=403,
            content={"detail": exc.detail, "error_type": "unauthorized_access"},
        )

    @app.exception_handler(DuplicateLoginError)
    async def duplicate_login_handler(
        request: Request, exc: DuplicateLoginError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,  # Conflict: the resource already exists
            content={"detail": exc.detail, "error_type": "duplicate_login"},
        )

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email_handler(
        request: Request, exc: DuplicateEmailError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": "duplicate_email"},
        )

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"detail": exc.detail, "error_type": "invalid_credentials"},
        )

    @app.exception_handler(DBAPIError)
    async def storage_error_handler(
        request: Request, exc: DBAPIError
    ) -> JSONResponse:
        if not is_transient(exc):
            # Fatal storage errors are not ours to translate
            raise exc
        logger.warning(
            "Transient storage error on %s %s: %s",
            request.method,
            request.url.path,
            exc.orig,
        )
        return JSONResponse(
            status_code=503,
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
            content={
                "detail": "The request conflicted with concurrent activity; retry shortly",
                "error_type": "transient",
            },
        )
