"""
Password hashing and access tokens.

Passwords are stored as Argon2 hashes via passlib. Access tokens are HS256
JWTs (python-jose) whose "sub" claim is the account login; nothing about a
session is kept server-side, so a token stays valid until its "exp".
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from balance_api.config import settings

# deprecated="auto" lets a future scheme take over while old hashes still verify
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(login: str, expires_delta: timedelta | None = None) -> str:
    """
    Issue a signed token for `login`.

    Args:
        login: Stored as the "sub" claim.
        expires_delta: Lifetime of the token; settings.ACCESS_TOKEN_EXPIRE_MINUTES
            when omitted. A negative delta yields an already-expired token.
    """
    lifetime = expires_delta
    if lifetime is None:
        lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {"sub": login, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def login_from_token(token: str) -> str | None:
    """
    The login a token was issued for, or None if the token is expired,
    forged, malformed or carries no subject.
    """
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    login = claims.get("sub")
    return login if isinstance(login, str) and login else None
