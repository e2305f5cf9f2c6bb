"""
Pydantic schemas for the users endpoints (register, login, profile, listing).

The password hash is never part of any response model.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from balance_api.schemas.money import MoneyOut


class RegisterRequest(BaseModel):
    """Request body for POST /users/register."""
    login: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    age: int = Field(ge=0)
    description: str | None = Field(default=None, max_length=1000)


class LoginRequest(BaseModel):
    """Request body for POST /users/login."""
    login: str
    password: str


class UpdateAccountRequest(BaseModel):
    """Request body for PATCH /users/{login} (all fields optional)."""
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=6)
    age: int | None = Field(None, ge=0)
    description: str | None = Field(None, max_length=1000)


class AccountResponse(BaseModel):
    """Public representation of an account."""
    login: str
    email: str
    age: int
    description: str | None
    balance: MoneyOut
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Response body for register/login — the account plus its JWT."""
    model_config = {"populate_by_name": True}

    user: AccountResponse
    access_token: str = Field(alias="accessToken")
    token_type: str = Field(default="bearer", alias="tokenType")


class AccountPage(BaseModel):
    """One page of GET /users."""
    items: list[AccountResponse]
    total: int
    limit: int
    offset: int
