"""
Account and token schemas.

UserResponse is what a member sees about themselves; UserPublicResponse is
the trimmed profile shown on club rosters and cached in Redis.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

USERNAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")

# (pattern, message) pairs every password has to satisfy
PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"\d"), "Password must contain at least one number"),
)


def _check_password_strength(v: str) -> str:
    for pattern, message in PASSWORD_RULES:
        if not pattern.search(v):
            raise ValueError(message)
    return v


# =============================================================================
# Accounts
# =============================================================================


class UserCreate(BaseModel):
    """Registration payload. Usernames are stored lowercase."""

    email: EmailStr = Field(..., examples=["ada@example.com"])
    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Starts with a letter; letters, digits and underscores only",
        examples=["ada", "book_worm42"],
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="8+ characters with upper and lower case letters and a digit",
        examples=["SecurePass123"],
    )
    full_name: str | None = Field(default=None, max_length=255, examples=["Ada Lovelace"])
    location: str | None = Field(default=None, max_length=255, examples=["London"])

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "Username must start with a letter and contain only "
                "letters, numbers, and underscores"
            )
        return v.lower()

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_password_strength(v)


class UserUpdate(BaseModel):
    """Profile edits. Omitted fields are left alone."""

    full_name: str | None = Field(default=None, max_length=255)
    bio: str | None = Field(default=None, max_length=500)
    avatar_url: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=255)


class UserPublicResponse(BaseModel):
    id: int
    username: str
    full_name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    location: str | None = None
    created_at: datetime = Field(..., description="When the member signed up")

    model_config = ConfigDict(from_attributes=True)


class UserResponse(UserPublicResponse):
    """The caller's own account, including email and status."""

    email: EmailStr
    is_active: bool

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "email": "ada@example.com",
                "username": "ada",
                "full_name": "Ada Lovelace",
                "location": "London",
                "is_active": True,
                "created_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return _check_password_strength(v)


# =============================================================================
# Tokens
# =============================================================================


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    refresh_token: str | None = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str | None = None
