"""Pydantic schemas for registration, login and user profiles.

Learn: request schemas only check shape; normalisation (trim + lowercase
email) happens here too so the service and the uniqueness constraint
always see the canonical form. No response schema has a password field.
"""

import re
import uuid
from datetime import datetime

from pydantic import Field, field_validator

from plannora.schemas.base import CamelModel

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class _Credentials(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)

    @field_validator("email")
    @classmethod
    def normalize_email_field(cls, v: str) -> str:
        return normalize_email(v)


class RegisterRequest(_Credentials):
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=256)

    @field_validator("email")
    @classmethod
    def check_email_format(cls, v: str) -> str:
        if not EMAIL_RE.match(normalize_email(v)):
            raise ValueError("Please provide a valid email address")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class LoginRequest(_Credentials):
    pass


class UserRead(CamelModel):
    id: uuid.UUID
    email: str
    name: str
    created_at: datetime


class AuthResponse(UserRead):
    """User profile plus the session token (also set as a cookie)."""
    token: str
