"""Pydantic schemas for User and Auth."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from intranet.domain.models.enums import UserRole
from intranet.domain.schemas.common import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserSummary(CamelModel):
    id: int
    name: Optional[str] = None
    email: str
    role: UserRole


class UserRead(UserSummary):
    is_active: bool
    created_at: Optional[datetime] = None


class SignInRequest(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)


class VerifyRequest(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    token: str = Field(min_length=1, max_length=128)


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead


class RoleUpdate(CamelModel):
    role: UserRole


class RoleInfo(CamelModel):
    value: UserRole
    label: str
    level: int
