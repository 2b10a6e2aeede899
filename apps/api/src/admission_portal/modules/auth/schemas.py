"""Authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from admission_portal.modules.users.models import UserRole


class RegisterRequest(BaseModel):
    """Self-registration. The username is the applicant's email address."""

    username: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    """Login request schema."""

    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Public view of an account. Never includes the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    username: str
    role: UserRole
    created_at: datetime


class AuthResponse(BaseModel):
    """Returned by register and login. The token is also set as a cookie."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user: UserResponse
    token: str
    token_type: str = "bearer"
