"""User request/response schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from boardauth.core.constants import (
    MAX_PASSWORD_LENGTH,
    MAX_USERNAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    MIN_USERNAME_LENGTH,
)


class UserCreate(BaseModel):
    """Data required to create a local account."""

    username: str = Field(
        min_length=MIN_USERNAME_LENGTH,
        max_length=MAX_USERNAME_LENGTH,
        pattern=r"^[A-Za-z0-9_.-]+$",
    )
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    email: str | None = None
    display_name: str | None = None
    role: str = "user"


class UserResponse(BaseModel):
    """Public view of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str | None = None
    display_name: str | None = None
    role: str
    is_active: bool
