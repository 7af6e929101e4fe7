"""Authentication schemas for token handling."""

from datetime import datetime

from pydantic import BaseModel, Field

from boardauth.modules.users.schemas import UserResponse


class TokenData(BaseModel):
    """Claims extracted from a verified access token.

    Attributes:
        subject: Identity the token was issued for (the user id)
        exp: Token expiration time
        iat: Issue time, if present
        jti: Unique token id, if present
        type: Token type (always "access" for accepted tokens)
    """

    subject: str
    exp: datetime
    iat: datetime | None = None
    jti: str | None = None
    type: str = "access"


class LoginRequest(BaseModel):
    """Credentials for a local login."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SessionEstablishRequest(BaseModel):
    """Proof of a refresh session used to (re)issue the cookie."""

    session_id: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)


class AccessTokenResponse(BaseModel):
    """Response for refresh: a fresh access token and rotated session."""

    access_token: str
    access_token_expires_at: datetime
    token_type: str = "bearer"
    expires_in: int
    refresh_session_id: str
    refresh_token: str
    refresh_token_expires_at: datetime
    user: UserResponse


class LoginResponse(AccessTokenResponse):
    """Response for a successful login."""
