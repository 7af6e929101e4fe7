"""FastAPI dependencies for authentication.

This module provides FastAPI dependency injection functions for:
- Reaching the wired authentication components
- Extracting and validating access tokens
- Getting the current authenticated user
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from boardauth.core.auth.schemas import TokenData
from boardauth.core.database import get_db
from boardauth.core.errors import ForbiddenError, UnauthorizedError
from boardauth.core.wiring import AuthComponents
from boardauth.modules.users.models import User
from boardauth.modules.users.repos import UserRepository


# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)

DBSession = Annotated[AsyncSession, Depends(get_db)]


def get_components(request: Request) -> AuthComponents:
    """Return the components wired onto the application."""
    return request.app.state.components


Components = Annotated[AuthComponents, Depends(get_components)]


async def get_token_data(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    components: Components,
) -> TokenData:
    """Extract and validate token data from the Authorization header.

    Args:
        credentials: Bearer token credentials from the request
        components: Wired authentication components

    Returns:
        Decoded token data

    Raises:
        UnauthorizedError: If token is missing or invalid
    """
    if not credentials:
        raise UnauthorizedError(
            "Missing authentication token",
            error_code="missing_token",
        )

    token_data = components.tokens.verify(credentials.credentials)
    if not token_data:
        raise UnauthorizedError(
            "Invalid or expired token",
            error_code="invalid_token",
        )

    return token_data


async def _load_user(db: AsyncSession, subject: str) -> User | None:
    try:
        user_id = UUID(subject)
    except ValueError:
        return None
    return await UserRepository(db).get_by_id(user_id)


async def get_current_user(
    token_data: Annotated[TokenData, Depends(get_token_data)],
    db: DBSession,
) -> User:
    """Get the currently authenticated user.

    Args:
        token_data: Validated token data
        db: Database session

    Returns:
        The authenticated user

    Raises:
        UnauthorizedError: If user not found
        ForbiddenError: If the user is deactivated
    """
    user = await _load_user(db, token_data.subject)

    if not user:
        raise UnauthorizedError(
            "User not found",
            error_code="user_not_found",
        )

    if not user.is_active:
        raise ForbiddenError(
            "User account is deactivated",
            error_code="user_inactive",
        )

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
