"""Authentication API routes.

Provides endpoints for:
- Login/logout
- Silent access token refresh through the refresh cookie
- Re-establishing the refresh cookie from a session id and token
- The current user's profile
"""

import structlog
from fastapi import APIRouter, Request, Response, status

from boardauth.core.auth.dependencies import Components, CurrentUser
from boardauth.core.auth.schemas import (
    AccessTokenResponse,
    LoginRequest,
    LoginResponse,
    SessionEstablishRequest,
)
from boardauth.core.auth.service import AuthSvc, IssuedTokens
from boardauth.core.constants import MAX_USER_AGENT_LENGTH
from boardauth.core.errors import UnauthorizedError, problem_response
from boardauth.core.logging import get_client_ip
from boardauth.modules.users.schemas import UserResponse


logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


def _get_client_info(request: Request) -> tuple[str | None, str | None]:
    """Extract client info from request."""
    user_agent = request.headers.get("User-Agent")
    if user_agent:
        user_agent = user_agent[:MAX_USER_AGENT_LENGTH]
    return user_agent, get_client_ip(request)


def _token_payload(issued: IssuedTokens) -> dict[str, object]:
    return {
        "access_token": issued.access_token,
        "access_token_expires_at": issued.access_token_expires_at,
        "expires_in": issued.expires_in,
        "refresh_session_id": issued.session_id,
        "refresh_token": issued.refresh_token,
        "refresh_token_expires_at": issued.refresh_token_expires_at,
        "user": UserResponse.model_validate(issued.user),
    }


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login with username and password",
    description="Authenticate with username and password. Sets the refresh session cookie.",
)
async def login(
    data: LoginRequest,
    service: AuthSvc,
    components: Components,
    request: Request,
    response: Response,
) -> LoginResponse:
    """Login with username and password."""
    user_agent, ip_address = _get_client_info(request)

    issued = await service.login(
        username=data.username,
        password=data.password,
        user_agent=user_agent,
        ip_address=ip_address,
    )

    components.cookies.set(response, issued.session_id, issued.refresh_token_expires_at)
    return LoginResponse(**_token_payload(issued))


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    summary="Refresh access token",
    description=(
        "Use the refresh session cookie to obtain a new access token. "
        "The refresh token is rotated and the cookie re-set."
    ),
)
async def refresh(
    service: AuthSvc,
    components: Components,
    request: Request,
    response: Response,
) -> Response | AccessTokenResponse:
    """Refresh the access token from the refresh cookie."""
    session_id = components.cookies.read(request)

    try:
        issued = await service.refresh(session_id)
    except UnauthorizedError as exc:
        logger.info("refresh_denied", error_code=exc.error_code)
        denied = problem_response(request, exc)
        components.cookies.clear(denied)
        return denied

    components.cookies.set(response, issued.session_id, issued.refresh_token_expires_at)
    return AccessTokenResponse(**_token_payload(issued))


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout",
    description="Delete the refresh session of the cookie and clear the cookie.",
)
async def logout(
    service: AuthSvc,
    components: Components,
    request: Request,
    response: Response,
) -> None:
    """Logout the current browser session."""
    await service.logout(components.cookies.read(request))
    components.cookies.clear(response)


@router.post(
    "/logout-all",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout from all devices",
    description="Delete every refresh session of the current user.",
)
async def logout_all(
    current_user: CurrentUser,
    service: AuthSvc,
    components: Components,
    response: Response,
) -> None:
    """Logout from all devices."""
    await service.logout_all(current_user.id)
    components.cookies.clear(response)


@router.post(
    "/session",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Establish refresh cookie",
    description=(
        "Set the refresh session cookie for a session whose current "
        "refresh token is presented."
    ),
)
async def establish_session(
    data: SessionEstablishRequest,
    service: AuthSvc,
    components: Components,
    response: Response,
) -> None:
    """Set the refresh cookie for an existing session."""
    expires_at = await service.establish_session(data.session_id, data.refresh_token)
    components.cookies.set(response, data.session_id, expires_at)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Returns the currently authenticated user's profile.",
)
async def get_me(
    current_user: CurrentUser,
) -> UserResponse:
    """Get current user profile."""
    return UserResponse.model_validate(current_user)
