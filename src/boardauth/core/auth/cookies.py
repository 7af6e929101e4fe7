"""Refresh session cookie transport.

The cookie carries only the opaque refresh ``session_id``. It is
always HTTP-only so scripts in the page never see it.
"""

from datetime import UTC, datetime
from typing import Literal
from urllib.parse import quote, unquote

from starlette.requests import HTTPConnection
from starlette.responses import Response

from boardauth.config import Settings


SameSite = Literal["strict", "lax", "none"]


def resolve_same_site(value: str | None) -> SameSite:
    """Map a configured SameSite value onto strict, lax or none.

    Matching is case-insensitive; anything unrecognised becomes lax.
    """
    normalized = (value or "").strip().lower()
    if normalized == "strict":
        return "strict"
    if normalized == "none":
        return "none"
    return "lax"


class RefreshCookieManager:
    """Write, clear and read the refresh session cookie.

    Attributes:
        name: Cookie name
        path: Cookie path
        domain: Optional cookie domain
        same_site: SameSite policy
        secure: Whether the Secure attribute is set
    """

    def __init__(
        self,
        name: str = "refresh_session",
        path: str = "/",
        domain: str | None = None,
        secure: bool = True,
        same_site: str = "lax",
        production: bool = False,
    ) -> None:
        self.name = name
        self.path = path
        self.domain = domain or None
        self.same_site = resolve_same_site(same_site)
        # Browsers drop SameSite=None cookies that are not Secure
        self.secure = secure or production or self.same_site == "none"

    @classmethod
    def from_settings(cls, settings: Settings) -> "RefreshCookieManager":
        """Build a cookie manager from application settings."""
        return cls(
            name=settings.refresh_cookie_name,
            path=settings.refresh_cookie_path,
            domain=settings.refresh_cookie_domain,
            secure=settings.refresh_cookie_secure,
            same_site=settings.refresh_cookie_same_site,
            production=settings.environment == "production",
        )

    def set(self, response: Response, session_id: str, expires_at: datetime) -> None:
        """Attach the refresh cookie to a response.

        Max-Age is derived from ``expires_at`` and never negative.

        Args:
            response: Response to decorate
            session_id: Refresh session id to store
            expires_at: When the refresh session expires
        """
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        expires_at = expires_at.astimezone(UTC)
        max_age = max(0, int((expires_at - datetime.now(UTC)).total_seconds()))

        response.set_cookie(
            key=self.name,
            value=quote(session_id, safe=""),
            max_age=max_age,
            expires=expires_at,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite=self.same_site,
        )

    def clear(self, response: Response) -> None:
        """Expire the refresh cookie with matching attributes."""
        response.delete_cookie(
            key=self.name,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite=self.same_site,
        )

    def read(self, connection: HTTPConnection) -> str | None:
        """Read the refresh session id from a request or WebSocket.

        Returns:
            The decoded session id, or None when absent or empty
        """
        raw = connection.cookies.get(self.name)
        if not raw:
            return None
        value = unquote(raw)
        return value or None
