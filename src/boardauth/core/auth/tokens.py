"""Access token signing and verification.

Access tokens are short-lived HS256 JWTs that carry the user id as
subject. They are never stored: a token is authentic exactly when its
signature and claims check out at verification time.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
from jose import JWTError, jwt

from boardauth.config import Settings
from boardauth.core.auth.schemas import TokenData
from boardauth.core.constants import (
    ACCESS_TOKEN_ALGORITHM,
    ACCESS_TOKEN_JTI_LENGTH,
    ACCESS_TOKEN_TYPE,
)


logger = structlog.get_logger()


class TokenService:
    """Issue and verify signed identity assertions.

    ``iss`` and ``aud`` are only written, and only enforced, when
    configured. Tokens minted before an issuer/audience was set keep
    verifying as long as the verifier has none configured either.
    """

    def __init__(
        self,
        secret_key: str,
        expires_in: timedelta,
        issuer: str | None = None,
        audience: str | None = None,
        clock_skew_seconds: int = 5,
    ) -> None:
        if not secret_key:
            raise ValueError("Access token secret must be provided")
        self._secret_key = secret_key
        self.expires_in = expires_in
        self.issuer = issuer
        self.audience = audience
        self.clock_skew_seconds = clock_skew_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        """Build a token service from application settings."""
        return cls(
            secret_key=settings.secret_key,
            expires_in=timedelta(minutes=settings.access_token_expire_minutes),
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            clock_skew_seconds=settings.jwt_clock_skew_seconds,
        )

    def sign(
        self,
        subject: str,
        expires_delta: timedelta | None = None,
        additional_claims: dict[str, Any] | None = None,
    ) -> str:
        """Create a signed access token.

        Args:
            subject: Identity to embed as ``sub``
            expires_delta: Optional custom lifetime
            additional_claims: Optional extra claims to include

        Returns:
            Encoded JWT access token
        """
        now = datetime.now(UTC)
        to_encode: dict[str, Any] = {
            "sub": subject,
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expires_in),
            "type": ACCESS_TOKEN_TYPE,
            "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),
        }
        if self.issuer:
            to_encode["iss"] = self.issuer
        if self.audience:
            to_encode["aud"] = self.audience
        if additional_claims:
            to_encode.update(additional_claims)

        return jwt.encode(to_encode, self._secret_key, algorithm=ACCESS_TOKEN_ALGORITHM)

    def verify(self, token: str) -> TokenData | None:
        """Verify an access token.

        Every failure (malformed token, foreign algorithm, bad signature,
        expiry beyond the clock-skew leeway, wrong issuer or audience)
        yields None so callers treat it uniformly as unauthenticated.

        Args:
            token: The encoded JWT

        Returns:
            TokenData if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ACCESS_TOKEN_ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "leeway": self.clock_skew_seconds,
                    "verify_aud": self.audience is not None,
                    "require_exp": True,
                    "require_sub": True,
                },
            )
        except (JWTError, ValueError) as exc:
            logger.warning("access_token_rejected", reason=type(exc).__name__)
            return None

        if self.audience is not None and "aud" not in payload:
            logger.warning("access_token_rejected", reason="missing_audience")
            return None

        token_type = payload.get("type", ACCESS_TOKEN_TYPE)
        subject = payload.get("sub")
        if token_type != ACCESS_TOKEN_TYPE or not subject:
            logger.warning("access_token_rejected", reason="invalid_claims")
            return None

        iat = payload.get("iat")
        token_data = TokenData(
            subject=str(subject),
            exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
            iat=datetime.fromtimestamp(iat, tz=UTC) if iat is not None else None,
            jti=payload.get("jti"),
            type=token_type,
        )
        logger.debug("access_token_verified", subject=token_data.subject)
        return token_data
