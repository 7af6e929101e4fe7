"""Password and opaque-token hashing.

This module provides:
- Password hashing with bcrypt
- Random refresh token values
- Token hashing for storage
"""

import hashlib
import hmac
import secrets

from passlib.context import CryptContext

from boardauth.core.constants import BCRYPT_ROUNDS, REFRESH_TOKEN_BYTES


# Password hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash of the password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against its hash.

    A missing or malformed hash never matches.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Bcrypt hash to verify against

    Returns:
        True if password matches, False otherwise
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_refresh_token() -> str:
    """Create a long-lived refresh token value.

    The refresh token is a random string (not a JWT). It is stored
    hashed in the database.
    """
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Hash a token for secure storage.

    Uses SHA-256 so a leaked table cannot be replayed.

    Args:
        token: The token to hash

    Returns:
        SHA-256 hex digest of the token
    """
    return hashlib.sha256(token.encode()).hexdigest()


def token_matches(token: str, token_hash: str) -> bool:
    """Compare a presented token with a stored hash in constant time."""
    return hmac.compare_digest(hash_token(token), token_hash)
