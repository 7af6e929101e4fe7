"""Unit tests for password and refresh token hashing."""

from boardauth.core.auth.passwords import (
    create_refresh_token,
    hash_password,
    hash_token,
    token_matches,
    verify_password,
)


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password_returns_hash(self):
        """hash_password should return a bcrypt hash."""
        hashed = hash_password("mysecretpassword")

        assert hashed != "mysecretpassword"
        assert hashed.startswith("$2b$")

    def test_verify_password_correct(self):
        """verify_password should return True for correct password."""
        hashed = hash_password("mysecretpassword")

        assert verify_password("mysecretpassword", hashed) is True

    def test_verify_password_incorrect(self):
        """verify_password should return False for incorrect password."""
        hashed = hash_password("mysecretpassword")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_without_hash(self):
        """Accounts without a password hash never match."""
        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_verify_password_malformed_hash(self):
        """A corrupt stored hash is a mismatch, not an error."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestRefreshTokens:
    """Tests for refresh token values."""

    def test_create_refresh_token_is_random_hex(self):
        """Refresh tokens should be 256-bit hex strings."""
        token = create_refresh_token()

        assert len(token) == 64
        int(token, 16)
        assert token != create_refresh_token()

    def test_hash_token_is_sha256_hex(self):
        """hash_token should be deterministic SHA-256 hex."""
        assert hash_token("value") == hash_token("value")
        assert len(hash_token("value")) == 64
        assert hash_token("value") != "value"

    def test_token_matches(self):
        """token_matches should compare against the stored hash."""
        stored = hash_token("current")

        assert token_matches("current", stored) is True
        assert token_matches("previous", stored) is False
