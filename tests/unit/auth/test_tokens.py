"""Unit tests for access token signing and verification."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from boardauth.core.auth.tokens import TokenService


SECRET = "unit-test-secret-key-that-is-long-enough"


def make_service(**kwargs) -> TokenService:
    return TokenService(secret_key=SECRET, expires_in=timedelta(minutes=15), **kwargs)


class TestSign:
    """Tests for TokenService.sign."""

    def test_sign_returns_hs256_jwt(self):
        """sign should produce a compact HS256 JWT."""
        token = make_service().sign("user-1")

        assert token.count(".") == 2
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_sign_includes_standard_claims(self):
        """sign should set sub, iat, exp, jti and the access type."""
        claims = jwt.get_unverified_claims(make_service().sign("user-1"))

        assert claims["sub"] == "user-1"
        assert claims["type"] == "access"
        assert claims["exp"] > claims["iat"]
        assert claims["jti"]

    def test_sign_omits_issuer_and_audience_when_unconfigured(self):
        """iss and aud should only appear when configured."""
        claims = jwt.get_unverified_claims(make_service().sign("user-1"))

        assert "iss" not in claims
        assert "aud" not in claims

    def test_sign_includes_issuer_and_audience_when_configured(self):
        """Configured iss and aud should be embedded."""
        service = make_service(issuer="board", audience="board-api")
        claims = jwt.get_unverified_claims(service.sign("user-1"))

        assert claims["iss"] == "board"
        assert claims["aud"] == "board-api"

    def test_sign_unique_jti(self):
        """Two tokens for the same subject should differ."""
        service = make_service()

        assert service.sign("user-1") != service.sign("user-1")

    def test_empty_secret_rejected(self):
        """A token service cannot be built without a secret."""
        with pytest.raises(ValueError):
            TokenService(secret_key="", expires_in=timedelta(minutes=1))


class TestVerify:
    """Tests for TokenService.verify."""

    def test_verify_round_trip(self):
        """A freshly signed token should verify to its subject."""
        service = make_service()
        token_data = service.verify(service.sign("user-1"))

        assert token_data is not None
        assert token_data.subject == "user-1"
        assert token_data.type == "access"
        assert token_data.exp > datetime.now(UTC)

    def test_verify_expired_token(self):
        """A token expired beyond the clock skew should be rejected."""
        service = make_service(clock_skew_seconds=5)
        token = service.sign("user-1", expires_delta=timedelta(seconds=-60))

        assert service.verify(token) is None

    def test_verify_within_clock_skew(self):
        """A token expired by less than the clock skew should still verify."""
        service = make_service(clock_skew_seconds=30)
        token = service.sign("user-1", expires_delta=timedelta(seconds=-2))

        assert service.verify(token) is not None

    def test_verify_wrong_secret(self):
        """A token signed with another secret should be rejected."""
        other = TokenService(
            secret_key="another-secret-key-that-is-long-enough",
            expires_in=timedelta(minutes=15),
        )

        assert make_service().verify(other.sign("user-1")) is None

    def test_verify_tampered_token(self):
        """Changing the payload should break the signature."""
        service = make_service()
        header, _payload, signature = service.sign("user-1").split(".")
        forged_payload = jwt.encode({"sub": "admin"}, SECRET).split(".")[1]

        assert service.verify(f"{header}.{forged_payload}.{signature}") is None

    def test_verify_rejects_other_algorithms(self):
        """Only HS256 is accepted, even with the right secret."""
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "user-1", "iat": now, "exp": now + timedelta(minutes=5)},
            SECRET,
            algorithm="HS512",
        )

        assert make_service().verify(token) is None

    def test_verify_garbage(self):
        """Malformed input should yield None, not an exception."""
        service = make_service()

        assert service.verify("not-a-jwt") is None
        assert service.verify("") is None

    def test_verify_rejects_non_access_type(self):
        """Tokens typed as anything but access should be rejected."""
        service = make_service()
        token = service.sign("user-1", additional_claims={"type": "refresh"})

        assert service.verify(token) is None

    def test_verify_requires_subject(self):
        """A token without sub should be rejected."""
        now = datetime.now(UTC)
        token = jwt.encode({"iat": now, "exp": now + timedelta(minutes=5)}, SECRET)

        assert make_service().verify(token) is None

    def test_verify_issuer_enforced_when_configured(self):
        """Issuer must match when the verifier has one configured."""
        verifier = make_service(issuer="board")

        assert verifier.verify(make_service(issuer="board").sign("u")) is not None
        assert verifier.verify(make_service(issuer="other").sign("u")) is None
        assert verifier.verify(make_service().sign("u")) is None

    def test_verify_audience_enforced_when_configured(self):
        """Audience must be present and match when configured."""
        verifier = make_service(audience="board-api")

        assert verifier.verify(make_service(audience="board-api").sign("u")) is not None
        assert verifier.verify(make_service(audience="other").sign("u")) is None
        assert verifier.verify(make_service().sign("u")) is None


def test_from_settings(settings):
    """from_settings should carry over lifetime, issuer and skew."""
    service = TokenService.from_settings(settings)

    assert service.expires_in == timedelta(minutes=settings.access_token_expire_minutes)
    assert service.issuer == settings.jwt_issuer
    assert service.clock_skew_seconds == settings.jwt_clock_skew_seconds
