"""Unit tests for bearer token extraction."""

from starlette.requests import HTTPConnection

from boardauth.core.auth.extraction import (
    bearer_from_authorization,
    extract_token,
    token_from_query,
    token_from_subprotocols,
)


def connection(
    headers: dict[str, str] | None = None,
    query: str = "",
    scope_type: str = "websocket",
) -> HTTPConnection:
    raw_headers = [
        (key.lower().encode(), value.encode()) for key, value in (headers or {}).items()
    ]
    return HTTPConnection(
        {
            "type": scope_type,
            "path": "/ws",
            "headers": raw_headers,
            "query_string": query.encode(),
        }
    )


class TestBearerFromAuthorization:
    """Tests for Authorization header parsing."""

    def test_bearer_token(self):
        assert bearer_from_authorization("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert bearer_from_authorization("bearer abc") == "abc"

    def test_other_schemes_ignored(self):
        assert bearer_from_authorization("Basic dXNlcjpwYXNz") is None

    def test_missing_or_empty(self):
        assert bearer_from_authorization(None) is None
        assert bearer_from_authorization("") is None
        assert bearer_from_authorization("Bearer ") is None


class TestTokenFromSubprotocols:
    """Tests for Sec-WebSocket-Protocol parsing."""

    def test_bearer_then_token(self):
        assert token_from_subprotocols("bearer, abc") == "abc"

    def test_without_spaces(self):
        assert token_from_subprotocols("bearer,abc") == "abc"

    def test_marker_alone(self):
        assert token_from_subprotocols("bearer") is None

    def test_other_protocols_ignored(self):
        assert token_from_subprotocols("graphql-ws, abc") is None

    def test_missing(self):
        assert token_from_subprotocols(None) is None


class TestTokenFromQuery:
    """Tests for query string parsing."""

    def test_authorization_parameter(self):
        assert token_from_query({"authorization": "Bearer abc"}) == "abc"

    def test_token_parameter(self):
        assert token_from_query({"token": "abc"}) == "abc"

    def test_authorization_preferred_over_token(self):
        assert token_from_query({"authorization": "Bearer one", "token": "two"}) == "one"

    def test_empty(self):
        assert token_from_query({}) is None
        assert token_from_query({"token": ""}) is None


class TestExtractToken:
    """Tests for the combined extraction order."""

    def test_header_wins(self):
        """The Authorization header takes precedence over every other source."""
        conn = connection(
            headers={
                "Authorization": "Bearer from-header",
                "Sec-WebSocket-Protocol": "bearer, from-protocol",
            },
            query="token=from-query",
        )

        assert extract_token(conn) == "from-header"

    def test_subprotocol_before_query(self):
        """The subprotocol header is used before the query string."""
        conn = connection(
            headers={"Sec-WebSocket-Protocol": "bearer, from-protocol"},
            query="token=from-query",
        )

        assert extract_token(conn) == "from-protocol"

    def test_query_authorization_before_token(self):
        """?authorization= is used before ?token=."""
        conn = connection(query="authorization=Bearer%20one&token=two")

        assert extract_token(conn) == "one"

    def test_query_token(self):
        conn = connection(query="token=abc")

        assert extract_token(conn) == "abc"

    def test_http_request(self):
        """Plain HTTP requests are handled the same way."""
        conn = connection(headers={"Authorization": "Bearer abc"}, scope_type="http")

        assert extract_token(conn) == "abc"

    def test_nothing_found(self):
        """No source yields None rather than an error."""
        assert extract_token(connection()) is None
