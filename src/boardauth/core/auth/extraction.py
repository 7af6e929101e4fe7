"""Bearer token extraction for HTTP requests and WebSocket upgrades.

Browsers cannot set an ``Authorization`` header on a WebSocket
handshake, so the token may also travel in the
``Sec-WebSocket-Protocol`` header or in the query string. Sources are
tried in a fixed order and the first hit wins.
"""

from collections.abc import Mapping

from starlette.requests import HTTPConnection

from boardauth.core.constants import WEBSOCKET_BEARER_PROTOCOL


BEARER_PREFIX = "bearer "


def bearer_from_authorization(value: str | None) -> str | None:
    """Return the token of a ``Bearer <token>`` value, if any."""
    if not value:
        return None
    if value[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = value[len(BEARER_PREFIX) :].strip()
    return token or None


def token_from_subprotocols(header: str | None) -> str | None:
    """Return the token from a ``bearer, <token>`` subprotocol list.

    The token is the entry directly after the ``bearer`` marker.
    """
    if not header:
        return None
    protocols = [part.strip() for part in header.split(",")]
    if len(protocols) < 2 or protocols[0].lower() != WEBSOCKET_BEARER_PROTOCOL:
        return None
    return protocols[1] or None


def token_from_query(query_params: Mapping[str, str]) -> str | None:
    """Return a token from ``?authorization=Bearer x`` or ``?token=x``."""
    token = bearer_from_authorization(query_params.get("authorization"))
    if token:
        return token
    return query_params.get("token") or None


def extract_token(connection: HTTPConnection) -> str | None:
    """Find the bearer token of a request or WebSocket handshake.

    Order: Authorization header, Sec-WebSocket-Protocol header,
    ``authorization`` query parameter, ``token`` query parameter.

    Returns:
        The raw token, or None when no source carries one
    """
    return (
        bearer_from_authorization(connection.headers.get("authorization"))
        or token_from_subprotocols(connection.headers.get("sec-websocket-protocol"))
        or token_from_query(connection.query_params)
    )
