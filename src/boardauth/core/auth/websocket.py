"""Realtime WebSocket endpoint.

The connection is authenticated once, at the handshake, with a token
found by ``extract_token``. Unauthenticated clients may connect as
anonymous and share one rate limit bucket.
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from boardauth.core.auth.extraction import extract_token
from boardauth.core.constants import (
    WEBSOCKET_BEARER_PROTOCOL,
    WEBSOCKET_RATE_LIMIT_CLOSE_CODE,
)
from boardauth.core.logging import get_client_ip
from boardauth.core.rate_limit import rate_limit_key
from boardauth.core.wiring import AuthComponents


logger = structlog.get_logger()

router = APIRouter(tags=["realtime"])


def _offered_subprotocol(websocket: WebSocket) -> str | None:
    offered = websocket.scope.get("subprotocols") or []
    if any(p.lower() == WEBSOCKET_BEARER_PROTOCOL for p in offered):
        return WEBSOCKET_BEARER_PROTOCOL
    return None


@router.websocket("/ws")
async def realtime(websocket: WebSocket) -> None:
    """Authenticate, rate limit and serve one WebSocket connection."""
    components: AuthComponents = websocket.app.state.components
    settings = components.settings

    token = extract_token(websocket)
    token_data = components.tokens.verify(token) if token else None
    subject = token_data.subject if token_data else None
    identity = rate_limit_key(subject)

    await websocket.accept(subprotocol=_offered_subprotocol(websocket))

    admission = await components.rate_limiter.check(identity)
    if not admission.allowed:
        logger.warning("ws_rate_limited", client_ip=get_client_ip(websocket))
        await websocket.close(code=WEBSOCKET_RATE_LIMIT_CLOSE_CODE, reason="Rate limited")
        return

    idle_timeout = (
        settings.websocket_idle_timeout_authenticated_seconds
        if subject
        else settings.websocket_idle_timeout_anonymous_seconds
    )

    logger.info(
        "ws_connected",
        authenticated=subject is not None,
        user_id=subject,
        client_ip=get_client_ip(websocket),
    )
    await websocket.send_json(
        {"type": "connection", "authenticated": subject is not None, "subject": subject}
    )

    try:
        while True:
            try:
                frame = await asyncio.wait_for(websocket.receive(), timeout=idle_timeout)
            except TimeoutError:
                logger.info("ws_idle_timeout", user_id=subject)
                await websocket.close(code=status.WS_1000_NORMAL_CLOSURE, reason="Idle timeout")
                return

            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", status.WS_1000_NORMAL_CLOSURE))

            result = await components.rate_limiter.check(identity)
            if not result.allowed:
                await websocket.send_json(
                    {
                        "type": "error",
                        "error": "rate_limited",
                        "retry_after": result.retry_after,
                    }
                )
                continue

            # Binary frames carry no text and are never valid messages
            raw = frame.get("text")
            try:
                message = json.loads(raw) if raw is not None else None
            except ValueError:
                message = None

            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "error": "invalid_message"})
            elif message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
            else:
                await websocket.send_json({"type": "error", "error": "unsupported_message"})
    except WebSocketDisconnect as exc:
        logger.info("ws_disconnected", user_id=subject, code=exc.code)
