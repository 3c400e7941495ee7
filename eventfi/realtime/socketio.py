"""Shared Socket.IO server.

One ``AsyncServer`` serves every realtime feature. The default namespace only
authenticates and places each connection in its per-user room; the event
chat lives on the ``/chat`` namespace (see ``eventfi.realtime.chat``).

Frontend convention:
- Socket.IO path: /ws/socket.io/
- Auth: `query.token` or `auth.token` (JWT access token)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

import socketio
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError

logger = logging.getLogger(__name__)

SOCKETIO_PATH = "ws/socket.io"
CHAT_NAMESPACE = "/chat"

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


@dataclass(frozen=True)
class UserRealtimeContext:
    user_id: int
    display_name: str


def room_for_user(user_id: int) -> str:
    return f"user_{int(user_id)}"


def room_for_event_chat(event_id: int) -> str:
    return f"event_chat_{int(event_id)}"


@database_sync_to_async
def _get_user_context_from_access_token(token: str) -> UserRealtimeContext:
    jwt_auth = JWTAuthentication()
    validated = jwt_auth.get_validated_token(token)
    user = jwt_auth.get_user(validated)
    return UserRealtimeContext(
        user_id=int(user.id),
        display_name=getattr(user, "display_name", "") or "User",
    )


def _extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract JWT token from Socket.IO environ/auth.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """

    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token

    # Allow `auth: { token }` as fallback.
    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token

    return None


async def authenticate_connection(
    environ: dict[str, Any],
    auth: Any | None,
) -> UserRealtimeContext:
    """Resolve the handshake credential or refuse the connection."""

    token = _extract_token(environ, auth)
    if not token:
        msg = "unauthorized"
        raise ConnectionRefusedError(msg)

    try:
        return await _get_user_context_from_access_token(token)
    except (TokenError, AuthenticationFailed) as exc:
        # InvalidToken wraps the TokenError messages in its detail.
        msg = "jwt_expired" if "expired" in str(exc).lower() else "unauthorized"
        raise ConnectionRefusedError(msg) from exc
    except Exception as exc:
        logger.exception("Socket.IO connect error")
        msg = "server_error"
        raise ConnectionRefusedError(msg) from exc


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    try:
        ctx = await authenticate_connection(environ, auth)
    except ConnectionRefusedError as exc:
        logger.warning("Socket.IO connection %s refused: %s", sid, exc)
        raise

    await sio.save_session(sid, {"user_id": ctx.user_id})
    await sio.enter_room(sid, room_for_user(ctx.user_id))


def emit_event_to_room(
    room: str,
    event: str,
    payload: dict[str, Any],
    namespace: str | None = None,
) -> None:
    """Emit an event to a room from sync Django code."""

    async_to_sync(sio.emit)(event, payload, room=room, namespace=namespace)


def emit_event_to_event_chat(event_id: int, event: str, payload: dict[str, Any]) -> None:
    emit_event_to_room(
        room_for_event_chat(event_id), event, payload, namespace=CHAT_NAMESPACE
    )
