"""Event chat over Socket.IO.

``ChatGateway`` holds the room logic and talks to the server only through
``emit``/``enter_room``/``leave_room``, so it can be driven by a fake server
in tests. ``ChatNamespace`` adapts it to the ``/chat`` namespace.

Inbound events: join, leave, message, typing, read.
Outbound events: joined, message, member:joined, member:left, typing,
typing:stop, error.
"""

from __future__ import annotations

import contextlib
import functools
import logging
from typing import Any

import socketio
from channels.db import database_sync_to_async

from eventfi.chat import conf
from eventfi.chat import services
from eventfi.chat.exceptions import ChatError
from eventfi.chat.exceptions import ChatErrorCode
from eventfi.chat.exceptions import describe

from .registry import ConnectionRegistry
from .registry import ConnectionState
from .registry import TypingTimer
from .socketio import CHAT_NAMESPACE
from .socketio import authenticate_connection
from .socketio import room_for_event_chat

logger = logging.getLogger(__name__)


def _reports_errors(handler):
    """Turn failures into an ``error`` event for the originating connection."""

    @functools.wraps(handler)
    async def wrapper(self, sid, *args, **kwargs):
        try:
            async with self.connection_lock(sid):
                return await handler(self, sid, *args, **kwargs)
        except ChatError as exc:
            await self.emit_error(sid, exc.code, exc.message)
        except Exception:
            logger.exception("Chat %s handler failed for %s", handler.__name__, sid)
            await self.emit_error(sid, ChatErrorCode.ERROR, describe(ChatErrorCode.ERROR))
        return None

    return wrapper


def _event_id_from(data: Any) -> int:
    raw = data.get("eventId") if isinstance(data, dict) else data
    if isinstance(raw, bool) or raw in (None, ""):
        raise ChatError(ChatErrorCode.INVALID_REQUEST, "Event ID required")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ChatError(ChatErrorCode.INVALID_REQUEST, "Event ID required") from None


class ChatGateway:
    def __init__(
        self,
        server,
        registry: ConnectionRegistry,
        *,
        namespace: str = CHAT_NAMESPACE,
        typing_timeout: float | None = None,
    ):
        self.server = server
        self.registry = registry
        self.namespace = namespace
        self.typing_timeout = (
            typing_timeout
            if typing_timeout is not None
            else conf.typing_timeout_seconds()
        )

    async def emit_error(self, sid: str, code: str, message: str) -> None:
        await self.server.emit(
            "error",
            {"code": str(code), "message": message},
            to=sid,
            namespace=self.namespace,
        )

    async def _broadcast(
        self,
        event_id: int,
        event: str,
        payload: dict[str, Any],
        skip_sid: str | None = None,
    ) -> None:
        await self.server.emit(
            event,
            payload,
            room=room_for_event_chat(event_id),
            skip_sid=skip_sid,
            namespace=self.namespace,
        )

    def connection_lock(self, sid: str):
        state = self.registry.get(sid)
        return state.lock if state is not None else contextlib.nullcontext()

    def _is_current(self, state: ConnectionState) -> bool:
        return self.registry.get(state.sid) is state

    def _require_connection(self, sid: str) -> ConnectionState:
        state = self.registry.get(sid)
        if state is None:
            raise ChatError(ChatErrorCode.NOT_JOINED, "Connection is not registered")
        return state

    def connect(self, sid: str, user_id: int, display_name: str = "User") -> None:
        self.registry.add(
            ConnectionState(sid=sid, user_id=user_id, display_name=display_name),
        )
        logger.info("Chat connection %s opened for user %s", sid, user_id)

    async def disconnect(self, sid: str) -> None:
        state = self.registry.get(sid)
        if state is None:
            return
        async with state.lock:
            if not self._is_current(state):
                return
            try:
                await self._leave_room(state)
            finally:
                self.registry.remove(sid)
                logger.info("Chat connection %s closed for user %s", sid, state.user_id)

    async def _leave_room(self, state: ConnectionState) -> None:
        event_id = state.event_id
        if event_id is None:
            return

        others = [
            c
            for c in self.registry.user_connections_in_room(state.user_id, event_id)
            if c.sid != state.sid
        ]
        self.registry.clear_room(state.sid)
        await self.server.leave_room(
            state.sid, room_for_event_chat(event_id), namespace=self.namespace
        )
        if not others:
            await self._broadcast(
                event_id, "member:left", {"userId": state.user_id}, skip_sid=state.sid
            )
        logger.info("User %s left chat room for event %s", state.user_id, event_id)

    @_reports_errors
    async def join(self, sid: str, data: Any = None) -> None:
        state = self._require_connection(sid)
        event_id = _event_id_from(data)

        result = await database_sync_to_async(services.get_or_join_chat)(
            event_id, state.user_id
        )
        if not result.can_join:
            raise ChatError(result.reason, describe(result.reason))
        if not self._is_current(state):
            return

        rejoin = state.event_id == event_id
        if state.event_id is not None and not rejoin:
            await self._leave_room(state)

        # Another device of the same user already announced them.
        already_present = any(
            c.sid != sid
            for c in self.registry.user_connections_in_room(state.user_id, event_id)
        )
        room = room_for_event_chat(event_id)
        await self.server.enter_room(sid, room, namespace=self.namespace)
        if not self._is_current(state):
            await self.server.leave_room(sid, room, namespace=self.namespace)
            return
        self.registry.set_room(sid, event_id)

        recent = await database_sync_to_async(services.get_recent_messages)(
            result.chat, conf.snapshot_size()
        )
        await self.server.emit(
            "joined",
            {"chat": result.info, "recentMessages": recent},
            to=sid,
            namespace=self.namespace,
        )
        if not rejoin and not already_present:
            await self._broadcast(
                event_id,
                "member:joined",
                {
                    "member": {
                        "userId": state.user_id,
                        "name": state.display_name,
                        "isOnline": True,
                    },
                },
                skip_sid=sid,
            )
            logger.info("User %s joined chat room for event %s", state.user_id, event_id)

    @_reports_errors
    async def leave(self, sid: str, data: Any = None) -> None:
        state = self.registry.get(sid)
        if state is not None:
            await self._leave_room(state)

    @_reports_errors
    async def message(self, sid: str, data: Any = None) -> None:
        state = self._require_connection(sid)
        if state.event_id is None:
            raise ChatError(ChatErrorCode.NOT_JOINED, describe(ChatErrorCode.NOT_JOINED))

        payload = data if isinstance(data, dict) else {}
        content = payload.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ChatError(ChatErrorCode.INVALID_MESSAGE, "Message content required")

        event_id = state.event_id
        message = await database_sync_to_async(services.send_message)(
            event_id,
            state.user_id,
            content,
            payload.get("type") or "text",
            payload.get("replyToId"),
        )
        # Everyone in the room, including the sender's other devices.
        await self._broadcast(event_id, "message", {"message": message})

    @_reports_errors
    async def typing(self, sid: str, data: Any = None) -> None:
        state = self.registry.get(sid)
        if state is None or state.event_id is None:
            return

        event_id = state.event_id
        await self._broadcast(
            event_id,
            "typing",
            {"users": [{"id": state.user_id, "name": state.display_name}]},
            skip_sid=sid,
        )

        if state.typing_timer is None:
            state.typing_timer = TypingTimer(
                self.typing_timeout,
                functools.partial(self._typing_stopped, sid, event_id),
            )
        state.typing_timer.arm()

    async def _typing_stopped(self, sid: str, event_id: int) -> None:
        state = self.registry.get(sid)
        if state is None or state.event_id != event_id:
            return
        await self._broadcast(
            event_id, "typing:stop", {"userId": state.user_id}, skip_sid=sid
        )

    @_reports_errors
    async def read(self, sid: str, data: Any = None) -> None:
        state = self.registry.get(sid)
        if state is None or state.event_id is None:
            return
        await database_sync_to_async(services.update_last_seen)(
            state.event_id, state.user_id
        )


class ChatNamespace(socketio.AsyncNamespace):
    def __init__(self, gateway: ChatGateway, namespace: str = CHAT_NAMESPACE):
        super().__init__(namespace)
        self.gateway = gateway

    async def on_connect(self, sid, environ, auth=None):
        try:
            ctx = await authenticate_connection(environ, auth)
        except ConnectionRefusedError as exc:
            logger.warning("Chat connection %s refused: %s", sid, exc)
            raise
        self.gateway.connect(sid, ctx.user_id, ctx.display_name)

    async def on_disconnect(self, sid, reason=None):
        await self.gateway.disconnect(sid)

    async def on_join(self, sid, data=None):
        await self.gateway.join(sid, data)

    async def on_leave(self, sid, data=None):
        await self.gateway.leave(sid, data)

    async def on_message(self, sid, data=None):
        await self.gateway.message(sid, data)

    async def on_typing(self, sid, data=None):
        await self.gateway.typing(sid, data)

    async def on_read(self, sid, data=None):
        await self.gateway.read(sid, data)


def register_chat_namespace(
    server: socketio.AsyncServer,
    registry: ConnectionRegistry | None = None,
) -> ChatGateway:
    gateway = ChatGateway(server, registry or ConnectionRegistry())
    server.register_namespace(ChatNamespace(gateway))
    return gateway
