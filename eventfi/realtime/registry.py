"""Process-local bookkeeping for live realtime connections.

The registry is injected into the chat gateway so tests can drive
multi-connection scenarios without a running Socket.IO server. It is not
shared between server processes; horizontally scaled deployments need an
external pub/sub and presence store instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field

logger = logging.getLogger(__name__)


class TypingTimer:
    """Cancellable one-shot timer that fires ``callback`` after ``delay`` seconds.

    Re-arming cancels the pending run, so a burst of typing events produces a
    single stop notification once the user goes quiet.
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[None]]):
        self.delay = delay
        self._callback = callback
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            return
        # Drop our own reference first so a re-arm from the callback is not
        # cancelled by the finishing task.
        self._task = None
        try:
            await self._callback()
        except Exception:
            logger.exception("Typing timer callback failed")


@dataclass
class ConnectionState:
    sid: str
    user_id: int
    display_name: str = "User"
    event_id: int | None = None
    typing_timer: TypingTimer | None = field(default=None, repr=False)
    # Serializes the inbound events of this connection.
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def stop_typing(self) -> None:
        if self.typing_timer is not None:
            self.typing_timer.cancel()
            self.typing_timer = None


class ConnectionRegistry:
    """Tracks connections, the user each belongs to and the event room it is in.

    A connection is in at most one event room at a time.
    """

    def __init__(self):
        self._connections: dict[str, ConnectionState] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, sid: str) -> bool:
        return sid in self._connections

    def add(self, state: ConnectionState) -> ConnectionState:
        self._connections[state.sid] = state
        return state

    def get(self, sid: str) -> ConnectionState | None:
        return self._connections.get(sid)

    def remove(self, sid: str) -> ConnectionState | None:
        state = self._connections.pop(sid, None)
        if state is not None:
            state.stop_typing()
        return state

    def set_room(self, sid: str, event_id: int) -> None:
        state = self._connections[sid]
        state.event_id = event_id

    def clear_room(self, sid: str) -> int | None:
        state = self._connections.get(sid)
        if state is None:
            return None
        previous, state.event_id = state.event_id, None
        state.stop_typing()
        return previous

    def connections_in_room(self, event_id: int) -> list[ConnectionState]:
        return [s for s in self._connections.values() if s.event_id == event_id]

    def connections_for_user(self, user_id: int) -> list[ConnectionState]:
        return [s for s in self._connections.values() if s.user_id == user_id]

    def user_connections_in_room(
        self,
        user_id: int,
        event_id: int,
    ) -> list[ConnectionState]:
        return [
            s
            for s in self._connections.values()
            if s.user_id == user_id and s.event_id == event_id
        ]

    def online_users(self, event_id: int) -> set[int]:
        return {s.user_id for s in self.connections_in_room(event_id)}

    def clear(self) -> None:
        for sid in list(self._connections):
            self.remove(sid)
