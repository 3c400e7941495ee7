from collections import defaultdict
from dataclasses import dataclass
from typing import Any

import pytest

from eventfi.realtime.chat import ChatGateway
from eventfi.realtime.registry import ConnectionRegistry


@dataclass
class Emitted:
    event: str
    data: Any
    target: str
    skip_sid: str | None = None


class FakeServer:
    """Records what a gateway would have sent through python-socketio."""

    def __init__(self):
        self.emitted: list[Emitted] = []
        self.rooms: dict[str, set[str]] = defaultdict(set)

    async def emit(  # noqa: PLR0913
        self,
        event,
        data=None,
        to=None,
        room=None,
        skip_sid=None,
        namespace=None,
    ):
        self.emitted.append(Emitted(event, data, to or room, skip_sid))

    async def enter_room(self, sid, room, namespace=None):
        self.rooms[room].add(sid)

    async def leave_room(self, sid, room, namespace=None):
        self.rooms[room].discard(sid)

    def sent(self, event: str) -> list[Emitted]:
        return [e for e in self.emitted if e.event == event]

    def reset(self) -> None:
        self.emitted.clear()


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def gateway(server) -> ChatGateway:
    return ChatGateway(server, ConnectionRegistry(), typing_timeout=0.02)
