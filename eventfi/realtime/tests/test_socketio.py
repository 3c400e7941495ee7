from datetime import timedelta

import pytest
import socketio
from asgiref.sync import async_to_sync
from rest_framework_simplejwt.tokens import AccessToken

from eventfi.realtime.chat import ChatNamespace
from eventfi.realtime.chat import register_chat_namespace
from eventfi.realtime.socketio import CHAT_NAMESPACE
from eventfi.realtime.socketio import _extract_token
from eventfi.realtime.socketio import authenticate_connection
from eventfi.realtime.socketio import room_for_event_chat
from eventfi.realtime.socketio import room_for_user
from eventfi.realtime.socketio import sio


def test_room_names():
    assert room_for_user(5) == "user_5"
    assert room_for_event_chat("12") == "event_chat_12"


def test_default_namespace_registers_only_connect():
    handlers = sio.handlers.get("/", {})

    assert "connect" in handlers
    assert "disconnect" not in handlers


class TestExtractToken:
    def test_from_asgi_scope_query_string(self):
        environ = {"asgi.scope": {"query_string": b"EIO=4&token=abc"}}

        assert _extract_token(environ, None) == "abc"

    def test_from_wsgi_query_string(self):
        assert _extract_token({"QUERY_STRING": "token=xyz"}, None) == "xyz"

    def test_falls_back_to_auth_payload(self):
        assert _extract_token({"QUERY_STRING": ""}, {"token": "from-auth"}) == "from-auth"

    def test_missing(self):
        assert _extract_token({}, None) is None
        assert _extract_token({}, {"token": ""}) is None


def authenticate(environ, auth=None):
    return async_to_sync(authenticate_connection)(environ, auth)


@pytest.mark.django_db
class TestAuthenticateConnection:
    def test_valid_token(self, user):
        token = str(AccessToken.for_user(user))

        ctx = authenticate({"QUERY_STRING": f"token={token}"})

        assert ctx.user_id == user.pk
        assert ctx.display_name == user.display_name

    def test_missing_token(self):
        with pytest.raises(ConnectionRefusedError, match="unauthorized"):
            authenticate({})

    def test_garbage_token(self):
        with pytest.raises(ConnectionRefusedError, match="unauthorized"):
            authenticate({}, {"token": "not-a-jwt"})

    def test_expired_token(self, user):
        token = AccessToken.for_user(user)
        token.set_exp(lifetime=-timedelta(minutes=1))

        with pytest.raises(ConnectionRefusedError, match="jwt_expired"):
            authenticate({}, {"token": str(token)})

    def test_inactive_user(self, user):
        token = str(AccessToken.for_user(user))
        user.is_active = False
        user.save(update_fields=["is_active"])

        with pytest.raises(ConnectionRefusedError, match="unauthorized"):
            authenticate({}, {"token": token})


def test_register_chat_namespace():
    server = socketio.AsyncServer(async_mode="asgi")

    gateway = register_chat_namespace(server)

    handler = server.namespace_handlers[CHAT_NAMESPACE]
    assert isinstance(handler, ChatNamespace)
    assert handler.gateway is gateway
    assert len(gateway.registry) == 0
