import pytest

from eventfi.chat.tests.factories import ChatScene
from eventfi.chat.tests.factories import build_chat_scene
from eventfi.chat.tests.factories import create_user
from eventfi.users.models import User


@pytest.fixture
def user(db) -> User:
    return create_user("testuser")


@pytest.fixture
def scene(db) -> ChatScene:
    return build_chat_scene()
