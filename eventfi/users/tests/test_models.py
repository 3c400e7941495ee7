import pytest

from eventfi.users.models import User

pytestmark = pytest.mark.django_db


def test_display_name_defaults_to_full_name():
    user = User.objects.create_user(
        username="grace", first_name="Grace", last_name="Hopper", password="x"  # noqa: S106
    )

    assert user.display_name == "Grace Hopper"


def test_explicit_display_name_is_kept():
    user = User.objects.create_user(
        username="grace",
        first_name="Grace",
        last_name="Hopper",
        display_name="Amazing Grace",
        password="x",  # noqa: S106
    )

    assert user.display_name == "Amazing Grace"
