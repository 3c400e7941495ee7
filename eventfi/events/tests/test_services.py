import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from eventfi.chat.tests.factories import add_team_member
from eventfi.chat.tests.factories import confirm_booking
from eventfi.chat.tests.factories import create_event
from eventfi.chat.tests.factories import create_user
from eventfi.events import services
from eventfi.events.models import BookingOrder
from eventfi.events.models import Event
from eventfi.events.models import EventTeamMember

pytestmark = pytest.mark.django_db


@pytest.fixture
def event():
    return create_event(create_user("organizer"))


def test_get_event(event):
    assert services.get_event(event.pk) == event
    assert services.get_event(event.pk + 1) is None


def test_pending_team_rows_are_ignored(event):
    helper = create_user("helper")
    add_team_member(event, helper, status=EventTeamMember.Status.PENDING)

    assert services.get_team_membership(event.pk, helper.pk) is None

    EventTeamMember.objects.filter(user=helper).update(
        status=EventTeamMember.Status.ACTIVE
    )
    assert services.get_team_membership(event.pk, helper.pk).user == helper


def test_only_confirmed_bookings_count_as_tickets(event):
    buyer = create_user("buyer")
    BookingOrder.objects.create(event=event, user=buyer, status=BookingOrder.Status.PENDING)

    assert services.has_confirmed_ticket(event.pk, buyer.pk) is False

    confirm_booking(event, buyer)
    assert services.has_confirmed_ticket(event.pk, buyer.pk) is True


def test_user_profile_falls_back_to_placeholder_name():
    user = create_user("quiet", display_name="")
    type(user).objects.filter(pk=user.pk).update(display_name="")
    user.refresh_from_db()

    profile = services.get_user_profile(user)

    assert profile == services.UserProfile(id=user.pk, name="User", avatar=None)
    assert services.get_user_profile(None).name == "User"


def test_event_dates_are_validated():
    now = timezone.now()
    event = Event(
        organizer=create_user("organizer"),
        title="Backwards",
        start_date=now,
        end_date=now - timezone.timedelta(hours=1),
    )

    with pytest.raises(ValidationError):
        event.clean()


def test_location_label(event):
    assert event.location_label == "Warehouse 9"
    event.venue_name = ""
    assert event.location_label == "Online"
