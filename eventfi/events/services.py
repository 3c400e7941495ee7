"""Lookups the event chat depends on.

The chat core never reaches into event, team or booking tables directly; it
goes through these helpers so the collaborators stay swappable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from eventfi.events.models import BookingOrder
from eventfi.events.models import Event
from eventfi.events.models import EventTeamMember

if TYPE_CHECKING:
    from eventfi.users.models import User

DEFAULT_DISPLAY_NAME = "User"


@dataclass(frozen=True)
class UserProfile:
    id: int
    name: str
    avatar: str | None


def get_event(event_id: int) -> Event | None:
    return Event.objects.filter(pk=event_id).first()


def get_team_membership(event_id: int, user_id: int) -> EventTeamMember | None:
    """Return the ACTIVE team row for (event, user); pending invites don't count."""

    return EventTeamMember.objects.filter(
        event_id=event_id,
        user_id=user_id,
        status=EventTeamMember.Status.ACTIVE,
    ).first()


def has_confirmed_ticket(event_id: int, user_id: int) -> bool:
    return BookingOrder.objects.filter(
        event_id=event_id,
        user_id=user_id,
        status=BookingOrder.Status.CONFIRMED,
    ).exists()


def get_user_profile(user: User | None) -> UserProfile:
    if user is None:
        return UserProfile(id=0, name=DEFAULT_DISPLAY_NAME, avatar=None)
    return UserProfile(
        id=int(user.pk),
        name=user.display_name or DEFAULT_DISPLAY_NAME,
        avatar=user.avatar or None,
    )
