"""Membership & role resolution.

The role stored on ``ChatMember`` is a cache. Team roles can change after a
member joined, so every authorization-sensitive path asks
`resolve_effective_role` instead of reading ``member.role`` directly.
"""

from __future__ import annotations

import logging

from eventfi.chat.exceptions import ChatErrorCode
from eventfi.chat.models import ChatMember
from eventfi.chat.models import ChatRole
from eventfi.chat.models import EventChat
from eventfi.events.models import Event
from eventfi.events.models import EventTeamMember
from eventfi.events.services import get_team_membership
from eventfi.events.services import has_confirmed_ticket

logger = logging.getLogger(__name__)

ELEVATED_TEAM_ROLES = frozenset(
    {
        EventTeamMember.Role.CO_HOST,
        EventTeamMember.Role.MANAGER,
    },
)


def resolve_role(event: Event, user_id: int) -> str:
    if event.organizer_id == user_id:
        return ChatRole.ORGANIZER

    team_member = get_team_membership(event.pk, user_id)
    if team_member is not None and team_member.role in ELEVATED_TEAM_ROLES:
        return ChatRole.MODERATOR
    return ChatRole.MEMBER


def resolve_effective_role(chat: EventChat, member: ChatMember) -> str:
    """Re-derive the member's role and refresh the cached value if it drifted."""

    role = resolve_role(chat.event, member.user_id)
    if member.role != role:
        logger.info(
            "Chat %s: role of user %s changed %s -> %s",
            chat.pk,
            member.user_id,
            member.role,
            role,
        )
        member.role = role
        member.save(update_fields=["role"])
    return role


def check_join_eligibility(chat: EventChat, user_id: int, role: str) -> str | None:
    """Return a rejection reason, or None when the user may join.

    Only plain members of members-only chats need a confirmed ticket.
    """

    if not chat.members_only or role != ChatRole.MEMBER:
        return None
    if has_confirmed_ticket(chat.event_id, user_id):
        return None
    return ChatErrorCode.NO_TICKET


def get_member(chat: EventChat, user_id: int) -> ChatMember | None:
    return (
        ChatMember.objects.select_related("user")
        .filter(chat=chat, user_id=user_id)
        .first()
    )
