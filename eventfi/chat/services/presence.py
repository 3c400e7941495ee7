"""Presence is derived, not stored: a member is online when their
``last_seen_at`` falls inside the trailing presence window.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from django.utils import timezone

from eventfi.chat import conf
from eventfi.chat.exceptions import ChatError
from eventfi.chat.exceptions import ChatErrorCode
from eventfi.chat.models import ChatMember
from eventfi.chat.models import EventChat
from eventfi.events.services import get_user_profile

from .formatting import isoformat
from .lifecycle import get_chat
from .lifecycle import require_chat
from .roles import get_member


def online_since(now: datetime | None = None) -> datetime:
    return (now or timezone.now()) - conf.presence_window()


def is_online(member: ChatMember, now: datetime | None = None) -> bool:
    return member.last_seen_at >= online_since(now)


def online_count(chat: EventChat, now: datetime | None = None) -> int:
    return ChatMember.objects.filter(
        chat=chat, last_seen_at__gte=online_since(now)
    ).count()


def touch(member: ChatMember, now: datetime | None = None) -> None:
    member.last_seen_at = now or timezone.now()
    ChatMember.objects.filter(pk=member.pk).update(last_seen_at=member.last_seen_at)


def update_last_seen(event_id: int, user_id: int) -> bool:
    """Heartbeat. Returns False (and does nothing) when there is no membership."""

    chat = get_chat(event_id)
    if chat is None:
        return False
    updated = ChatMember.objects.filter(chat=chat, user_id=user_id).update(
        last_seen_at=timezone.now(),
    )
    return bool(updated)


def format_member(member: ChatMember, now: datetime | None = None) -> dict[str, Any]:
    profile = get_user_profile(member.user)
    return {
        "id": member.pk,
        "userId": member.user_id,
        "name": profile.name,
        "avatar": profile.avatar,
        "role": member.role,
        "isMuted": member.mute_active(now or timezone.now()),
        "isOnline": is_online(member, now),
        "joinedAt": isoformat(member.joined_at),
    }


def get_members(
    event_id: int,
    user_id: int,
    *,
    online_only: bool = False,
    limit: int | None = None,
) -> dict[str, Any]:
    chat = require_chat(event_id)
    if get_member(chat, user_id) is None:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "Join the chat to see its members")

    now = timezone.now()
    limit = conf.clamp_limit(limit, default=conf.members_page_default())
    since = online_since(now)

    members = ChatMember.objects.filter(chat=chat).select_related("user")
    total = members.count()
    online = members.filter(last_seen_at__gte=since).count()
    if online_only:
        members = members.filter(last_seen_at__gte=since)
    page = members.order_by("-last_seen_at", "-id")[:limit]

    return {
        "members": [format_member(member, now) for member in page],
        "total": total,
        "online": online,
    }
