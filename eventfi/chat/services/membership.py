"""Joining chats and listing the chats a user belongs to."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.db.models import Count
from django.utils import timezone

from eventfi.chat.exceptions import ChatError
from eventfi.chat.exceptions import ChatErrorCode
from eventfi.chat.models import ChatMember
from eventfi.chat.models import ChatMessage
from eventfi.chat.models import EventChat
from eventfi.events.services import get_event

from .formatting import isoformat
from .formatting import preview_last_message
from .lifecycle import get_or_create_chat
from .lifecycle import is_joinable
from .presence import online_count
from .roles import check_join_eligibility
from .roles import resolve_role

logger = logging.getLogger(__name__)


@dataclass
class JoinResult:
    can_join: bool
    reason: str | None = None
    chat: EventChat | None = None
    member: ChatMember | None = None
    role: str | None = None
    info: dict[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"chat": self.info, "canJoin": self.can_join, "reason": self.reason}


def _chat_info(  # noqa: PLR0913
    chat: EventChat,
    *,
    role: str,
    member_count: int,
    online: int,
    is_muted: bool,
) -> dict[str, Any]:
    return {
        "id": chat.pk,
        "eventId": chat.event_id,
        "isActive": chat.is_active,
        "slowMode": chat.slow_mode,
        "membersOnly": chat.members_only,
        "memberCount": member_count,
        "onlineCount": online,
        "userRole": role,
        "isMuted": is_muted,
    }


def get_or_join_chat(event_id: int, user_id: int) -> JoinResult:
    """Open the event's chat for ``user_id``, joining it when eligible.

    Safe to call repeatedly; later calls only refresh the membership's role
    cache and ``last_seen_at``.
    """

    event = get_event(event_id)
    if event is None:
        raise ChatError(ChatErrorCode.CHAT_NOT_FOUND, "Event not found")

    chat = get_or_create_chat(event)
    now = timezone.now()
    if not is_joinable(chat, event, now):
        return JoinResult(can_join=False, reason=ChatErrorCode.CHAT_DISABLED)

    role = resolve_role(event, user_id)
    reason = check_join_eligibility(chat, user_id, role)
    if reason is not None:
        info = _chat_info(
            chat,
            role=role,
            member_count=chat.members.count(),
            online=0,
            is_muted=False,
        )
        return JoinResult(
            can_join=False, reason=reason, chat=chat, role=role, info=info
        )

    member, created = ChatMember.objects.select_related("user").get_or_create(
        chat=chat,
        user_id=user_id,
        defaults={"role": role, "last_seen_at": now},
    )
    if created:
        logger.info("User %s joined chat %s as %s", user_id, chat.pk, role)
    else:
        member.role = role
        member.last_seen_at = now
        member.save(update_fields=["role", "last_seen_at"])

    info = _chat_info(
        chat,
        role=role,
        member_count=chat.members.count(),
        online=online_count(chat, now),
        is_muted=member.mute_active(now),
    )
    return JoinResult(
        can_join=True, chat=chat, member=member, role=role, info=info
    )


def _format_event_date(value: datetime) -> str:
    local = timezone.localtime(value)
    return f"{local:%B} {local.day}, {local.year}"


def _unread_count(membership: ChatMember) -> int:
    return (
        ChatMessage.objects.visible()
        .filter(chat_id=membership.chat_id, created_at__gt=membership.last_seen_at)
        .exclude(sender_id=membership.user_id)
        .count()
    )


def list_user_chats(user_id: int) -> list[dict[str, Any]]:
    """Chat previews for every chat the user has joined, most recent activity first."""

    memberships = (
        ChatMember.objects.filter(user_id=user_id)
        .select_related("chat__event__organizer")
        .annotate(participant_count=Count("chat__members"))
        .order_by("-last_seen_at")
    )

    previews = []
    for membership in memberships:
        chat = membership.chat
        event = chat.event
        last_message = (
            ChatMessage.objects.visible()
            .filter(chat=chat)
            .select_related("sender")
            .order_by("-created_at", "-id")
            .first()
        )
        organizer_name = event.organizer.display_name or "Organizer"
        previews.append(
            {
                "id": chat.pk,
                "eventId": event.pk,
                "eventName": event.title,
                "eventDate": _format_event_date(event.start_date),
                "eventLocation": event.location_label,
                "eventImage": event.cover_image or None,
                "organizerName": organizer_name,
                "participantCount": membership.participant_count,
                "unreadCount": _unread_count(membership),
                "lastMessage": preview_last_message(last_message),
                "lastMessageTime": isoformat(last_message.created_at)
                if last_message
                else None,
                "userRole": membership.role,
            },
        )

    # Chats without messages keep their last-seen order at the end.
    with_messages = [p for p in previews if p["lastMessageTime"]]
    without_messages = [p for p in previews if not p["lastMessageTime"]]
    with_messages.sort(
        key=lambda p: datetime.fromisoformat(p["lastMessageTime"]), reverse=True
    )
    return with_messages + without_messages
