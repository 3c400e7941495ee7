"""Message pipeline: validation, persistence and history reads."""

from __future__ import annotations

import logging
import math
from typing import Any

from django.db.models import Q
from django.utils import timezone

from eventfi.chat import conf
from eventfi.chat.exceptions import ChatError
from eventfi.chat.exceptions import ChatErrorCode
from eventfi.chat.models import ChatMember
from eventfi.chat.models import ChatMessage
from eventfi.chat.models import ChatRole
from eventfi.chat.models import EventChat
from eventfi.chat.models import MessageType
from eventfi.chat.permissions import permissions_for

from .formatting import format_message
from .lifecycle import is_joinable
from .lifecycle import require_chat
from .presence import touch
from .roles import get_member
from .roles import resolve_effective_role

logger = logging.getLogger(__name__)

USER_SENDABLE_TYPES = frozenset(
    {MessageType.TEXT, MessageType.IMAGE, MessageType.ANNOUNCEMENT},
)


def _validate_content(content: Any) -> str:
    if not isinstance(content, str):
        raise ChatError(ChatErrorCode.INVALID_MESSAGE, "Message content is required")
    max_length = conf.max_message_length()
    if len(content) > max_length:
        raise ChatError(
            ChatErrorCode.MESSAGE_TOO_LONG,
            f"Max {max_length} characters",
            max_length=max_length,
        )
    if not content.strip():
        raise ChatError(ChatErrorCode.INVALID_MESSAGE, "Message content is required")
    return content


def _clear_expired_mute(member: ChatMember, now) -> None:
    if not member.is_muted:
        return
    if member.mute_active(now):
        raise ChatError(
            ChatErrorCode.USER_MUTED,
            "You are muted",
            muted_until=member.muted_until,
        )
    member.is_muted = False
    member.muted_until = None
    member.save(update_fields=["is_muted", "muted_until"])


def _check_slow_mode(chat: EventChat, user_id: int, role: str, now) -> None:
    if chat.slow_mode <= 0 or role != ChatRole.MEMBER:
        return
    last_sent = (
        ChatMessage.objects.filter(chat=chat, sender_id=user_id)
        .order_by("-created_at")
        .values_list("created_at", flat=True)
        .first()
    )
    if last_sent is None:
        return
    elapsed = (now - last_sent).total_seconds()
    if elapsed < chat.slow_mode:
        retry_after = math.ceil(chat.slow_mode - elapsed)
        raise ChatError(
            ChatErrorCode.SLOW_MODE,
            f"Please wait before sending another message: {retry_after}s",
            retry_after=retry_after,
        )


def _resolve_reply_target(chat: EventChat, reply_to_id: Any) -> ChatMessage | None:
    if reply_to_id in (None, ""):
        return None
    try:
        reply_to_id = int(reply_to_id)
    except (TypeError, ValueError):
        raise ChatError(ChatErrorCode.NOT_FOUND, "Reply target not found") from None
    target = (
        ChatMessage.objects.visible()
        .select_related("sender")
        .filter(pk=reply_to_id, chat=chat)
        .first()
    )
    if target is None:
        raise ChatError(ChatErrorCode.NOT_FOUND, "Reply target not found")
    return target


def send_message(  # noqa: PLR0913
    event_id: int,
    user_id: int,
    content: Any,
    message_type: str = MessageType.TEXT,
    reply_to_id: Any = None,
) -> dict[str, Any]:
    """Validate and persist a message, returning its formatted payload.

    Checks run in a fixed order: length, chat state, membership, mute,
    announcement permission, slow-mode. A rejected send writes no message;
    it may still refresh the cached role or clear an expired mute.
    """

    content = _validate_content(content)
    message_type = str(message_type or MessageType.TEXT).lower()
    if message_type not in MessageType.values:
        raise ChatError(ChatErrorCode.INVALID_MESSAGE, "Unknown message type")

    chat = require_chat(event_id)
    now = timezone.now()
    if not is_joinable(chat, chat.event, now):
        raise ChatError(ChatErrorCode.CHAT_DISABLED, "Chat is currently disabled")

    member = get_member(chat, user_id)
    if member is None:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "Join the chat before sending")

    role = resolve_effective_role(chat, member)
    _clear_expired_mute(member, now)

    if message_type not in USER_SENDABLE_TYPES:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "System messages are reserved")
    permissions = permissions_for(role)
    if not permissions.can_send:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "You cannot send messages")
    if message_type == MessageType.ANNOUNCEMENT and not permissions.can_announce:
        raise ChatError(
            ChatErrorCode.NOT_AUTHORIZED, "Only the organizer can post announcements"
        )

    _check_slow_mode(chat, user_id, role, now)
    reply_to = _resolve_reply_target(chat, reply_to_id)

    message = ChatMessage.objects.create(
        chat=chat,
        sender=member.user,
        content=content,
        type=message_type,
        reply_to=reply_to,
    )
    touch(member, now)
    logger.debug("Chat %s: user %s sent message %s", chat.pk, user_id, message.pk)
    return format_message(message, role)


def _older_than(message: ChatMessage) -> Q:
    return Q(created_at__lt=message.created_at) | Q(
        created_at=message.created_at, pk__lt=message.pk
    )


def _role_map(chat: EventChat, messages: list[ChatMessage]) -> dict[int, str]:
    sender_ids = {message.sender_id for message in messages}
    return dict(
        ChatMember.objects.filter(chat=chat, user_id__in=sender_ids).values_list(
            "user_id", "role"
        ),
    )


def get_recent_messages(chat: EventChat, limit: int) -> list[dict[str, Any]]:
    """Newest ``limit`` visible messages in ascending time order."""

    page = list(
        chat.messages.visible()
        .select_related("sender", "reply_to__sender")
        .order_by("-created_at", "-id")[:limit],
    )
    roles = _role_map(chat, page)
    return [
        format_message(message, roles.get(message.sender_id))
        for message in reversed(page)
    ]


def get_messages(
    event_id: int,
    user_id: int,
    *,
    before: Any = None,
    limit: Any = None,
) -> dict[str, Any]:
    """Cursor-paginated history, newest page first, returned oldest-to-newest.

    ``before`` is a message id; only strictly older visible messages are
    returned. ``hasMore`` tells whether anything older remains.
    """

    chat = require_chat(event_id)
    if get_member(chat, user_id) is None:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "Join the chat to read messages")

    limit = conf.clamp_limit(limit, default=conf.page_size_default())
    visible = chat.messages.visible()
    messages = visible.select_related("sender", "reply_to__sender")

    if before not in (None, ""):
        try:
            cursor = ChatMessage.objects.filter(pk=int(before), chat=chat).first()
        except (TypeError, ValueError):
            cursor = None
        if cursor is None:
            raise ChatError(ChatErrorCode.NOT_FOUND, "Cursor message not found")
        messages = messages.filter(_older_than(cursor))

    page = list(messages.order_by("-created_at", "-id")[:limit])
    has_more = bool(page) and visible.filter(_older_than(page[-1])).exists()

    roles = _role_map(chat, page)
    return {
        "messages": [
            format_message(message, roles.get(message.sender_id))
            for message in reversed(page)
        ],
        "hasMore": has_more,
    }


def get_pinned_messages(event_id: int, user_id: int) -> list[dict[str, Any]]:
    chat = require_chat(event_id)
    if get_member(chat, user_id) is None:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "Join the chat to read messages")

    pinned = list(
        chat.messages.visible()
        .filter(is_pinned=True)
        .select_related("sender", "reply_to__sender")
        .order_by("-created_at", "-id"),
    )
    roles = _role_map(chat, pinned)
    return [format_message(message, roles.get(message.sender_id)) for message in pinned]
