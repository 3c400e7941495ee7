from __future__ import annotations

from datetime import datetime
from typing import Any

from eventfi.chat import conf
from eventfi.chat.models import ChatMessage
from eventfi.chat.models import ChatRole
from eventfi.chat.models import MessageType
from eventfi.events.services import get_user_profile

LAST_MESSAGE_PREVIEW_LENGTH = 50
ANNOUNCEMENT_PREFIX = "\N{PUBLIC ADDRESS LOUDSPEAKER} "


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def format_reply_preview(message: ChatMessage) -> dict[str, Any] | None:
    reply_to = message.reply_to
    if reply_to is None or reply_to.is_deleted:
        return None
    return {
        "id": reply_to.pk,
        "content": reply_to.content[: conf.reply_preview_length()],
        "senderName": get_user_profile(reply_to.sender).name,
    }


def format_message(message: ChatMessage, role: str | None = None) -> dict[str, Any]:
    profile = get_user_profile(message.sender)
    return {
        "id": message.pk,
        "content": message.content,
        "type": message.type,
        "sender": {
            "id": profile.id,
            "name": profile.name,
            "avatar": profile.avatar,
            "role": role or ChatRole.MEMBER,
        },
        "replyTo": format_reply_preview(message),
        "isPinned": message.is_pinned,
        "createdAt": isoformat(message.created_at),
    }


def preview_last_message(message: ChatMessage | None) -> str:
    """One-line summary used by chat lists, e.g. ``"Ana: see you there"``."""

    if message is None:
        return ""

    content = message.content
    if len(content) > LAST_MESSAGE_PREVIEW_LENGTH:
        content = content[:LAST_MESSAGE_PREVIEW_LENGTH] + "..."

    if message.type == MessageType.SYSTEM:
        return content
    sender_name = get_user_profile(message.sender).name
    if message.type == MessageType.ANNOUNCEMENT:
        return f"{ANNOUNCEMENT_PREFIX}{sender_name}: {content}"
    return f"{sender_name}: {content}"
