from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.db import models
from django.utils import timezone

from eventfi.audit.utils import try_log_action
from eventfi.chat.exceptions import ChatError
from eventfi.chat.exceptions import ChatErrorCode
from eventfi.chat.models import ChatMessage
from eventfi.chat.permissions import outranks
from eventfi.chat.permissions import permissions_for

from .formatting import isoformat
from .lifecycle import require_chat
from .roles import get_member
from .roles import resolve_effective_role

logger = logging.getLogger(__name__)


class ModerationAction(models.TextChoices):
    DELETE = "delete"
    PIN = "pin"
    UNPIN = "unpin"


def moderate_message(
    event_id: int,
    message_id: Any,
    user_id: int,
    action: str,
) -> dict[str, Any]:
    if action not in ModerationAction.values:
        raise ChatError(
            ChatErrorCode.INVALID_ACTION,
            "Action must be one of: delete, pin, unpin",
        )

    chat = require_chat(event_id)
    member = get_member(chat, user_id)
    if member is None:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "You are not a member of this chat")

    try:
        message = ChatMessage.objects.filter(pk=int(message_id), chat=chat).first()
    except (TypeError, ValueError):
        message = None
    if message is None:
        raise ChatError(ChatErrorCode.NOT_FOUND, "Message not found")

    permissions = permissions_for(resolve_effective_role(chat, member))

    if action == ModerationAction.DELETE:
        own = message.sender_id == user_id
        allowed = permissions.can_delete_own if own else permissions.can_delete_any
        if not allowed:
            raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "You cannot delete this message")

        if not message.is_deleted:
            message.is_deleted = True
            message.deleted_by = member.user
            message.save(update_fields=["is_deleted", "deleted_by", "updated_at"])
            try_log_action(
                "chat.message.deleted",
                actor=member.user,
                instance=message,
                message=f"Message {message.pk} deleted in chat {chat.pk}",
                after={"ownMessage": own},
            )
        return {
            "messageId": message.pk,
            "action": "deleted",
            "deletedBy": message.deleted_by_id,
        }

    if not permissions.can_pin:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "You cannot pin messages")
    if message.is_deleted:
        raise ChatError(ChatErrorCode.NOT_FOUND, "Message not found")

    pinned = action == ModerationAction.PIN
    if message.is_pinned != pinned:
        message.is_pinned = pinned
        message.save(update_fields=["is_pinned", "updated_at"])
        try_log_action(
            f"chat.message.{action}ned",
            actor=member.user,
            instance=message,
            message=f"Message {message.pk} {action}ned in chat {chat.pk}",
        )
    return {"messageId": message.pk, "action": action, "isPinned": message.is_pinned}


def mute_user(
    event_id: int,
    target_user_id: int,
    actor_user_id: int,
    duration_minutes: int,
) -> dict[str, Any]:
    """Mute a lower-ranked member for ``duration_minutes``; 0 lifts the mute."""

    if duration_minutes is None or duration_minutes < 0:
        raise ChatError(
            ChatErrorCode.INVALID_REQUEST, "duration must be zero or positive minutes"
        )

    chat = require_chat(event_id)
    actor = get_member(chat, actor_user_id)
    if actor is None:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "You are not a member of this chat")

    actor_role = resolve_effective_role(chat, actor)
    if not permissions_for(actor_role).can_mute:
        raise ChatError(ChatErrorCode.NOT_AUTHORIZED, "You cannot mute members")

    target = get_member(chat, target_user_id)
    if target is None:
        raise ChatError(ChatErrorCode.NOT_FOUND, "User not found in chat")
    if not outranks(actor_role, resolve_effective_role(chat, target)):
        raise ChatError(
            ChatErrorCode.NOT_AUTHORIZED, "You cannot mute a member of equal or higher role"
        )

    before = {"isMuted": target.is_muted, "until": isoformat(target.muted_until)}
    if duration_minutes == 0:
        target.is_muted = False
        target.muted_until = None
    else:
        target.is_muted = True
        target.muted_until = timezone.now() + timedelta(minutes=duration_minutes)
    target.save(update_fields=["is_muted", "muted_until"])

    result = {
        "userId": target.user_id,
        "isMuted": target.is_muted,
        "until": isoformat(target.muted_until),
    }
    try_log_action(
        "chat.member.muted" if target.is_muted else "chat.member.unmuted",
        actor=actor.user,
        instance=target,
        message=f"User {target.user_id} mute updated in chat {chat.pk}",
        before=before,
        after=result,
    )
    logger.info(
        "Chat %s: user %s %s by %s",
        chat.pk,
        target.user_id,
        "muted" if target.is_muted else "unmuted",
        actor_user_id,
    )
    return result
