from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from django.utils import timezone

from eventfi.audit.utils import try_log_action
from eventfi.chat import conf
from eventfi.chat.exceptions import ChatError
from eventfi.chat.exceptions import ChatErrorCode
from eventfi.chat.models import ChatRole
from eventfi.chat.models import EventChat
from eventfi.events.models import Event

from .roles import get_member
from .roles import resolve_effective_role

logger = logging.getLogger(__name__)


def get_or_create_chat(event: Event) -> EventChat:
    """Return the event's chat, creating it with defaults on first access.

    The one-to-one ``event`` key makes concurrent first access safe:
    ``get_or_create`` re-reads the winner when it loses the insert race.
    """

    chat, created = EventChat.objects.get_or_create(event=event)
    if created:
        logger.info("Created chat %s for event %s", chat.pk, event.pk)
    chat.event = event
    return chat


def get_chat(event_id: int) -> EventChat | None:
    return EventChat.objects.select_related("event").filter(event_id=event_id).first()


def require_chat(event_id: int) -> EventChat:
    chat = get_chat(event_id)
    if chat is None:
        raise ChatError(ChatErrorCode.CHAT_NOT_FOUND, "Event chat does not exist")
    return chat


def chat_closes_at(event: Event) -> datetime:
    return event.end_date + conf.grace_period()


def is_joinable(chat: EventChat, event: Event, now: datetime | None = None) -> bool:
    now = now or timezone.now()
    return chat.is_active and now <= chat_closes_at(event)


def update_settings(
    event_id: int,
    user_id: int,
    *,
    slow_mode: int | None = None,
    is_active: bool | None = None,
    actor: Any | None = None,
) -> dict[str, Any]:
    chat = require_chat(event_id)

    if chat.event.organizer_id != user_id:
        member = get_member(chat, user_id)
        if member is None or resolve_effective_role(chat, member) != ChatRole.ORGANIZER:
            raise ChatError(
                ChatErrorCode.NOT_AUTHORIZED,
                "Only the organizer can change chat settings",
            )

    before = {"slowMode": chat.slow_mode, "isActive": chat.is_active}
    update_fields = []
    if slow_mode is not None:
        if slow_mode < 0:
            raise ChatError(
                ChatErrorCode.INVALID_REQUEST, "slowMode must be zero or positive"
            )
        chat.slow_mode = slow_mode
        update_fields.append("slow_mode")
    if is_active is not None:
        chat.is_active = is_active
        update_fields.append("is_active")

    if update_fields:
        chat.save(update_fields=[*update_fields, "updated_at"])

    result = {"slowMode": chat.slow_mode, "isActive": chat.is_active}
    if update_fields:
        try_log_action(
            "chat.settings.updated",
            actor=actor,
            instance=chat,
            message=f"Chat settings updated for event {event_id}",
            before=before,
            after=result,
        )
    return result
