from __future__ import annotations

import logging
from typing import Any

from django.db import transaction

from eventfi.realtime.socketio import emit_event_to_event_chat

logger = logging.getLogger(__name__)


def _publish(event_id: int, event: str, payload: dict[str, Any]) -> None:
    try:
        emit_event_to_event_chat(event_id, event, payload)
    except Exception:
        logger.exception("Failed to publish %s to chat room of event %s", event, event_id)


def publish_after_commit(event_id: int, event: str, payload: dict[str, Any]) -> None:
    """Publish to the event's chat room once the current transaction commits.

    Live clients never see changes that were rolled back, and a delivery
    failure never affects the request that caused it.
    """

    transaction.on_commit(lambda: _publish(event_id, event, payload))


def publish_message_created(event_id: int, message: dict[str, Any]) -> None:
    publish_after_commit(event_id, "message", {"message": message})


def publish_message_moderated(event_id: int, result: dict[str, Any]) -> None:
    publish_after_commit(event_id, "message:moderated", result)


def publish_member_muted(event_id: int, result: dict[str, Any]) -> None:
    publish_after_commit(event_id, "member:muted", result)


def publish_settings_updated(event_id: int, result: dict[str, Any]) -> None:
    publish_after_commit(event_id, "settings:updated", result)
