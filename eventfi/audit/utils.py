from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import models
from django.db import transaction

from .models import AuditLog

logger = logging.getLogger(__name__)


def log_action(  # noqa: PLR0913
    action: str,
    *,
    actor: object | None = None,
    instance: models.Model | None = None,
    message: str = "",
    before: dict | list | None = None,
    after: dict | list | None = None,
) -> AuditLog:
    user_model = get_user_model()
    actor_user = actor if isinstance(actor, user_model) else None
    model_name = type(instance).__name__ if instance is not None else ""
    record_id = getattr(instance, "pk", None)
    return AuditLog.objects.create(
        action=action,
        actor=actor_user,
        message=message,
        model_name=model_name,
        record_id=record_id,
        before=before,
        after=after,
    )


def try_log_action(action: str, **kwargs) -> AuditLog | None:
    """Best-effort variant of `log_action` for side work of a primary operation.

    Failures are logged and swallowed so auditing never rolls back the action
    being audited.
    """

    try:
        with transaction.atomic():
            return log_action(action, **kwargs)
    except Exception:
        logger.exception("Failed to write audit log entry %r", action)
        return None
