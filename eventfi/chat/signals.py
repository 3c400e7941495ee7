import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.db.models.signals import pre_save
from django.dispatch import receiver

from eventfi.events.models import BookingOrder
from eventfi.events.models import Event

from .exceptions import ChatError
from .services import get_or_create_chat
from .services import get_or_join_chat

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Event)
def ensure_event_chat(sender, instance, created, **kwargs):
    if created:
        get_or_create_chat(instance)


@receiver(pre_save, sender=BookingOrder)
def store_old_status(sender, instance, **kwargs):
    if instance.pk:
        instance._old_status = (  # noqa: SLF001
            BookingOrder.objects.filter(pk=instance.pk)
            .values_list("status", flat=True)
            .first()
        )
    else:
        instance._old_status = None  # noqa: SLF001


def _auto_join(event_id: int, user_id: int) -> None:
    try:
        result = get_or_join_chat(event_id, user_id)
    except ChatError as exc:
        logger.warning(
            "Auto-join of user %s to chat for event %s failed: %s",
            user_id,
            event_id,
            exc.code,
        )
        return
    except Exception:
        logger.exception(
            "Auto-join of user %s to chat for event %s failed", user_id, event_id
        )
        return
    if not result.can_join:
        logger.info(
            "User %s not auto-joined to chat for event %s: %s",
            user_id,
            event_id,
            result.reason,
        )


@receiver(post_save, sender=BookingOrder)
def join_chat_on_confirmation(sender, instance, created, **kwargs):
    old_status = getattr(instance, "_old_status", None)
    if instance.status != BookingOrder.Status.CONFIRMED:
        return
    if not created and old_status == BookingOrder.Status.CONFIRMED:
        return
    event_id, user_id = instance.event_id, instance.user_id
    transaction.on_commit(lambda: _auto_join(event_id, user_id))
