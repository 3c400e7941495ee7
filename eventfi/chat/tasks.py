import logging

from celery import shared_task
from django.utils import timezone

from .models import ChatMember

logger = logging.getLogger(__name__)


@shared_task(name="chat.clear_expired_mutes")
def clear_expired_mutes() -> int:
    """Lift mutes whose ``muted_until`` has passed.

    Sending already clears an expired mute lazily; this keeps member lists
    accurate for members who never try to send again.
    """

    cleared = ChatMember.objects.filter(
        is_muted=True,
        muted_until__isnull=False,
        muted_until__lte=timezone.now(),
    ).update(is_muted=False, muted_until=None)
    if cleared:
        logger.info("Cleared %s expired chat mutes", cleared)
    return cleared
