"""Chat tunables, read from Django settings with sensible defaults."""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings


def max_message_length() -> int:
    return int(getattr(settings, "CHAT_MAX_MESSAGE_LENGTH", 1000))


def grace_period() -> timedelta:
    """How long after the event ends the chat stays joinable."""

    return timedelta(hours=int(getattr(settings, "CHAT_GRACE_PERIOD_HOURS", 24)))


def presence_window() -> timedelta:
    """Members seen within this trailing window count as online."""

    return timedelta(
        minutes=int(getattr(settings, "CHAT_PRESENCE_WINDOW_MINUTES", 5)),
    )


def page_size_default() -> int:
    return int(getattr(settings, "CHAT_PAGE_SIZE_DEFAULT", 50))


def page_size_max() -> int:
    return int(getattr(settings, "CHAT_PAGE_SIZE_MAX", 100))


def snapshot_size() -> int:
    """Number of recent messages sent to a connection when it joins a room."""

    return int(getattr(settings, "CHAT_SNAPSHOT_SIZE", 50))


def members_page_default() -> int:
    return int(getattr(settings, "CHAT_MEMBERS_PAGE_DEFAULT", 20))


def typing_timeout_seconds() -> float:
    return float(getattr(settings, "CHAT_TYPING_TIMEOUT_SECONDS", 3.0))


def reply_preview_length() -> int:
    return int(getattr(settings, "CHAT_REPLY_PREVIEW_LENGTH", 100))


def clamp_limit(value, *, default: int, maximum: int | None = None) -> int:
    """Coerce a user-supplied page size into ``[1, maximum]``."""

    maximum = maximum if maximum is not None else page_size_max()
    try:
        limit = int(value)
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, maximum))
