"""Event chat services.

Transports (REST views, the Socket.IO gateway, signals, tasks) import chat
behaviour from here rather than from the individual modules.
"""

from .lifecycle import get_chat
from .lifecycle import get_or_create_chat
from .lifecycle import is_joinable
from .lifecycle import require_chat
from .lifecycle import update_settings
from .membership import JoinResult
from .membership import get_or_join_chat
from .membership import list_user_chats
from .messages import get_messages
from .messages import get_pinned_messages
from .messages import get_recent_messages
from .messages import send_message
from .moderation import ModerationAction
from .moderation import moderate_message
from .moderation import mute_user
from .presence import get_members
from .presence import online_count
from .presence import update_last_seen
from .roles import check_join_eligibility
from .roles import resolve_effective_role
from .roles import resolve_role

__all__ = [
    "JoinResult",
    "ModerationAction",
    "check_join_eligibility",
    "get_chat",
    "get_members",
    "get_messages",
    "get_or_create_chat",
    "get_or_join_chat",
    "get_pinned_messages",
    "get_recent_messages",
    "is_joinable",
    "list_user_chats",
    "moderate_message",
    "mute_user",
    "online_count",
    "require_chat",
    "resolve_effective_role",
    "resolve_role",
    "send_message",
    "update_last_seen",
    "update_settings",
]
