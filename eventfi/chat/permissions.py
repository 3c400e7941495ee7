"""Fixed role -> permission matrix for event chats."""

from __future__ import annotations

from dataclasses import dataclass

from eventfi.chat.models import ChatRole

ROLE_RANK = {
    ChatRole.MEMBER: 0,
    ChatRole.MODERATOR: 1,
    ChatRole.ORGANIZER: 2,
}


@dataclass(frozen=True)
class RolePermissions:
    can_send: bool = True
    can_delete_own: bool = True
    can_delete_any: bool = False
    can_pin: bool = False
    can_mute: bool = False
    can_announce: bool = False
    can_change_settings: bool = False


ROLE_PERMISSIONS = {
    ChatRole.MEMBER: RolePermissions(),
    ChatRole.MODERATOR: RolePermissions(
        can_delete_any=True,
        can_pin=True,
        can_mute=True,
    ),
    ChatRole.ORGANIZER: RolePermissions(
        can_delete_any=True,
        can_pin=True,
        can_mute=True,
        can_announce=True,
        can_change_settings=True,
    ),
}


def permissions_for(role: str) -> RolePermissions:
    return ROLE_PERMISSIONS.get(role, ROLE_PERMISSIONS[ChatRole.MEMBER])


def role_rank(role: str) -> int:
    return ROLE_RANK.get(role, 0)


def outranks(actor_role: str, target_role: str) -> bool:
    """Moderation only flows downwards: the actor's rank must be strictly higher."""

    return role_rank(actor_role) > role_rank(target_role)
