from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from vrc_group_tracker.domain.entities.group import GroupMember, GroupRole
from vrc_group_tracker.domain.entities.permission import ALL_PERMISSIONS, RolePermission, decode_all

UserReport = dict[str, list[RolePermission]]


def effective_permissions(
    role_ids: set[str], roles: Iterable[GroupRole]
) -> list[RolePermission]:
    """Union of the permissions of every role in `role_ids`, in declaration order."""
    perms = {p for role in roles if role.id in role_ids for p in decode_all(role.permissions)}
    if RolePermission.Owner in perms:
        return list(ALL_PERMISSIONS)
    return sorted(perms)


def aggregate(roles: Iterable[GroupRole], members: Iterable[GroupMember]) -> UserReport:
    """
    Merge permissions per display name across every tracked group.

    Members are keyed by display name, so records from different groups (or
    different accounts) sharing a display name are merged. Keys come out
    sorted.
    """
    roles = list(roles)

    # Decode every code up front so an unknown one fails the whole run.
    for role in roles:
        decode_all(role.permissions)

    role_ids_by_name: dict[str, set[str]] = defaultdict(set)
    for member in members:
        role_ids_by_name[member.user.display_name].update(member.role_ids)

    return {
        name: effective_permissions(role_ids_by_name[name], roles)
        for name in sorted(role_ids_by_name)
    }
