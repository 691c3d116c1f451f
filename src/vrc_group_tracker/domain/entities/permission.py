from __future__ import annotations

from enum import Enum
from functools import total_ordering
from typing import Iterable

from vrc_group_tracker.errors import UnknownPermissionCodeError


@total_ordering
class RolePermission(Enum):
    """
    Group role permissions.

    Declaration order is the sort order used in reports. Values are the
    wire codes sent by the remote API.
    """

    Owner = "*"
    ManageGroupMemberData = "group-members-manage"
    ManageGroupData = "group-data-manage"
    ViewAuditLog = "group-audit-view"
    ManageGroupRoles = "group-roles-manage"
    AssignGroupRoles = "group-roles-assign"
    ManageGroupBans = "group-bans-manage"
    RemoveGroupMembers = "group-members-remove"
    ViewAllMembers = "group-members-viewall"
    ManageGroupAnnouncement = "group-announcement-manage"
    ManageGroupGalleries = "group-galleries-manage"
    ManageGroupInvites = "group-invites-manage"
    ModerateGroupInstances = "group-instance-moderate"
    GroupInstanceQueuePriority = "group-instance-queue-priority"
    CreateGroupPublicInstances = "group-instance-public-create"
    CreateGroupPlusInstances = "group-instance-plus-create"
    CreateMembersOnlyGroupInstances = "group-instance-open-create"
    RoleRestrictMembersOnlyInstances = "group-instance-restricted-create"
    PortalToGroupPlusInstances = "group-instance-plus-portal"
    UnlockedPortalToGroupPlusInstances = "group-instance-plus-portal-unlocked"
    JoinGroupInstances = "group-instance-join"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RolePermission):
            return NotImplemented
        return _ORDER[self] < _ORDER[other]


_ORDER: dict[RolePermission, int] = {p: i for i, p in enumerate(RolePermission)}

ALL_PERMISSIONS: tuple[RolePermission, ...] = tuple(RolePermission)

_BY_CODE: dict[str, RolePermission] = {p.value: p for p in RolePermission}

# An Enum silently turns duplicate values into aliases; refuse that here.
if len(_BY_CODE) != len(RolePermission.__members__):
    raise RuntimeError("permission code table is not one-to-one")


def decode(code: str) -> RolePermission:
    try:
        return _BY_CODE[code]
    except KeyError:
        raise UnknownPermissionCodeError(code) from None


def encode(permission: RolePermission) -> str:
    return permission.value


def decode_all(codes: Iterable[str]) -> list[RolePermission]:
    return [decode(c) for c in codes]
