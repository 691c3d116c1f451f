from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Immutable view of a remote payload. Unknown fields are ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class CurrentUser(ApiModel):
    id: str
    display_name: str


class GroupMyMember(ApiModel):
    """The caller's own membership record, as embedded in the group payload."""

    id: str | None = None
    group_id: str | None = None
    user_id: str | None = None
    role_ids: tuple[str, ...] = ()
    is_representing: bool = False
    joined_at: datetime | None = None
    membership_status: str | None = None
    visibility: str | None = None
    is_subscribed_to_announcements: bool = False


class Group(ApiModel):
    id: str
    name: str
    member_count: int = Field(ge=0)
    my_member: GroupMyMember | None = None


class GroupRole(ApiModel):
    id: str
    group_id: str | None = None
    name: str | None = None
    permissions: tuple[str, ...] = ()


class GroupMemberUser(ApiModel):
    id: str
    display_name: str


class GroupMember(ApiModel):
    id: str | None = None
    group_id: str | None = None
    user_id: str
    is_representing: bool = False
    user: GroupMemberUser
    role_ids: tuple[str, ...] = ()
    joined_at: datetime | None = None
    membership_status: str | None = None
    visibility: str | None = None
    is_subscribed_to_announcements: bool = False

    @model_validator(mode="before")
    @classmethod
    def fill_user_id(cls, data: Any) -> Any:
        # Listings sometimes carry only the nested user object.
        if isinstance(data, dict) and not data.get("userId") and not data.get("user_id"):
            user = data.get("user")
            if isinstance(user, dict) and user.get("id"):
                return {**data, "userId": user["id"]}
        return data

    @classmethod
    def from_self(cls, self_member: GroupMyMember, current_user: CurrentUser) -> GroupMember:
        """Complete the caller's partial record with the identity known from login."""
        return cls(
            id=self_member.id,
            group_id=self_member.group_id,
            user_id=self_member.user_id or current_user.id,
            is_representing=self_member.is_representing,
            user=GroupMemberUser(id=current_user.id, display_name=current_user.display_name),
            role_ids=self_member.role_ids,
            joined_at=self_member.joined_at,
            membership_status=self_member.membership_status,
            visibility=self_member.visibility,
            is_subscribed_to_announcements=self_member.is_subscribed_to_announcements,
        )


class GroupSnapshot(ApiModel):
    """Everything fetched for one tracked group."""

    group: Group
    roles: tuple[GroupRole, ...]
    members: tuple[GroupMember, ...]


class TrackedState(ApiModel):
    """Roles and members of every tracked group, folded together."""

    roles: tuple[GroupRole, ...] = ()
    members: tuple[GroupMember, ...] = ()

    @classmethod
    def fold(cls, snapshots: list[GroupSnapshot]) -> TrackedState:
        roles: list[GroupRole] = []
        members: list[GroupMember] = []
        for snapshot in snapshots:
            roles.extend(snapshot.roles)
            members.extend(snapshot.members)
        return cls(roles=tuple(roles), members=tuple(members))
