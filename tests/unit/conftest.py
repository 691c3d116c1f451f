from __future__ import annotations

import logging

import pytest

from vrc_group_tracker.domain.entities.group import (
    CurrentUser,
    Group,
    GroupMember,
    GroupRole,
)
from vrc_group_tracker.utils.cancellation import CancellationToken

# RFC 6238 test secret ("12345678901234567890"), written the way operators paste it.
TOTP_SECRET = "GEZD GNBV GY3T QOJQ GEZD GNBV GY3T QOJQ"


class FakeClockToken(CancellationToken):
    """Token whose sleeps advance a fake clock instead of waiting."""

    def __init__(self, now: float = 1_000_000_000.0):
        super().__init__()
        self.now = now
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.raise_if_cancelled()
        self.sleeps.append(seconds)
        self.now += seconds


def make_member(user_id: str, name: str, *role_ids: str, group_id: str = "grp_1") -> GroupMember:
    return GroupMember.model_validate(
        {
            "id": f"gmem_{user_id}",
            "groupId": group_id,
            "userId": user_id,
            "roleIds": list(role_ids),
            "user": {"id": user_id, "displayName": name},
        }
    )


def make_role(role_id: str, *codes: str, group_id: str = "grp_1") -> GroupRole:
    return GroupRole.model_validate(
        {"id": role_id, "groupId": group_id, "name": role_id, "permissions": list(codes)}
    )


class FakeVrcApi:
    """In-memory stand-in for VrcApi that records the calls made to it."""

    def __init__(
        self,
        groups: dict[str, Group] | None = None,
        roles: dict[str, list[GroupRole]] | None = None,
        rosters: dict[str, list[GroupMember]] | None = None,
        login_user: CurrentUser | None = None,
        verified_user: CurrentUser | None = None,
        token: FakeClockToken | None = None,
    ):
        self.groups = groups or {}
        self.roles = roles or {}
        self.rosters = rosters or {}
        self.login_user = login_user
        self.verified_user = verified_user
        self.token = token
        self.calls: list[tuple] = []
        self.submitted_codes: list[tuple[str, float | None]] = []

    async def login(self, username: str, password: str) -> CurrentUser | None:
        self.calls.append(("login", username))
        return self.login_user

    async def get_current_user(self) -> CurrentUser | None:
        self.calls.append(("get_current_user",))
        return self.verified_user

    async def verify_totp(self, code: str) -> bool:
        self.calls.append(("verify_totp", code))
        self.submitted_codes.append((code, self.token.now if self.token else None))
        return self.verified_user is not None

    async def get_group(self, group_id: str) -> Group:
        self.calls.append(("get_group", group_id))
        return self.groups[group_id]

    async def get_group_roles(self, group_id: str) -> list[GroupRole]:
        self.calls.append(("get_group_roles", group_id))
        return list(self.roles.get(group_id, []))

    async def get_group_members(self, group_id: str, n: int, offset: int, sort: str = "") -> list[GroupMember]:
        self.calls.append(("get_group_members", group_id, n, offset))
        return list(self.rosters.get(group_id, [])[offset : offset + n])


@pytest.fixture
def carol() -> CurrentUser:
    return CurrentUser(id="usr_c", display_name="Carol")


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
