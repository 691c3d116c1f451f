from __future__ import annotations

from vrc_group_tracker.configs.logging_config import get_logger
from vrc_group_tracker.domain.entities.group import (
    CurrentUser,
    GroupMember,
    GroupSnapshot,
    TrackedState,
)
from vrc_group_tracker.errors import NotGroupMemberError, RemoteApiError
from vrc_group_tracker.utils.cancellation import CancellationToken
from vrc_group_tracker.webclient.VrcApi import VrcApi

log = get_logger(__name__)


class MembershipFetcher:
    """
    Reads role catalogs and member rosters of tracked groups.

    Groups are read one after another. Roster pages are separated by a fixed
    delay, otherwise the platform starts rejecting requests.
    """

    def __init__(
        self,
        api: VrcApi,
        token: CancellationToken,
        current_user: CurrentUser,
        page_size: int = 100,
        page_delay_seconds: float = 1.0,
    ):
        self._api = api
        self._token = token
        self._current_user = current_user
        self._page_size = page_size
        self._page_delay = page_delay_seconds

    async def fetch_group(self, group_id: str) -> GroupSnapshot:
        group = await self._api.get_group(group_id)
        member_count = group.member_count
        log.info("group.fetched name=%s members=%s", group.name, member_count)

        self_member = group.my_member
        if self_member is None:
            raise NotGroupMemberError(group_id)

        log.info("group.roles.start group=%s", group_id)
        roles = await self._api.get_group_roles(group_id)

        log.info("group.members.start group=%s", group_id)
        members = await self._fetch_other_members(group_id, member_count - 1)

        # The roster never reliably lists the caller, so add them explicitly.
        members.append(GroupMember.from_self(self_member, self._current_user))
        log.info("group.members.done group=%s count=%s", group_id, len(members))

        return GroupSnapshot(group=group, roles=tuple(roles), members=tuple(members))

    async def fetch_groups(self, group_ids: list[str]) -> TrackedState:
        snapshots = []
        for group_id in group_ids:
            snapshots.append(await self.fetch_group(group_id))
        return TrackedState.fold(snapshots)

    async def _fetch_other_members(self, group_id: str, expected: int) -> list[GroupMember]:
        members: list[GroupMember] = []
        seen: set[str] = set()
        offset = 0
        while len(members) < expected:
            page = await self._api.get_group_members(group_id, self._page_size, offset)
            if not page:
                raise RemoteApiError(
                    f"group {group_id} roster ended after {len(members)} of {expected} members"
                )
            offset += len(page)
            for member in page:
                # Listings may include the caller; they are added separately.
                if member.user_id == self._current_user.id or member.user_id in seen:
                    continue
                seen.add(member.user_id)
                members.append(member)
            log.info("group.members.page group=%s fetched=%s", group_id, len(members))
            await self._token.sleep(self._page_delay)
        return members
