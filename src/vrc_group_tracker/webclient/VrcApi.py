from __future__ import annotations

from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from vrc_group_tracker.configs.logging_config import get_logger
from vrc_group_tracker.domain.entities.group import CurrentUser, Group, GroupMember, GroupRole
from vrc_group_tracker.errors import RemoteApiError
from vrc_group_tracker.webclient.SessionHttpClient import SessionHttpClient, basic_auth

log = get_logger(__name__)

DEFAULT_MEMBER_SORT = "joinedAt:desc"


def _parse(model, payload: Any, what: str):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise RemoteApiError(f"unexpected {what} payload: {exc.error_count()} error(s)") from exc


def _parse_list(model, payload: Any, what: str) -> list:
    if not isinstance(payload, list):
        raise RemoteApiError(f"unexpected {what} payload: expected a list")
    return [_parse(model, item, what) for item in payload]


class VrcApi:
    """Typed operations on the remote platform API used by the tracker."""

    def __init__(self, http: SessionHttpClient):
        self._http = http

    async def login(self, username: str, password: str) -> CurrentUser | None:
        """
        Start a session with basic credentials.

        Returns None when the platform still wants a second factor.
        """
        payload = await self._http.get("/auth/user", auth=basic_auth(username, password))
        return self._current_user(payload)

    async def get_current_user(self) -> CurrentUser | None:
        payload = await self._http.get("/auth/user")
        return self._current_user(payload)

    async def verify_totp(self, code: str) -> bool:
        payload = await self._http.post("/auth/twofactorauth/totp/verify", json={"code": code})
        return bool(isinstance(payload, dict) and payload.get("verified"))

    async def get_group(self, group_id: str) -> Group:
        payload = await self._http.get(f"/groups/{quote(group_id, safe='')}")
        return _parse(Group, payload, "group")

    async def get_group_roles(self, group_id: str) -> list[GroupRole]:
        payload = await self._http.get(f"/groups/{quote(group_id, safe='')}/roles")
        return _parse_list(GroupRole, payload, "group roles")

    async def get_group_members(
        self,
        group_id: str,
        n: int,
        offset: int,
        sort: str = DEFAULT_MEMBER_SORT,
    ) -> list[GroupMember]:
        payload = await self._http.get(
            f"/groups/{quote(group_id, safe='')}/members",
            params={"n": n, "offset": offset, "sort": sort},
        )
        return _parse_list(GroupMember, payload, "group members")

    @staticmethod
    def _current_user(payload: Any) -> CurrentUser | None:
        if not isinstance(payload, dict):
            raise RemoteApiError("unexpected current user payload")
        if "requiresTwoFactorAuth" in payload and not payload.get("id"):
            log.info("auth.two_factor_required methods=%s", payload.get("requiresTwoFactorAuth"))
            return None
        if not payload.get("id"):
            return None
        return _parse(CurrentUser, payload, "current user")
