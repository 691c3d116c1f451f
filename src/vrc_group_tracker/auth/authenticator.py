from __future__ import annotations

from typing import Callable

from vrc_group_tracker.auth.totp import Totp
from vrc_group_tracker.configs.logging_config import get_logger
from vrc_group_tracker.domain.entities.group import CurrentUser
from vrc_group_tracker.errors import AuthenticationError, InputError, RemoteApiError
from vrc_group_tracker.utils.cancellation import CancellationToken
from vrc_group_tracker.utils.time_utils import now_seconds
from vrc_group_tracker.webclient.VrcApi import VrcApi

log = get_logger(__name__)


class Authenticator:
    """
    Logs in with username/password, falling back to one TOTP verification.

    There is exactly one 2FA attempt. If the identity is still unresolved
    after it, the secret is assumed to be wrong and the run stops.
    """

    def __init__(
        self,
        api: VrcApi,
        token: CancellationToken,
        safety_margin_seconds: int = 5,
        clock: Callable[[], float] = now_seconds,
    ):
        self._api = api
        self._token = token
        self._safety_margin = safety_margin_seconds
        self._clock = clock

    async def authenticate(self, username: str, password: str, totp_secret: str) -> CurrentUser:
        log.info("auth.login.start")
        try:
            current_user = await self._api.login(username, password)
        except RemoteApiError as exc:
            if exc.error_code == 401:
                raise AuthenticationError(f"login rejected: {exc.message}") from exc
            raise

        if current_user is None:
            log.info("auth.2fa.needed")
            current_user = await self._verify_second_factor(totp_secret)

        log.info("auth.login.ok display_name=%s", current_user.display_name)
        return current_user

    async def _verify_second_factor(self, totp_secret: str) -> CurrentUser:
        if not totp_secret.strip():
            raise InputError("2FA is required but no 2FA secret was provided")
        totp = Totp(totp_secret)

        # A code that expires in flight is rejected and never retried.
        remaining = totp.remaining_seconds(self._clock())
        if remaining < self._safety_margin:
            log.info("auth.2fa.wait_for_new_code seconds=%s", remaining + 1)
            await self._token.sleep(remaining + 1)

        log.info("auth.2fa.verify")
        verified = await self._api.verify_totp(totp.code(self._clock()))
        current_user = await self._api.get_current_user()
        if current_user is None:
            log.error("auth.2fa.failed verified=%s", verified)
            raise AuthenticationError("failed to validate 2FA")
        return current_user
