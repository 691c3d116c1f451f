from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vrc_group_tracker.auth.authenticator import Authenticator
from vrc_group_tracker.configs.logging_config import get_logger
from vrc_group_tracker.configs.settings import Settings
from vrc_group_tracker.services.membership_service import MembershipFetcher
from vrc_group_tracker.services.permission_aggregator import UserReport, aggregate
from vrc_group_tracker.services.report_service import write_report
from vrc_group_tracker.utils.cancellation import CancellationToken
from vrc_group_tracker.utils.time_utils import utc_now
from vrc_group_tracker.webclient.SessionHttpClient import SessionHttpClient
from vrc_group_tracker.webclient.VrcApi import VrcApi

log = get_logger(__name__)


@dataclass(frozen=True)
class TrackerResult:
    report: UserReport
    path: Path


async def run_tracker(
    settings: Settings,
    token: CancellationToken,
    api: VrcApi | None = None,
) -> TrackerResult:
    """Authenticate, read every tracked group, and write the permission report."""
    settings.validate_inputs()
    group_ids = settings.group_ids()
    started = utc_now()
    log.info("tracker.start groups=%s", len(group_ids))

    http: SessionHttpClient | None = None
    if api is None:
        http = SessionHttpClient(
            base_url=settings.api_base_url,
            user_agent=settings.user_agent,
            token=token,
            timeout=settings.http_timeout_seconds,
        )
        api = VrcApi(http)

    try:
        authenticator = Authenticator(
            api, token, safety_margin_seconds=settings.totp_safety_margin_seconds
        )
        current_user = await authenticator.authenticate(
            settings.username, settings.password, settings.key
        )

        fetcher = MembershipFetcher(
            api,
            token,
            current_user,
            page_size=settings.members_page_size,
            page_delay_seconds=settings.members_page_delay_seconds,
        )
        state = await fetcher.fetch_groups(group_ids)
    finally:
        if http is not None:
            await http.aclose()

    report = aggregate(state.roles, state.members)
    token.raise_if_cancelled()
    path = write_report(report, settings.workspace, settings.output)

    elapsed = (utc_now() - started).total_seconds()
    log.info("tracker.done users=%s elapsed_s=%.1f", len(report), elapsed)
    return TrackerResult(report=report, path=path)
