from __future__ import annotations

import json
from pathlib import Path

from vrc_group_tracker.configs.logging_config import get_logger
from vrc_group_tracker.services.permission_aggregator import UserReport

log = get_logger(__name__)

REPORT_FILE_NAME = "data.json"


def render_report(report: UserReport) -> str:
    # Display names are data, not field names: no key casing is applied.
    document = {name: [p.name for p in perms] for name, perms in report.items()}
    return json.dumps(document, ensure_ascii=False, indent=2)


def write_report(report: UserReport, workspace: Path, output: str) -> Path:
    out_dir = Path(workspace) / output
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / REPORT_FILE_NAME

    text = render_report(report)
    log.info("report.rendered users=%s\n%s", len(report), text)
    path.write_text(text, encoding="utf-8")
    log.info("report.written path=%s", path)
    return path
