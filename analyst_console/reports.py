"""
Rendered report storage.

Reports are written as standalone HTML files named by a uuid4 id. Local disk may be
ephemeral on hosted deployments, so a stored report is not guaranteed to survive a
restart.
"""

import logging
import os
import re
import uuid
from typing import Optional

logger = logging.getLogger(__name__)

_REPORT_ID_RE = re.compile(r"^[a-f0-9\-]{36}$")


def new_report_id() -> str:
    return str(uuid.uuid4())


def is_safe_report_id(report_id: str) -> bool:
    return bool(report_id) and bool(_REPORT_ID_RE.match(report_id))


def report_path(reports_dir: str, report_id: str) -> str:
    if not is_safe_report_id(report_id):
        raise ValueError(f"Invalid report_id: {report_id!r}")
    return os.path.join(reports_dir, f"{report_id}.html")


def save_report(reports_dir: str, html: str, report_id: Optional[str] = None) -> str:
    """Write html to disk and return its report id."""
    report_id = report_id or new_report_id()
    os.makedirs(reports_dir, exist_ok=True)
    path = report_path(reports_dir, report_id)
    with open(path, "w", encoding="utf-8") as f:
        f.write(html)
    logger.info("reports.saved report_id=%s bytes=%d", report_id, len(html))
    return report_id


def load_report(reports_dir: str, report_id: str) -> Optional[str]:
    path = report_path(reports_dir, report_id)
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return f.read()
