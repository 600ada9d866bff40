"""
Command-line submission: compose, send once, write the rendered report.

Example:
    analyst-console --brief "Compare revenue 2022 vs 2023" --file data.csv --out report.html
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import List, Optional

from .config import ENCODINGS, configure_logging, load_settings
from .page import render_report
from .session import OUTCOME_DONE, OUTCOME_REJECTED, ReportSession

logger = logging.getLogger(__name__)


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="analyst-console", description="Submit an analysis request and render the response.")
    ap.add_argument("--brief", default="", help="analysis brief text")
    ap.add_argument("--brief-file", default=None, help="read the brief from a file")
    ap.add_argument("--url", action="append", default=[], help="reference URL (repeatable)")
    ap.add_argument("--urls-file", default=None, help="file with one URL per line")
    ap.add_argument("--file", action="append", default=[], help="attachment path (repeatable)")
    ap.add_argument("--encoding", choices=ENCODINGS, default=None, help="override REQUEST_ENCODING")
    ap.add_argument("--base", default=None, help="override ANALYST_API_BASE")
    ap.add_argument("--debug", action="store_true", help="send the debug query flag")
    ap.add_argument("--out", default="report.html", help="where to write the rendered report")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.encoding:
        overrides["encoding"] = args.encoding
    if args.base:
        overrides["api_base"] = args.base
    if args.debug:
        overrides["debug"] = True
    config = dataclasses.replace(load_settings(), **overrides)

    brief = _read_text(args.brief_file) if args.brief_file else args.brief
    url_lines = list(args.url)
    if args.urls_file:
        url_lines.append(_read_text(args.urls_file))

    session = ReportSession(config, session_id="cli")
    for path in args.file:
        session.add_file(path)

    outcome = asyncio.run(session.submit(brief, "\n".join(url_lines)))
    print(session.status)
    if outcome == OUTCOME_REJECTED:
        return 2

    with open(args.out, "w", encoding="utf-8") as f:
        f.write(render_report(session.results, session.provenance))
    logger.info("cli.report_written path=%s results=%s", args.out, session.results.titles())
    return 0 if outcome == OUTCOME_DONE else 1


if __name__ == "__main__":
    sys.exit(main())
