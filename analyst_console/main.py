"""
FastAPI host for the analyst console.

Routes:
- /ui, /run: submission form and per-session submission (one in flight per session)
- /render: render an arbitrary JSON payload without calling the service
- /report/{id}, /report/{id}/pdf: stored reports
"""

import logging
import os
import uuid
from collections import OrderedDict
from typing import Any, List, Optional

from fastapi import Body, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response

from .config import configure_logging, load_settings
from .page import render_page, render_report
from .renderer import PROVENANCE, RESULTS, Region, render
from .reports import is_safe_report_id, load_report, save_report
from .schemas import Attachment
from .session import OUTCOME_REJECTED, ReportSession, SubmissionInProgressError

LOG_LEVEL = configure_logging()
logger = logging.getLogger(__name__)

SETTINGS = load_settings()
logger.info("Analyst console starting with LOG_LEVEL=%s api_base=%s encoding=%s", LOG_LEVEL, SETTINGS.api_base, SETTINGS.encoding)

app = FastAPI(title="Analyst Console")

SESSION_COOKIE = "analyst_session"
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "256"))

# Least recently used first
_SESSIONS: "OrderedDict[str, ReportSession]" = OrderedDict()


def _evict_idle_sessions() -> None:
    for session_id in list(_SESSIONS):
        if len(_SESSIONS) <= MAX_SESSIONS:
            break
        if not _SESSIONS[session_id].busy:
            del _SESSIONS[session_id]
            logger.info("sessions.evicted session_id=%s remaining=%d", session_id, len(_SESSIONS))


def _get_session(request: Request) -> ReportSession:
    """Session for the caller: x-session-id header, else the browser cookie, else a new id."""
    session_id = (
        request.headers.get("x-session-id")
        or request.cookies.get(SESSION_COOKIE)
        or str(uuid.uuid4())
    )
    session = _SESSIONS.get(session_id)
    if session is None:
        session = ReportSession(SETTINGS, session_id=session_id)
        _SESSIONS[session_id] = session
        _evict_idle_sessions()
    else:
        _SESSIONS.move_to_end(session_id)
    return session


def _with_session_cookie(response: Response, session: ReportSession) -> Response:
    response.set_cookie(SESSION_COOKIE, session.session_id, httponly=True, samesite="lax")
    return response


@app.get("/")
def root():
    return {"ok": True, "service": "analyst_console"}


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.get("/ui", response_class=HTMLResponse)
def ui(request: Request):
    session = _get_session(request)
    return _with_session_cookie(HTMLResponse(content=render_page(session)), session)


async def _read_uploads(files: Optional[List[UploadFile]]) -> List[Attachment]:
    uploads = []
    for f in files or []:
        content = await f.read()
        # Browsers send an empty unnamed part when no file was picked
        if not f.filename and not content:
            continue
        uploads.append(
            Attachment(
                name=f.filename or "upload.bin",
                content=content,
                media_type=f.content_type or "application/octet-stream",
            )
        )
    return uploads


@app.post("/run", response_class=HTMLResponse)
async def run_endpoint(
    request: Request,
    brief: str = Form(""),
    urls: str = Form(""),
    files: Optional[List[UploadFile]] = File(None),
):
    session = _get_session(request)
    if session.busy:
        raise HTTPException(status_code=409, detail="A submission is already in flight for this session.")

    try:
        session.attachments = await _read_uploads(files)
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Error reading uploaded files: {e}")

    try:
        return _with_session_cookie(await _submit_and_store(session, brief, urls), session)
    finally:
        # The form re-uploads its files on every post
        session.attachments = []


async def _submit_and_store(session: ReportSession, brief: str, urls: str) -> HTMLResponse:
    logger.info(
        "run.request session_id=%s brief_chars=%d files=%d",
        session.session_id,
        len(brief or ""),
        len(session.attachments),
    )

    try:
        outcome = await session.submit(brief, urls)
    except SubmissionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if outcome == OUTCOME_REJECTED:
        return HTMLResponse(content=render_page(session), status_code=400)

    report_id = None
    try:
        report_id = save_report(SETTINGS.reports_dir, render_report(session.results, session.provenance))
    except OSError:
        logger.warning("run.report_save_failed session_id=%s", session.session_id, exc_info=True)

    logger.info(
        "run.response session_id=%s outcome=%s results=%s provenance=%d report_id=%s",
        session.session_id,
        outcome,
        session.results.titles(),
        len(session.provenance),
        report_id,
    )
    headers = {"X-Report-Id": report_id} if report_id else None
    return HTMLResponse(content=render_page(session, report_id=report_id), headers=headers)


@app.post("/render")
def render_endpoint(payload: Any = Body(...)):
    results = Region(RESULTS)
    provenance = Region(PROVENANCE)
    render(payload, results, provenance, error_policy=SETTINGS.error_policy)
    return {
        "results": [c.model_dump() for c in results],
        "provenance": [c.model_dump() for c in provenance],
        "html": render_report(results, provenance),
    }


def _stored_report(report_id: str) -> str:
    if not is_safe_report_id(report_id):
        raise HTTPException(status_code=400, detail="Invalid report_id")
    try:
        html = load_report(SETTINGS.reports_dir, report_id)
    except OSError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if html is None:
        raise HTTPException(
            status_code=404,
            detail="Report not found. Reports stored on local disk may disappear after a restart/redeploy.",
        )
    return html


@app.get("/report/{report_id}", response_class=HTMLResponse)
def get_report(report_id: str):
    return HTMLResponse(content=_stored_report(report_id))


@app.get("/report/{report_id}/pdf")
def get_report_pdf(report_id: str):
    """Download a stored report as PDF.

    Uses Playwright (headless Chromium) to print the HTML to PDF.
    """
    html = _stored_report(report_id)

    try:
        from playwright.sync_api import sync_playwright  # type: ignore

        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True)
            page = browser.new_page()
            page.set_content(html, wait_until="load")
            pdf_bytes = page.pdf(print_background=True, format="A4")
            browser.close()
        logger.info("PDF generated with Playwright report_id=%s bytes=%d", report_id, len(pdf_bytes))
    except Exception as e:
        logger.error("Playwright PDF generation failed", exc_info=True)
        raise HTTPException(
            status_code=501,
            detail=(
                "PDF export is not available in this environment. "
                "Install Playwright and its Chromium browser: `python -m pip install playwright` then `python -m playwright install chromium`. "
                f"Error: {e}"
            ),
        )

    filename = f"report_{report_id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )
