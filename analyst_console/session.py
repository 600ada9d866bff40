"""
One UI state: pending attachments, output regions, status text and the
submit guard.

Only one submission may be in flight per session. The busy flag is cleared on
success, failure and transport exception alike so the user can retry.
"""

import logging
import mimetypes
import os
from typing import List, Optional, Tuple

import httpx

from .client import post_analysis
from .composer import EmptyRequestError, compose
from .config import ClientConfig
from .markup import escape_html, pretty_bytes
from .renderer import PROVENANCE, RESULTS, Region, render
from .schemas import Attachment, Card

logger = logging.getLogger(__name__)

STATUS_SUBMITTING = "Submitting…"
STATUS_DONE = "Done."
STATUS_FAILED = "Error. See log."

OUTCOME_REJECTED = "rejected"
OUTCOME_FAILED = "failed"
OUTCOME_DONE = "done"


class SubmissionInProgressError(RuntimeError):
    """Raised when a session already has a request in flight."""


class ReportSession:
    def __init__(self, config: ClientConfig, session_id: str = "default"):
        self.config = config
        self.session_id = session_id
        self.attachments: List[Attachment] = []
        self.results = Region(RESULTS)
        self.provenance = Region(PROVENANCE)
        self.status = ""
        self.busy = False

    # ---- pending attachments -------------------------------------------

    def add_attachment(self, attachment: Attachment) -> None:
        self.attachments.append(attachment)

    def add_file(self, path: str) -> Attachment:
        with open(path, "rb") as f:
            content = f.read()
        media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        attachment = Attachment(name=os.path.basename(path), content=content, media_type=media_type)
        self.add_attachment(attachment)
        return attachment

    def remove_attachment(self, index: int) -> Attachment:
        return self.attachments.pop(index)

    def attachment_listing(self) -> List[Tuple[str, str]]:
        return [(a.name, pretty_bytes(a.size)) for a in self.attachments]

    # ---- submission ----------------------------------------------------

    async def submit(
        self,
        brief: Optional[str],
        urls_raw: Optional[str],
        client: Optional[httpx.AsyncClient] = None,
    ) -> str:
        """
        Compose, send and render one request.

        Returns OUTCOME_DONE when a response was rendered, OUTCOME_FAILED on a
        transport or decoding failure (rendered as an Error card) and
        OUTCOME_REJECTED when validation fails, in which case no request is made
        and only the status text changes.
        """
        if self.busy:
            raise SubmissionInProgressError(f"session {self.session_id} already has a submission in flight")

        try:
            payload = compose(brief, urls_raw, self.attachments, self.config)
        except EmptyRequestError as e:
            self.status = str(e)
            logger.info("session.submit_rejected session=%s reason=empty_request", self.session_id)
            return OUTCOME_REJECTED

        self.busy = True
        self.status = STATUS_SUBMITTING
        self.results.clear()
        self.provenance.clear()
        logger.info("session.submit session=%s attachments=%d", self.session_id, len(self.attachments))

        try:
            data = await post_analysis(payload, self.config, client=client)
            self.status = STATUS_DONE
            render(data, self.results, self.provenance, error_policy=self.config.error_policy)
            return OUTCOME_DONE
        except Exception as e:
            logger.error("session.submit_failed session=%s err=%s", self.session_id, e, exc_info=True)
            self.status = STATUS_FAILED
            message = str(e) or e.__class__.__name__
            self.results.append(Card(title="Error", body=f"<pre>{escape_html(message)}</pre>"))
            return OUTCOME_FAILED
        finally:
            self.busy = False
