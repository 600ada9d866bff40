"""
Request composition: brief text, URL lines and attachments -> multipart payload.

Two wire encodings exist; the deployment selects one through ClientConfig.encoding:
- questions_file: a synthesized plain-text "questions.txt" part (brief, blank line,
  URLs) plus every attachment under config.files_field
- fields: optional "brief" text part, optional "urls" JSON array part, and one
  "files" part per attachment
"""

import json
import logging
import re
from typing import List, Optional, Sequence

from .config import ClientConfig, ENCODING_FIELDS, ENCODING_QUESTIONS_FILE
from .schemas import AnalysisRequest, Attachment, TransportPayload

logger = logging.getLogger(__name__)

EMPTY_REQUEST_MESSAGE = "Please enter a brief, or add files/URLs."

BRIEF_FIELD = "brief"
URLS_FIELD = "urls"
FILES_FIELD = "files"


class EmptyRequestError(ValueError):
    """Raised when a request has no brief, no URLs and no attachments."""

    def __init__(self, message: str = EMPTY_REQUEST_MESSAGE):
        super().__init__(message)


def parse_urls(raw: Optional[str]) -> List[str]:
    """One URL per line: trimmed, blank lines dropped, order kept."""
    if not raw:
        return []
    return [line.strip() for line in re.split(r"\r?\n", raw) if line.strip()]


def build_request(
    brief: Optional[str],
    urls_raw: Optional[str],
    attachments: Sequence[Attachment] = (),
) -> AnalysisRequest:
    request = AnalysisRequest(
        brief=(brief or "").strip(),
        urls=parse_urls(urls_raw),
        attachments=list(attachments),
    )
    if request.is_empty():
        raise EmptyRequestError()
    return request


def questions_text(request: AnalysisRequest) -> str:
    lines = [request.brief]
    if request.urls:
        lines += [""] + request.urls
    return "\n".join(lines)


def _encode_questions_file(request: AnalysisRequest, config: ClientConfig) -> TransportPayload:
    payload = TransportPayload(encoding=ENCODING_QUESTIONS_FILE)
    payload.files.append(
        (config.question_field, (config.question_field, questions_text(request).encode("utf-8"), "text/plain"))
    )
    for a in request.attachments:
        payload.files.append((config.files_field, (a.name, a.content, a.media_type)))
    return payload


def _encode_fields(request: AnalysisRequest, config: ClientConfig) -> TransportPayload:
    payload = TransportPayload(encoding=ENCODING_FIELDS)
    # (None, value) parts are plain form fields, which keeps the body multipart
    if request.brief:
        payload.files.append((BRIEF_FIELD, (None, request.brief)))
    if request.urls:
        payload.files.append((URLS_FIELD, (None, json.dumps(request.urls))))
    for a in request.attachments:
        payload.files.append((FILES_FIELD, (a.name, a.content, a.media_type)))
    return payload


_ENCODERS = {
    ENCODING_QUESTIONS_FILE: _encode_questions_file,
    ENCODING_FIELDS: _encode_fields,
}


def encode(request: AnalysisRequest, config: ClientConfig) -> TransportPayload:
    return _ENCODERS[config.encoding](request, config)


def compose(
    brief: Optional[str],
    urls_raw: Optional[str],
    attachments: Sequence[Attachment],
    config: ClientConfig,
) -> TransportPayload:
    """Validate the user's input and build the payload for the active encoding."""
    request = build_request(brief, urls_raw, attachments)
    payload = encode(request, config)
    logger.info(
        "composer.compose encoding=%s brief_chars=%d urls=%d attachments=%d parts=%d",
        config.encoding,
        len(request.brief),
        len(request.urls),
        len(request.attachments),
        len(payload.files),
    )
    return payload
