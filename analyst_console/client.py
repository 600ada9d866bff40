"""
Minimal transport to the remote analysis service.

Rationale:
- One POST per submission, body = the multipart payload of the active encoding.
- No retries. No client-side timeout unless REQUEST_TIMEOUT is set.
"""

import logging
from typing import Any, Optional

import httpx

from .config import ClientConfig
from .schemas import TransportPayload

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Non-2xx response from the analysis service."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}" if body else f"HTTP {status_code}")


def build_endpoint(config: ClientConfig) -> str:
    return f"{config.api_base.rstrip('/')}{config.api_path}"


async def _post(client: httpx.AsyncClient, payload: TransportPayload, config: ClientConfig) -> Any:
    url = build_endpoint(config)
    params = {"debug": "1"} if config.debug else None
    logger.info(
        "client.post url=%s encoding=%s parts=%d debug=%s",
        url,
        payload.encoding,
        len(payload.files),
        config.debug,
    )
    response = await client.post(url, files=payload.files, params=params)

    if not response.is_success:
        try:
            body = response.text
        except Exception:
            body = ""
        logger.error("client.post_failed url=%s status=%d body=%s", url, response.status_code, body[:500])
        raise TransportError(response.status_code, body)

    data = response.json()
    logger.info(
        "client.post_ok url=%s status=%d keys=%s",
        url,
        response.status_code,
        sorted(data.keys()) if isinstance(data, dict) else type(data).__name__,
    )
    return data


async def post_analysis(
    payload: TransportPayload,
    config: ClientConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> Any:
    """
    Submit payload and return the decoded JSON response.

    Raises TransportError on a non-2xx status, httpx.HTTPError on network failure
    and ValueError when the body is not JSON.
    """
    if client is not None:
        return await _post(client, payload, config)
    async with httpx.AsyncClient(timeout=httpx.Timeout(config.timeout)) as owned:
        return await _post(owned, payload, config)
