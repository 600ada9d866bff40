"""
Text helpers shared by the renderer: escaping, link detection, value display.

Every piece of service-derived text goes through escape_html before it is placed
into markup. linkify runs on text that is already escaped.
"""

import json
import re
from typing import Any


class _Missing:
    """Marker for a table cell whose key is absent from its row object."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()
MISSING_CELL_TEXT = "undefined"

_HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
})

_LINK_RE = re.compile(r"(https?://[^\s)]+)|(\bwww\.[^\s)]+)")


def escape_html(text: str) -> str:
    return str(text).translate(_HTML_ESCAPES)


def _anchor(match: "re.Match[str]") -> str:
    url = match.group(0)
    href = url if url.startswith("http") else f"http://{url}"
    return f'<a href="{href}" target="_blank" rel="noopener noreferrer">{url}</a>'


def linkify(escaped: str) -> str:
    """
    Wrap http(s):// and www. runs of already-escaped text in anchors.

    Matches stop at whitespace or a closing parenthesis. Anchors open in a new
    browsing context without an opener reference.
    """
    return _LINK_RE.sub(_anchor, escaped)


def display_value(value: Any) -> str:
    """String form of a value for display: strings verbatim, everything else as JSON text."""
    if isinstance(value, str):
        return value
    if value is MISSING:
        return MISSING_CELL_TEXT
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def pretty_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def pretty_bytes(n: int) -> str:
    """Human readable byte count: 512 B, 1.5 KB, 3.2 MB ..."""
    if n < 1024:
        return f"{n} B"
    units = ["KB", "MB", "GB", "TB"]
    size = float(n)
    i = -1
    while True:
        size /= 1024
        i += 1
        if size < 1024 or i >= len(units) - 1:
            break
    return f"{size:.1f} {units[i]}"
