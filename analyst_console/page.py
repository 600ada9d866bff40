"""HTML documents for the host UI and for stored reports."""

from typing import Optional

from .markup import escape_html
from .renderer import Region

_STYLE = """
body { font-family: system-ui, -apple-system, sans-serif; margin: 2rem auto; max-width: 960px; color: #222; }
textarea { width: 100%; }
.card { border: 1px solid #e5e1da; border-radius: 8px; padding: 1rem; margin: 1rem 0; background: #fff; }
.card h3 { margin-top: 0; }
.card pre { white-space: pre-wrap; word-break: break-word; }
.card img { max-width: 100%; }
.table-wrap { overflow-x: auto; }
table { border-collapse: collapse; }
th, td { border: 1px solid #ddd; padding: 4px 8px; text-align: left; }
#status { min-height: 1.5em; }
"""


def _document(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{escape_html(title)}</title><style>{_STYLE}</style></head>"
        f"<body>{body}</body></html>"
    )


def _regions(results: Region, provenance: Region) -> str:
    return (
        f'<section id="results"><h2>Results</h2>{results.to_html()}</section>'
        f'<section id="provenance"><h2>Materials</h2>{provenance.to_html()}</section>'
    )


def render_page(session, report_id: Optional[str] = None) -> str:
    """Submission form, status line, pending attachments and both output regions."""
    disabled = " disabled" if session.busy else ""
    files = "".join(
        f"<li><span>{escape_html(name)} <small>({size})</small></span></li>"
        for name, size in session.attachment_listing()
    )
    report_links = ""
    if report_id:
        report_links = (
            f'<p><a href="/report/{report_id}" target="_blank" rel="noopener noreferrer">Open report</a>'
            f' · <a href="/report/{report_id}/pdf">Download PDF</a></p>'
        )
    body = (
        "<h1>Analyst Console</h1>"
        '<form method="post" action="/run" enctype="multipart/form-data">'
        '<label for="brief">Brief</label>'
        '<textarea id="brief" name="brief" rows="4"></textarea>'
        '<label for="urls">URLs (one per line)</label>'
        '<textarea id="urls" name="urls" rows="3"></textarea>'
        '<input id="fileInput" type="file" name="files" multiple>'
        f'<ul id="fileList">{files}</ul>'
        f'<button id="runBtn" type="submit"{disabled}>Run analysis</button>'
        "</form>"
        f'<div id="status">{escape_html(session.status)}</div>'
        f"{report_links}"
        f"{_regions(session.results, session.provenance)}"
    )
    return _document("Analyst Console", body)


def render_report(results: Region, provenance: Region, title: str = "Analysis Report") -> str:
    return _document(title, f"<h1>{escape_html(title)}</h1>{_regions(results, provenance)}")
