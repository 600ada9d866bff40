"""
Tabular dataset decoding and rendering.

Input formats supported (first structural match wins):
1. Row objects:     [{"a": 1, "b": 2}, {"a": 3, "b": 4}]
2. Columnar:        {"columns": ["x"], "data": [[5], [6]]}
3. Bare row arrays: [[1, 2], [3, 4]]   (headers synthesized as col_1..col_N)

Anything else decodes to None and the caller dumps the raw value instead.
"""

import logging
from typing import Any, List, Optional

from .markup import MISSING, display_value, escape_html
from .schemas import Table

logger = logging.getLogger(__name__)


def _is_row_objects(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and isinstance(value[0], dict)


def _is_columnar(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("columns"), list)
        and isinstance(value.get("data"), list)
    )


def _is_bare_rows(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and isinstance(value[0], list)


def _all_rows_are_lists(rows: List[Any]) -> bool:
    return all(isinstance(r, list) for r in rows)


def decode_table(value: Any) -> Optional[Table]:
    if _is_row_objects(value):
        headers = list(value[0].keys())
        rows = [
            [r.get(h, MISSING) if isinstance(r, dict) else MISSING for h in headers]
            for r in value
        ]
        return Table(headers=headers, rows=rows)

    if _is_columnar(value):
        rows = value["data"]
        if not _all_rows_are_lists(rows):
            logger.warning("tables.decode_inconsistent shape=columnar rows=%d", len(rows))
            return None
        return Table(headers=list(value["columns"]), rows=rows)

    if _is_bare_rows(value):
        if not _all_rows_are_lists(value):
            logger.warning("tables.decode_inconsistent shape=rows rows=%d", len(value))
            return None
        headers = [f"col_{i + 1}" for i in range(len(value[0]))]
        return Table(headers=headers, rows=value)

    return None


def _cell(value: Any, tag: str) -> str:
    return f"<{tag}>{escape_html(display_value(value))}</{tag}>"


def render_table(table: Table) -> str:
    thead = "<thead><tr>" + "".join(_cell(h, "th") for h in table.headers) + "</tr></thead>"
    tbody = "<tbody>" + "".join(
        "<tr>" + "".join(_cell(c, "td") for c in row) + "</tr>"
        for row in table.rows
    ) + "</tbody>"
    return f'<div class="table-wrap"><table>{thead}{tbody}</table></div>'
