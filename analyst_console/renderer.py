"""
Response normalization and rendering.

The analysis service returns JSON of no fixed shape. Rendering is a fixed-order
sequence of independent facet checks:

1. Detect which facets the payload carries, using the FACETS priority table
   (each facet lists the alternative field names it may appear under)
2. Build one or more cards per detected facet, in table order
3. Route provenance cards to the provenance region, everything else to results
4. If the results region is still empty, dump the raw payload

render() never raises. A facet that cannot be built degrades to a JSON dump of
that facet's value.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .config import ERROR_POLICY_EXCLUSIVE
from .markup import display_value, escape_html, linkify, pretty_json
from .schemas import Card
from .tables import decode_table, render_table

logger = logging.getLogger(__name__)

RESULTS = "results"
PROVENANCE = "provenance"


class Region:
    """Append-only sequence of rendered cards owned by the host UI."""

    def __init__(self, name: str):
        self.name = name
        self.cards: List[Card] = []

    def append(self, card: Card) -> None:
        self.cards.append(card)

    def clear(self) -> None:
        self.cards = []

    def titles(self) -> List[str]:
        return [c.title for c in self.cards]

    def to_html(self) -> str:
        return "".join(c.to_html() for c in self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)


def _pre(text: str) -> str:
    return f"<pre>{escape_html(text)}</pre>"


def _is_present(value: Any) -> bool:
    """Absent: null, false, "", 0 and NaN. Empty lists and objects count as present."""
    if value is None or value is False or value == "":
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == value and value != 0
    return True


def _is_list(value: Any) -> bool:
    return isinstance(value, list)


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else [value]


# ---- card builders ------------------------------------------------------

_ERROR_SECTIONS = (
    ("error", "Error: {}"),
    ("details", "Traceback:\n{}"),
    ("stdout", "STDOUT:\n{}"),
    ("stderr", "STDERR:\n{}"),
)


def _build_error(fields: Dict[str, Any]) -> List[Card]:
    sections = [
        template.format(display_value(fields[key]))
        for key, template in _ERROR_SECTIONS
        if key in fields
    ]
    msg = "\n\n".join(sections).strip()
    return [Card(title="Execution Error", body=_pre(msg))]


def _build_narrative(value: Any) -> List[Card]:
    text = linkify(escape_html(display_value(value)))
    return [Card(title="Findings", body=f"<div>{text}</div>")]


def _build_answers(value: List[Any]) -> List[Card]:
    items = "".join(f"<li>{escape_html(display_value(a))}</li>" for a in value)
    return [Card(title="Findings", body=f"<ul>{items}</ul>")]


def _build_tables(value: Any) -> List[Card]:
    cards = []
    for i, entry in enumerate(_as_list(value)):
        title = f"Table {i + 1}"
        table = decode_table(entry)
        if table is None:
            logger.info("renderer.table_unrecognized title=%s type=%s", title, type(entry).__name__)
            cards.append(Card(title=title, body=_pre(pretty_json(entry))))
            continue
        try:
            cards.append(Card(title=title, body=render_table(table)))
        except Exception:
            logger.warning("renderer.table_failed title=%s", title, exc_info=True)
            cards.append(Card(title=title, body=_pre(pretty_json(entry))))
    return cards


def resolve_image_source(entry: Any) -> Optional[str]:
    """
    Resolve one image entry to an <img> source.

    - "data:..." or "http..." strings are used verbatim
    - any other string is a bare base64 PNG payload
    - an object with a "base64" field is wrapped the same way
    - anything else resolves to None
    """
    if isinstance(entry, str):
        if not entry:
            return None
        if entry.startswith("data:") or entry.startswith("http"):
            return entry
        return f"data:image/png;base64,{entry}"
    if isinstance(entry, dict) and isinstance(entry.get("base64"), str) and entry["base64"]:
        return f"data:image/png;base64,{entry['base64']}"
    return None


def _build_images(value: Any) -> List[Card]:
    sources = [s for s in (resolve_image_source(e) for e in _as_list(value)) if s]
    if not sources:
        return []
    html = "".join(f'<img alt="figure" src="{escape_html(src)}" />' for src in sources)
    return [Card(title="Visuals", body=html)]


def _build_code(value: Any) -> List[Card]:
    text = value if isinstance(value, str) else pretty_json(value)
    return [Card(title="Code", body=_pre(text))]


def _build_provenance(value: Any) -> List[Card]:
    return [Card(title="Materials", body=_pre(pretty_json(value)))]


# ---- facet table --------------------------------------------------------

@dataclass(frozen=True)
class Facet:
    name: str
    title: str
    aliases: Tuple[str, ...]
    build: Callable[[Any], List[Card]]
    region: str = RESULTS
    accepts: Callable[[Any], bool] = _is_present
    collect_all: bool = False  # gather every present alias instead of the first


@dataclass
class FacetMatch:
    facet: Facet
    value: Any


ERROR_FACET = "error"

FACETS: Tuple[Facet, ...] = (
    Facet(ERROR_FACET, "Execution Error", ("error", "details", "stdout", "stderr"), _build_error, collect_all=True),
    Facet("narrative", "Findings", ("answer", "summary", "explanation"), _build_narrative),
    Facet("answers", "Findings", ("answers",), _build_answers, accepts=_is_list),
    Facet("tables", "Tables", ("tables", "table"), _build_tables),
    Facet("images", "Visuals", ("images", "plots", "figures"), _build_images),
    Facet("code", "Code", ("code", "sql", "codelets"), _build_code),
    Facet("provenance", "Materials", ("provenance", "materials", "sources"), _build_provenance, region=PROVENANCE),
)


def _detect(payload: Dict[str, Any], facet: Facet) -> Optional[FacetMatch]:
    if facet.collect_all:
        found = {a: payload[a] for a in facet.aliases if facet.accepts(payload.get(a))}
        return FacetMatch(facet, found) if found else None
    for alias in facet.aliases:
        value = payload.get(alias)
        if facet.accepts(value):
            return FacetMatch(facet, value)
    return None


def detect_facets(payload: Any) -> List[FacetMatch]:
    """Return the facets present in payload, in priority order."""
    if not isinstance(payload, dict):
        return []
    matches = []
    for facet in FACETS:
        match = _detect(payload, facet)
        if match is not None:
            matches.append(match)
    return matches


def _build_cards(match: FacetMatch) -> List[Card]:
    try:
        return match.facet.build(match.value)
    except Exception:
        logger.warning("renderer.facet_failed facet=%s", match.facet.name, exc_info=True)
        return [Card(title=match.facet.title, body=_pre(pretty_json(match.value)))]


def render(
    payload: Any,
    results: Region,
    provenance: Region,
    *,
    error_policy: str = ERROR_POLICY_EXCLUSIVE,
) -> None:
    """
    Append cards for payload to the results and provenance regions.

    With the "exclusive" error policy an Execution Error card is the only card
    produced for a payload carrying error fields; with "inline" the remaining
    facets are rendered after it.
    """
    regions = {RESULTS: results, PROVENANCE: provenance}
    matches = detect_facets(payload)
    logger.info(
        "renderer.render facets=%s error_policy=%s",
        ",".join(m.facet.name for m in matches) or "-",
        error_policy,
    )

    for match in matches:
        for card in _build_cards(match):
            regions[match.facet.region].append(card)
        if match.facet.name == ERROR_FACET and error_policy == ERROR_POLICY_EXCLUSIVE:
            return

    # Inspect the rendered output, not the payload: provenance alone leaves results empty.
    if len(results) == 0:
        results.append(Card(title="Raw Response", body=_pre(pretty_json(payload))))
