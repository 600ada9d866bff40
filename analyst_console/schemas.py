"""
Pydantic request/response models.

Rationale:
- Keep the contracts between composer, transport and renderer explicit.
- The service response itself has no schema and is never modelled here; the
  renderer inspects it field by field.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field

from .markup import escape_html


class Attachment(BaseModel):
    name: str
    content: bytes
    media_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class AnalysisRequest(BaseModel):
    brief: str = ""
    urls: List[str] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.brief and not self.urls and not self.attachments


class Card(BaseModel):
    title: str
    body: str  # already HTML-safe markup

    def to_html(self) -> str:
        return f'<div class="card"><h3>{escape_html(self.title)}</h3>{self.body}</div>'


class Table(BaseModel):
    headers: List[Any]
    rows: List[List[Any]]


# (field name, (filename or None for a plain form field, content[, media type]))
Part = Tuple[str, Tuple[Any, ...]]


@dataclass
class TransportPayload:
    encoding: str
    files: List[Part] = field(default_factory=list)

    def field_names(self) -> List[str]:
        return [name for name, _ in self.files]

    def part(self, name: str) -> Optional[Tuple[Any, ...]]:
        for part_name, value in self.files:
            if part_name == name:
                return value
        return None
