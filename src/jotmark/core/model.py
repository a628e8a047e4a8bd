from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, ClassVar, Union

NoteId = int
FolderId = int


# Inline spans. Leaves only: a span never contains another span.


@dataclass(frozen=True)
class Text:
    kind: ClassVar[str] = "text"
    text: str


@dataclass(frozen=True)
class Bold:
    kind: ClassVar[str] = "bold"
    text: str


@dataclass(frozen=True)
class Italic:
    kind: ClassVar[str] = "italic"
    text: str


@dataclass(frozen=True)
class Underline:
    kind: ClassVar[str] = "underline"
    text: str


@dataclass(frozen=True)
class Strike:
    kind: ClassVar[str] = "strike"
    text: str


@dataclass(frozen=True)
class Code:
    kind: ClassVar[str] = "code"
    text: str  # verbatim, never re-scanned for styles


@dataclass(frozen=True)
class Link:
    kind: ClassVar[str] = "link"
    text: str
    url: str


InlineSpan = Union[Text, Bold, Italic, Underline, Strike, Code, Link]
Spans = tuple[InlineSpan, ...]


# Block nodes. One per source line; a node's position in the rendered
# sequence is the index of the line it came from.


@dataclass(frozen=True)
class Heading:
    kind: ClassVar[str] = "heading"
    level: int  # 1..3
    spans: Spans = ()


@dataclass(frozen=True)
class ChecklistItem:
    kind: ClassVar[str] = "checklist_item"
    checked: bool
    spans: Spans = ()


@dataclass(frozen=True)
class BulletItem:
    kind: ClassVar[str] = "bullet_item"
    spans: Spans = ()


@dataclass(frozen=True)
class LinkLine:
    kind: ClassVar[str] = "link_line"
    spans: Spans = ()


@dataclass(frozen=True)
class ImageLine:
    kind: ClassVar[str] = "image_line"
    alt: str
    src: str


@dataclass(frozen=True)
class CodeBlock:
    kind: ClassVar[str] = "code_block"
    code: str


@dataclass(frozen=True)
class InlineCodeLine:
    kind: ClassVar[str] = "inline_code_line"
    spans: Spans = ()


@dataclass(frozen=True)
class Quote:
    kind: ClassVar[str] = "quote"
    spans: Spans = ()


@dataclass(frozen=True)
class Rule:
    kind: ClassVar[str] = "rule"


@dataclass(frozen=True)
class Paragraph:
    kind: ClassVar[str] = "paragraph"
    spans: Spans = ()


@dataclass(frozen=True)
class Blank:
    kind: ClassVar[str] = "blank"


Block = Union[
    Heading,
    ChecklistItem,
    BulletItem,
    LinkLine,
    ImageLine,
    CodeBlock,
    InlineCodeLine,
    Quote,
    Rule,
    Paragraph,
    Blank,
]


def span_to_dict(span: InlineSpan) -> dict[str, Any]:
    out: dict[str, Any] = {"kind": span.kind}
    for f in fields(span):
        out[f.name] = getattr(span, f.name)
    return out


def block_to_dict(block: Block) -> dict[str, Any]:
    """JSON-ready view of a block: ``{"kind": ..., <fields>}``."""
    out: dict[str, Any] = {"kind": block.kind}
    for f in fields(block):
        value = getattr(block, f.name)
        if f.name == "spans":
            value = [span_to_dict(s) for s in value]
        out[f.name] = value
    return out


# Store records


@dataclass
class Folder:
    id: FolderId
    name: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Note:
    id: NoteId
    title: str
    content: str  # raw markup, the only source of truth for rendering
    folder_id: FolderId | None = None
    order_index: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "folder_id": self.folder_id,
            "order_index": self.order_index,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
