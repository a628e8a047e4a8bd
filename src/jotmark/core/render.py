"""
Line classifier and renderer.

Every line of a note becomes exactly one block. Classification looks only at
the line itself, so rendering is a pure per-line function and the position of
a block in the output is the index of its source line.
"""

import re
from enum import Enum
from typing import Callable

from .inline import format_inline
from .model import (
    Blank,
    Block,
    BulletItem,
    ChecklistItem,
    Code,
    CodeBlock,
    Heading,
    ImageLine,
    InlineCodeLine,
    InlineSpan,
    Link,
    LinkLine,
    Paragraph,
    Quote,
    Rule,
)

HEADING_PREFIXES = (("# ", 1), ("## ", 2), ("### ", 3))
CHECKLIST_RE = re.compile(r"^- \[( |x)\]")
CHECKLIST_MARKER_RE = re.compile(r"^- \[( |x)\] ?")
# An image's "[alt](src)" must not also count as a link.
LINK_RE = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)]+)\)")
IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
CODE_SPAN_RE = re.compile(r"`([^`]+)`")
FENCE = "```"
RULES = ("---", "***")


class LineKind(str, Enum):
    HEADING = "heading"
    CHECKLIST = "checklist"
    LINK = "link"
    IMAGE = "image"
    FENCE = "fence"
    INLINE_CODE = "inline_code"
    BULLET = "bullet"
    QUOTE = "quote"
    RULE = "rule"
    PARAGRAPH = "paragraph"
    BLANK = "blank"


def classify_line(line: str) -> LineKind:
    """
    Classify one line. First match wins, in this order:

    heading, checklist, link, image, fence, inline code, bullet, quote,
    rule, paragraph, blank.
    """
    line = _display_line(line)
    if line.startswith(tuple(p for p, _ in HEADING_PREFIXES)):
        return LineKind.HEADING
    if CHECKLIST_RE.match(line):
        return LineKind.CHECKLIST
    if LINK_RE.search(line):
        return LineKind.LINK
    if IMAGE_RE.search(line):
        return LineKind.IMAGE
    if line.startswith(FENCE) and line.endswith(FENCE):
        return LineKind.FENCE
    if CODE_SPAN_RE.search(line):
        return LineKind.INLINE_CODE
    if line.startswith("- ") and "[" not in line:
        return LineKind.BULLET
    if line.startswith("> "):
        return LineKind.QUOTE
    if line.strip() in RULES:
        return LineKind.RULE
    if line.strip():
        return LineKind.PARAGRAPH
    return LineKind.BLANK


def _display_line(line: str) -> str:
    # CRLF notes: the stored "\r" is kept, it just isn't shown
    return line[:-1] if line.endswith("\r") else line


def _heading(line: str) -> Block:
    for prefix, level in HEADING_PREFIXES:
        if line.startswith(prefix):
            return Heading(level, tuple(format_inline(line[len(prefix) :])))
    raise ValueError(f"not a heading: {line!r}")


def _checklist(line: str) -> Block:
    m = CHECKLIST_MARKER_RE.match(line)
    assert m is not None
    return ChecklistItem(m.group(1) == "x", tuple(format_inline(line[m.end() :])))


def _link_line(line: str) -> Block:
    spans: list[InlineSpan] = []
    pos = 0
    for m in LINK_RE.finditer(line):
        spans.extend(format_inline(line[pos : m.start()]))
        spans.append(Link(m.group(1), m.group(2)))
        pos = m.end()
    spans.extend(format_inline(line[pos:]))
    return LinkLine(tuple(spans))


def _image_line(line: str) -> Block:
    m = IMAGE_RE.search(line)
    assert m is not None
    return ImageLine(alt=m.group(1), src=m.group(2))


def _fence(line: str) -> Block:
    return CodeBlock(line[len(FENCE) : -len(FENCE)])


def _inline_code_line(line: str) -> Block:
    spans: list[InlineSpan] = []
    pos = 0
    for m in CODE_SPAN_RE.finditer(line):
        spans.extend(format_inline(line[pos : m.start()]))
        spans.append(Code(m.group(1)))
        pos = m.end()
    spans.extend(format_inline(line[pos:]))
    return InlineCodeLine(tuple(spans))


def _bullet(line: str) -> Block:
    return BulletItem(tuple(format_inline(line[2:])))


def _quote(line: str) -> Block:
    return Quote(tuple(format_inline(line[2:])))


def _rule(line: str) -> Block:
    return Rule()


def _paragraph(line: str) -> Block:
    return Paragraph(tuple(format_inline(line)))


def _blank(line: str) -> Block:
    return Blank()


_BUILDERS: dict[LineKind, Callable[[str], Block]] = {
    LineKind.HEADING: _heading,
    LineKind.CHECKLIST: _checklist,
    LineKind.LINK: _link_line,
    LineKind.IMAGE: _image_line,
    LineKind.FENCE: _fence,
    LineKind.INLINE_CODE: _inline_code_line,
    LineKind.BULLET: _bullet,
    LineKind.QUOTE: _quote,
    LineKind.RULE: _rule,
    LineKind.PARAGRAPH: _paragraph,
    LineKind.BLANK: _blank,
}


def render_line(line: str) -> Block:
    """Render a single line (no ``"\\n"``) into its block."""
    kind = classify_line(line)
    return _BUILDERS[kind](_display_line(line))


def render(text: str) -> list[Block]:
    """
    Render a whole note into one block per line.

    Never raises: anything that matches no construct degrades to a
    ``Paragraph`` (or ``Blank`` for whitespace). ``render("")`` is a single
    ``Blank``.
    """
    return [render_line(line) for line in text.split("\n")]
