"""HTML presentation of rendered notes."""

import html
from typing import Sequence

from ..core.model import (
    Blank,
    Block,
    Bold,
    BulletItem,
    ChecklistItem,
    Code,
    CodeBlock,
    Heading,
    ImageLine,
    InlineCodeLine,
    InlineSpan,
    Italic,
    Link,
    LinkLine,
    Paragraph,
    Quote,
    Rule,
    Spans,
    Strike,
    Underline,
)
from ..core.ports import Renderer
from ..core.render import render

_SPAN_TAGS = {
    Bold: "strong",
    Italic: "em",
    Underline: "u",
    Strike: "del",
    Code: "code",
}

UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")


def _esc(text: str) -> str:
    return html.escape(text, quote=True)


class HtmlRenderer(Renderer):
    def __init__(self, safe_links: bool = True, wrapper_class: str | None = "note"):
        self.safe_links = safe_links
        self.wrapper_class = wrapper_class

    def _url(self, url: str) -> str:
        url = url.strip()
        if self.safe_links and url.lower().startswith(UNSAFE_SCHEMES):
            return "#"
        return url

    def render_span(self, span: InlineSpan) -> str:
        if isinstance(span, Link):
            return (
                f'<a href="{_esc(self._url(span.url))}" target="_blank" '
                f'rel="noopener noreferrer">{_esc(span.text)}</a>'
            )
        tag = _SPAN_TAGS.get(type(span))
        if tag is None:
            return _esc(span.text)
        return f"<{tag}>{_esc(span.text)}</{tag}>"

    def render_spans(self, spans: Spans) -> str:
        return "".join(self.render_span(s) for s in spans)

    def render_block(self, block: Block, line_index: int) -> str:
        """Render one block; ``line_index`` addresses checklist toggles."""
        if isinstance(block, Heading):
            return f"<h{block.level}>{self.render_spans(block.spans)}</h{block.level}>"
        if isinstance(block, ChecklistItem):
            checked = " checked" if block.checked else ""
            state = "done" if block.checked else "todo"
            return (
                f'<div class="checklist-item {state}" data-line="{line_index}">'
                f'<input type="checkbox"{checked}> '
                f"<span>{self.render_spans(block.spans)}</span></div>"
            )
        if isinstance(block, BulletItem):
            return f'<div class="bullet-item">{self.render_spans(block.spans)}</div>'
        if isinstance(block, (LinkLine, InlineCodeLine)):
            return f'<div class="{block.kind.replace("_", "-")}">{self.render_spans(block.spans)}</div>'
        if isinstance(block, ImageLine):
            img = f'<img src="{_esc(self._url(block.src))}" alt="{_esc(block.alt)}">'
            caption = f"<figcaption>{_esc(block.alt)}</figcaption>" if block.alt else ""
            return f"<figure>{img}{caption}</figure>"
        if isinstance(block, CodeBlock):
            return f"<pre><code>{_esc(block.code)}</code></pre>"
        if isinstance(block, Quote):
            return f"<blockquote>{self.render_spans(block.spans)}</blockquote>"
        if isinstance(block, Rule):
            return "<hr>"
        if isinstance(block, Paragraph):
            return f"<p>{self.render_spans(block.spans)}</p>"
        if isinstance(block, Blank):
            return '<div class="blank"></div>'
        raise TypeError(f"unknown block: {block!r}")

    def render_blocks(self, blocks: Sequence[Block]) -> str:
        body = "\n".join(self.render_block(b, i) for i, b in enumerate(blocks))
        if self.wrapper_class is None:
            return body
        return f'<div class="{_esc(self.wrapper_class)}">\n{body}\n</div>'

    def render_text(self, content: str) -> str:
        return self.render_blocks(render(content))

    def render_page(self, content: str, title: str = "") -> str:
        """Standalone HTML document, used by the preview watcher."""
        return (
            "<!DOCTYPE html>\n"
            '<html><head><meta charset="utf-8">'
            f"<title>{_esc(title)}</title></head>\n"
            f"<body>\n{self.render_text(content)}\n</body></html>\n"
        )
