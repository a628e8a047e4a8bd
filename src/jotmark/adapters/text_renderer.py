"""Terminal presentation of rendered notes."""

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
    InlineSpan,
    Italic,
    Link,
    Quote,
    Rule,
    Strike,
    Underline,
)
from ..core.ports import Renderer
from ..core.render import render

RESET = "\033[0m"
_ANSI = {
    Bold: "\033[1m",
    Italic: "\033[3m",
    Underline: "\033[4m",
    Strike: "\033[9m",
    Code: "\033[36m",
    Link: "\033[34m",
}
RULE_WIDTH = 40


class TextRenderer(Renderer):
    def __init__(self, colors: bool = False, numbered: bool = False):
        self.colors = colors
        self.numbered = numbered  # prefix line numbers, handy for `jot check`

    def _style(self, span: InlineSpan, text: str) -> str:
        code = _ANSI.get(type(span)) if self.colors else None
        return f"{code}{text}{RESET}" if code else text

    def render_span(self, span: InlineSpan) -> str:
        if isinstance(span, Link):
            return f"{self._style(span, span.text)} <{span.url}>"
        if isinstance(span, Code) and not self.colors:
            return f"`{span.text}`"
        return self._style(span, span.text)

    def render_block(self, block: Block) -> str:
        spans = getattr(block, "spans", ())
        text = "".join(self.render_span(s) for s in spans)
        if isinstance(block, Heading):
            if self.colors:
                return f"\033[1m{text}{RESET}"
            underline = {1: "=", 2: "-"}.get(block.level)
            return f"{text}\n{underline * len(text)}" if underline else text
        if isinstance(block, ChecklistItem):
            return f"[{'x' if block.checked else ' '}] {text}"
        if isinstance(block, BulletItem):
            return f"• {text}"
        if isinstance(block, ImageLine):
            return f"[image: {block.alt or block.src}] {block.src}"
        if isinstance(block, CodeBlock):
            return f"    {block.code}"
        if isinstance(block, Quote):
            return f"│ {text}"
        if isinstance(block, Rule):
            return "─" * RULE_WIDTH
        if isinstance(block, Blank):
            return ""
        return text

    def render_blocks(self, blocks: Sequence[Block]) -> str:
        out = []
        for i, block in enumerate(blocks):
            rendered = self.render_block(block)
            if self.numbered:
                rendered = f"{i:>4}  {rendered}"
            out.append(rendered)
        return "\n".join(out)

    def render_text(self, content: str) -> str:
        return self.render_blocks(render(content))
