"""Inline formatter: one markup segment -> ordered list of spans."""

import re

from .model import Bold, InlineSpan, Italic, Strike, Text, Underline

# Highest priority first. Each pass only sees the Text left by earlier passes.
STYLE_PASSES: tuple[tuple[re.Pattern[str], type], ...] = (
    (re.compile(r"\*\*([^*]+)\*\*"), Bold),
    (re.compile(r"\*([^*]+)\*"), Italic),
    (re.compile(r"__([^_]+)__"), Underline),
    (re.compile(r"~~([^~]+)~~"), Strike),
)


def _split(text: str, pattern: re.Pattern[str], style: type) -> list[InlineSpan]:
    spans: list[InlineSpan] = []
    pos = 0
    for m in pattern.finditer(text):
        if m.start() > pos:
            spans.append(Text(text[pos : m.start()]))
        spans.append(style(m.group(1)))
        pos = m.end()
    if pos < len(text):
        spans.append(Text(text[pos:]))
    return spans


def format_inline(segment: str) -> list[InlineSpan]:
    """
    Split a segment into styled and plain spans.

    Recognises ``**bold**``, ``*italic*``, ``__underline__`` and
    ``~~strike~~``, resolved in that order over the whole segment. Styled
    interiors are kept literal (no nesting), and unbalanced markers stay in
    the surrounding ``Text``.

    Examples:
        >>> format_inline("**bold** and *italic*")
        [Bold(text='bold'), Text(text=' and '), Italic(text='italic')]
        >>> format_inline("2 * 3 is **six**")
        [Text(text='2 * 3 is '), Bold(text='six')]
    """
    spans: list[InlineSpan] = [Text(segment)] if segment else []
    for pattern, style in STYLE_PASSES:
        resolved: list[InlineSpan] = []
        for span in spans:
            if isinstance(span, Text):
                resolved.extend(_split(span.text, pattern, style))
            else:
                resolved.append(span)
        spans = resolved
    return spans
