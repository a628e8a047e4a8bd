"""Checklist mutation on raw note text."""

from .errors import InvalidIndex, NotAChecklistLine
from .render import CHECKLIST_RE

CHECKED = "- [x]"
UNCHECKED = "- [ ]"


def _split(text: str, line_index: int) -> list[str]:
    lines = text.split("\n")
    if not 0 <= line_index < len(lines):
        raise InvalidIndex(line_index, len(lines))
    return lines


def set_checkbox(text: str, line_index: int, checked: bool, *, strict: bool = False) -> str:
    """
    Put the checklist item on ``line_index`` into the given state.

    Only the leading ``- [ ]`` / ``- [x]`` token of that line is rewritten;
    every other line, and the rest of the target line, is kept byte-for-byte.
    A line that is not a checklist item is left alone, or rejected with
    ``NotAChecklistLine`` when ``strict`` is set.

    Raises:
        InvalidIndex: line_index is outside ``[0, line_count)``
    """
    lines = _split(text, line_index)
    line = lines[line_index]
    if not CHECKLIST_RE.match(line):
        if strict:
            raise NotAChecklistLine(line_index, line)
        return text
    marker = CHECKED if checked else UNCHECKED
    lines[line_index] = marker + line[len(marker) :]
    return "\n".join(lines)


def toggle_checkbox(text: str, line_index: int, *, strict: bool = False) -> str:
    """
    Flip the checklist item on ``line_index`` and return the new text.

    Examples:
        >>> toggle_checkbox("- [ ] buy milk", 0)
        '- [x] buy milk'
        >>> toggle_checkbox("plain text", 0)
        'plain text'
    """
    lines = _split(text, line_index)
    line = lines[line_index]
    if line.startswith(CHECKED):
        return set_checkbox(text, line_index, False, strict=strict)
    return set_checkbox(text, line_index, True, strict=strict)


def checklist_progress(text: str) -> tuple[int, int]:
    """Return ``(done, total)`` over the checklist lines of a note."""
    done = total = 0
    for line in text.split("\n"):
        if CHECKLIST_RE.match(line):
            total += 1
            if line.startswith(CHECKED):
                done += 1
    return done, total
