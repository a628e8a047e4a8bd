"""Markup rendering and checkbox mutation: the two entry points callers use."""

from .checkbox import checklist_progress, set_checkbox, toggle_checkbox
from .errors import InvalidIndex, NotAChecklistLine
from .inline import format_inline
from .render import classify_line, render, render_line

__all__ = [
    "render",
    "render_line",
    "classify_line",
    "format_inline",
    "toggle_checkbox",
    "set_checkbox",
    "checklist_progress",
    "InvalidIndex",
    "NotAChecklistLine",
]
