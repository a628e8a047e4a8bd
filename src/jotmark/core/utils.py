"""Utility functions for jotmark."""

import re
import unicodedata

_DASHES = str.maketrans({"–": "-", "—": "-", "−": "-"})


def slugify(text: str, fallback: str = "note") -> str:
    """
    Make a file-name-safe slug from a note or folder title.

    Examples:
        >>> slugify("Groceries & errands")
        'groceries-errands'
        >>> slugify("Café — Tuesday")
        'cafe-tuesday'
        >>> slugify("!!!")
        'note'
    """
    text = unicodedata.normalize("NFKD", text.lower().translate(_DASHES))
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text).strip("-")
    return text or fallback


def first_heading(content: str) -> str | None:
    """Text of the first ``#``/``##``/``###`` heading line, if any."""
    for line in content.split("\n"):
        m = re.match(r"^#{1,3} (.+)$", line.rstrip("\r"))
        if m and m.group(1).strip():
            return m.group(1).strip()
    return None
