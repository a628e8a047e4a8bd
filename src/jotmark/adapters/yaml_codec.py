import io
import re
from typing import Any

import yaml

from ..core.model import Note

_FM = re.compile(r"^---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)", re.DOTALL)


class YamlFrontmatter:
    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        m = _FM.match(text)
        if not m:
            return {}, text
        meta = yaml.safe_load(io.StringIO(m.group(1))) or {}
        if not isinstance(meta, dict):
            # a "---" rule followed by prose, not front matter
            return {}, text
        return meta, text[m.end() :]

    def encode(self, meta: dict[str, Any]) -> str:
        if not meta:
            return ""
        buf = io.StringIO()
        yaml.safe_dump(meta, buf, sort_keys=False, allow_unicode=True)
        return f"---\n{buf.getvalue()}---\n"


class NoteFileCodec:
    """
    One note per Markdown file: YAML front matter with ``title``,
    ``folder``, ``created`` and ``updated``, then the raw content.
    """

    def __init__(self, fm: YamlFrontmatter | None = None):
        self.fm = fm or YamlFrontmatter()

    def encode_note(self, note: Note, folder_name: str | None = None) -> str:
        meta: dict[str, Any] = {"title": note.title}
        if folder_name:
            meta["folder"] = folder_name
        meta["created"] = note.created_at.isoformat()
        meta["updated"] = note.updated_at.isoformat()
        return self.fm.encode(meta) + note.content

    def decode_note(self, text: str) -> tuple[dict[str, Any], str]:
        return self.fm.decode(text)
