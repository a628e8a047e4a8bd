"""Export notes to Markdown files with YAML front matter, and import them back."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any

import yaml

from .adapters.yaml_codec import NoteFileCodec
from .core.errors import JotmarkError
from .core.ports import Exporter, Importer, NoteStore
from .core.utils import first_heading, slugify

logger = logging.getLogger(__name__)

UNFILED_DIR = "unfiled"


def _timestamp(value: Any) -> datetime | None:
    """Front matter date (string, date or datetime) as an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        stamp = value
    elif isinstance(value, date):
        stamp = datetime.combine(value, time())
    else:
        stamp = datetime.fromisoformat(str(value))
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp.astimezone(timezone.utc)


class MarkdownExporter(Exporter):
    def __init__(self, store: NoteStore, codec: NoteFileCodec | None = None):
        self.store = store
        self.codec = codec or NoteFileCodec()

    def note_path(self, out: Path, note_id: int, title: str, folder_name: str | None) -> Path:
        folder_dir = slugify(folder_name, fallback="folder") if folder_name else UNFILED_DIR
        return out / folder_dir / f"{note_id}-{slugify(title)}.md"

    def export_all(self, out_dir: str) -> int:
        """Write every note under ``out_dir``; returns the number written."""
        out = Path(out_dir)
        folders = {f.id: f.name for f in self.store.list_folders()}
        count = 0
        for note in self.store.list_notes():
            folder_name = folders.get(note.folder_id) if note.folder_id is not None else None
            path = self.note_path(out, note.id, note.title, folder_name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.codec.encode_note(note, folder_name), encoding="utf-8")
            count += 1
        logger.info("Exported %d notes to %s", count, out)
        return count


@dataclass
class ImportReport:
    imported: list[int] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)  # (path, reason)
    folders_created: list[str] = field(default_factory=list)


class MarkdownImporter(Importer):
    def __init__(self, store: NoteStore, codec: NoteFileCodec | None = None):
        self.store = store
        self.codec = codec or NoteFileCodec()
        self.report = ImportReport()

    def _folder_id(self, name: str) -> int:
        for folder in self.store.list_folders():
            if folder.name == name.strip():
                return folder.id
        folder = self.store.create_folder(name)
        self.report.folders_created.append(folder.name)
        return folder.id

    def import_file(self, path: Path, default_folder: str | None = None) -> int:
        """
        Import one Markdown file and return the new note's id.

        The title comes from front matter ``title``, then the first heading,
        then the file name. The folder comes from front matter ``folder``,
        then ``default_folder``; missing folders are created. ``created`` and
        ``updated`` are restored when present.
        """
        # "\r\n" line endings are kept verbatim
        meta, body = self.codec.decode_note(path.read_bytes().decode("utf-8"))
        title = str(meta.get("title") or first_heading(body) or path.stem)
        folder_name = str(meta.get("folder") or "").strip() or default_folder
        folder_id = self._folder_id(folder_name) if folder_name else None
        return self.store.create_note(
            title,
            body,
            folder_id,
            created_at=_timestamp(meta.get("created")),
            updated_at=_timestamp(meta.get("updated")),
        ).id

    def import_all(self, src_dir: str, default_folder: str | None = None) -> int:
        """Import every ``*.md`` under ``src_dir``; returns the number imported."""
        src = Path(src_dir)
        if not src.is_dir():
            raise NotADirectoryError(f"Source directory does not exist: {src}")
        for path in sorted(src.rglob("*.md")):
            if any(part.startswith(".") for part in path.relative_to(src).parts):
                continue
            try:
                self.report.imported.append(self.import_file(path, default_folder))
            except (yaml.YAMLError, UnicodeDecodeError, ValueError, JotmarkError) as e:
                logger.warning("Skipping %s: %s", path, e)
                self.report.failed.append((str(path), str(e)))
        return len(self.report.imported)
