from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence

from .model import Block, Folder, FolderId, Note, NoteId


class NoteStore(Protocol):
    """
    Folders and notes. Content is an opaque markup string; the store never
    parses it except through the core checkbox mutator.
    """

    def list_folders(self) -> list[Folder]:
        pass

    def get_folder(self, folder_id: FolderId) -> Folder:
        pass

    def create_folder(self, name: str) -> Folder:
        pass

    def rename_folder(self, folder_id: FolderId, name: str) -> Folder:
        pass

    def delete_folder(self, folder_id: FolderId) -> None:
        pass

    def list_notes(
        self, folder_id: FolderId | None = None, query: str | None = None
    ) -> list[Note]:
        pass

    def get_note(self, note_id: NoteId) -> Note:
        pass

    def create_note(
        self,
        title: str,
        content: str,
        folder_id: FolderId | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> Note:
        pass

    def update_note(self, note_id: NoteId, **changes: Any) -> Note:
        pass

    def delete_note(self, note_id: NoteId) -> None:
        pass

    def reorder_notes(self, folder_id: FolderId, order: Mapping[NoteId, int]) -> int:
        pass

    def toggle_checkbox(self, note_id: NoteId, line_index: int, strict: bool = False) -> Note:
        pass

    def set_checkbox(
        self, note_id: NoteId, line_index: int, checked: bool, strict: bool = False
    ) -> Note:
        pass


class Renderer(Protocol):
    """Presentation layer: turns rendered blocks into a displayable string."""

    def render_blocks(self, blocks: Sequence[Block]) -> str:
        pass

    def render_text(self, content: str) -> str:
        pass


class Exporter(Protocol):
    def export_all(self, out_dir: str) -> int:
        pass


class Importer(Protocol):
    def import_all(self, src_dir: str) -> int:
        pass
