"""Exceptions raised by jotmark."""


class JotmarkError(Exception):
    """Base class for all jotmark errors."""


class InvalidIndex(JotmarkError, IndexError):
    """A line index outside ``[0, line_count)``."""

    def __init__(self, index: int, line_count: int):
        super().__init__(f"Line index {index} out of range (note has {line_count} lines)")
        self.index = index
        self.line_count = line_count


class NotAChecklistLine(JotmarkError, ValueError):
    """Raised by strict toggles when the target line has no checklist marker."""

    def __init__(self, index: int, line: str):
        super().__init__(f"Line {index} is not a checklist item: {line!r}")
        self.index = index
        self.line = line


class NotFound(JotmarkError, LookupError):
    pass


class NoteNotFound(NotFound):
    def __init__(self, note_id: int):
        super().__init__(f"Note {note_id} not found")
        self.note_id = note_id


class FolderNotFound(NotFound):
    def __init__(self, folder_id: int | str):
        super().__init__(f"Folder {folder_id} not found")
        self.folder_id = folder_id


class FolderNotEmpty(JotmarkError):
    def __init__(self, folder_id: int, note_count: int):
        super().__init__(
            f"Folder {folder_id} contains {note_count} notes. Move or delete notes first."
        )
        self.folder_id = folder_id
        self.note_count = note_count


class DuplicateFolder(JotmarkError):
    def __init__(self, name: str):
        super().__init__(f"Folder {name!r} already exists")
        self.name = name


class InvalidName(JotmarkError, ValueError):
    pass
