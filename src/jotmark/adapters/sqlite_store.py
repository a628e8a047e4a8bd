"""SQLite-backed folder and note store."""

import logging
import sqlite3
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from ..core.checkbox import set_checkbox, toggle_checkbox
from ..core.errors import (
    DuplicateFolder,
    FolderNotEmpty,
    FolderNotFound,
    InvalidName,
    NoteNotFound,
)
from ..core.model import Folder, FolderId, Note, NoteId
from ..core.ports import NoteStore

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1"
DEFAULT_FOLDERS = ("Notes", "Work", "Personal")
NOTE_COLUMNS = "id, title, content, folder_id, order_index, created_at, updated_at"
_UNSET: Any = object()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_note(row: sqlite3.Row) -> Note:
    return Note(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        folder_id=row["folder_id"],
        order_index=row["order_index"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_folder(row: sqlite3.Row) -> Folder:
    return Folder(
        id=row["id"],
        name=row["name"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise InvalidName("Folder name is required")
    return name


@dataclass
class SQLiteStore(NoteStore):
    """
    Folders and notes in a single SQLite file.

    Connections are opened per call in autocommit mode; multi-statement
    writes run inside explicit ``BEGIN IMMEDIATE`` transactions so that
    read-modify-write of a note's content is serialized.
    """

    db_path: Path
    default_folders: tuple[str, ...] = field(default=DEFAULT_FOLDERS)

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path)
        self._ensure_schema()

    def _conn(self) -> sqlite3.Connection:
        """Get a connection to the SQLite database."""
        conn = sqlite3.connect(str(self.db_path), isolation_level=None, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS folders (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS notes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                folder_id INTEGER,
                order_index INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (folder_id) REFERENCES folders(id) ON DELETE SET NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS notes_folder_idx ON notes(folder_id, order_index)")
        conn.execute(
            """
            INSERT INTO meta(key, value) VALUES('schema_version', ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (SCHEMA_VERSION,),
        )

    def _seed_folders(self, conn: sqlite3.Connection) -> None:
        count = conn.execute("SELECT COUNT(*) FROM folders").fetchone()[0]
        if count or not self.default_folders:
            return
        for name in self.default_folders:
            conn.execute("INSERT INTO folders (name, created_at) VALUES (?, ?)", (name, _now()))
        logger.info("Created default folders: %s", ", ".join(self.default_folders))

    def _ensure_schema(self) -> None:
        """Ensure DB exists and schema is initialized."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        if self.db_path.exists():
            try:
                conn = self._conn()
                conn.execute("SELECT 1").fetchone()
                conn.close()
            except sqlite3.DatabaseError:
                timestamp = int(time.time())
                backup_path = self.db_path.with_suffix(f".bad-{timestamp}.sqlite")
                self.db_path.rename(backup_path)
                logger.warning("Corrupt DB backed up to %s", backup_path)
        else:
            logger.info("Creating note database at %s", self.db_path)

        conn = self._conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                self._init_schema(conn)
                self._seed_folders(conn)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        finally:
            conn.close()

    # Folders

    def list_folders(self) -> list[Folder]:
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT id, name, created_at FROM folders ORDER BY created_at ASC, id ASC"
            ).fetchall()
            return [_row_to_folder(r) for r in rows]
        finally:
            conn.close()

    def _folder_row(self, conn: sqlite3.Connection, folder_id: FolderId) -> sqlite3.Row:
        row = conn.execute(
            "SELECT id, name, created_at FROM folders WHERE id = ?", (folder_id,)
        ).fetchone()
        if row is None:
            raise FolderNotFound(folder_id)
        return row

    def get_folder(self, folder_id: FolderId) -> Folder:
        conn = self._conn()
        try:
            return _row_to_folder(self._folder_row(conn, folder_id))
        finally:
            conn.close()

    def find_folder(self, name: str) -> Folder | None:
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT id, name, created_at FROM folders WHERE name = ?", (name.strip(),)
            ).fetchone()
            return _row_to_folder(row) if row else None
        finally:
            conn.close()

    def create_folder(self, name: str) -> Folder:
        name = _clean_name(name)
        conn = self._conn()
        try:
            try:
                cur = conn.execute(
                    "INSERT INTO folders (name, created_at) VALUES (?, ?)", (name, _now())
                )
            except sqlite3.IntegrityError as e:
                raise DuplicateFolder(name) from e
            logger.debug("Created folder %s (%d)", name, cur.lastrowid)
            return _row_to_folder(self._folder_row(conn, cur.lastrowid))
        finally:
            conn.close()

    def rename_folder(self, folder_id: FolderId, name: str) -> Folder:
        name = _clean_name(name)
        conn = self._conn()
        try:
            try:
                cur = conn.execute("UPDATE folders SET name = ? WHERE id = ?", (name, folder_id))
            except sqlite3.IntegrityError as e:
                raise DuplicateFolder(name) from e
            if cur.rowcount == 0:
                raise FolderNotFound(folder_id)
            return _row_to_folder(self._folder_row(conn, folder_id))
        finally:
            conn.close()

    def delete_folder(self, folder_id: FolderId) -> None:
        conn = self._conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                self._folder_row(conn, folder_id)
                count = conn.execute(
                    "SELECT COUNT(*) FROM notes WHERE folder_id = ?", (folder_id,)
                ).fetchone()[0]
                if count:
                    raise FolderNotEmpty(folder_id, count)
                conn.execute("DELETE FROM folders WHERE id = ?", (folder_id,))
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            logger.debug("Deleted folder %d", folder_id)
        finally:
            conn.close()

    # Notes

    def list_notes(
        self, folder_id: FolderId | None = None, query: str | None = None
    ) -> list[Note]:
        """
        List notes, newest order first.

        Args:
            folder_id: Restrict to one folder (must exist)
            query: Case-insensitive substring filter on title and content
        """
        sql = f"SELECT {NOTE_COLUMNS} FROM notes"
        where: list[str] = []
        params: list[Any] = []
        conn = self._conn()
        try:
            if folder_id is not None:
                self._folder_row(conn, folder_id)
                where.append("folder_id = ?")
                params.append(folder_id)
            if query:
                where.append("(title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\')")
                pattern = "%" + query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
                params.extend([pattern, pattern])
            if where:
                sql += " WHERE " + " AND ".join(where)
            sql += " ORDER BY order_index DESC, created_at ASC, id ASC"
            return [_row_to_note(r) for r in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def _note_row(self, conn: sqlite3.Connection, note_id: NoteId) -> sqlite3.Row:
        row = conn.execute(f"SELECT {NOTE_COLUMNS} FROM notes WHERE id = ?", (note_id,)).fetchone()
        if row is None:
            raise NoteNotFound(note_id)
        return row

    def get_note(self, note_id: NoteId) -> Note:
        conn = self._conn()
        try:
            return _row_to_note(self._note_row(conn, note_id))
        finally:
            conn.close()

    def _next_order(self, conn: sqlite3.Connection, folder_id: FolderId | None) -> int:
        row = conn.execute(
            "SELECT COALESCE(MAX(order_index), 0) FROM notes WHERE folder_id IS ?",
            (folder_id,),
        ).fetchone()
        return int(row[0]) + 1

    def create_note(
        self,
        title: str,
        content: str,
        folder_id: FolderId | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> Note:
        """
        Add a note on top of its folder.

        ``created_at``/``updated_at`` default to now; importers pass the
        original timestamps.
        """
        conn = self._conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                if folder_id is not None:
                    self._folder_row(conn, folder_id)
                now = _now()
                created = created_at.isoformat() if created_at else now
                updated = updated_at.isoformat() if updated_at else created
                cur = conn.execute(
                    """
                    INSERT INTO notes (title, content, folder_id, order_index, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (title, content, folder_id, self._next_order(conn, folder_id), created, updated),
                )
                note = _row_to_note(self._note_row(conn, cur.lastrowid))
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            logger.debug("Created note %d in folder %s", note.id, folder_id)
            return note
        finally:
            conn.close()

    def update_note(
        self,
        note_id: NoteId,
        title: str | None = None,
        content: str | None = None,
        folder_id: FolderId | None = _UNSET,
    ) -> Note:
        """
        Update selected fields of a note.

        ``folder_id`` may be passed as ``None`` to move a note out of any
        folder; leaving it out keeps the current folder. Moving a note puts
        it on top of its new folder.
        """
        conn = self._conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                current = _row_to_note(self._note_row(conn, note_id))
                new_title = current.title if title is None else title
                new_content = current.content if content is None else content
                new_folder = current.folder_id if folder_id is _UNSET else folder_id
                order_index = current.order_index
                if new_folder != current.folder_id:
                    if new_folder is not None:
                        self._folder_row(conn, new_folder)
                    order_index = self._next_order(conn, new_folder)
                conn.execute(
                    """
                    UPDATE notes
                    SET title = ?, content = ?, folder_id = ?, order_index = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (new_title, new_content, new_folder, order_index, _now(), note_id),
                )
                note = _row_to_note(self._note_row(conn, note_id))
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return note
        finally:
            conn.close()

    def delete_note(self, note_id: NoteId) -> None:
        conn = self._conn()
        try:
            cur = conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
            if cur.rowcount == 0:
                raise NoteNotFound(note_id)
            logger.debug("Deleted note %d", note_id)
        finally:
            conn.close()

    def reorder_notes(self, folder_id: FolderId, order: Mapping[NoteId, int]) -> int:
        """
        Apply ``{note_id: order_index}`` within one folder, all or nothing.

        Notes that are not in the folder are ignored. Returns the number of
        notes updated.
        """
        conn = self._conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                self._folder_row(conn, folder_id)
                updated = 0
                for note_id, order_index in order.items():
                    cur = conn.execute(
                        "UPDATE notes SET order_index = ? WHERE id = ? AND folder_id = ?",
                        (order_index, note_id, folder_id),
                    )
                    updated += cur.rowcount
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return updated
        finally:
            conn.close()

    def _rewrite_content(self, note_id: NoteId, edit: Any) -> Note:
        # one transaction so concurrent toggles never work from stale text
        conn = self._conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                current = _row_to_note(self._note_row(conn, note_id))
                new_content = edit(current.content)
                if new_content != current.content:
                    conn.execute(
                        "UPDATE notes SET content = ?, updated_at = ? WHERE id = ?",
                        (new_content, _now(), note_id),
                    )
                note = _row_to_note(self._note_row(conn, note_id))
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return note
        finally:
            conn.close()

    def toggle_checkbox(self, note_id: NoteId, line_index: int, strict: bool = False) -> Note:
        """Flip one checklist line of a stored note and persist the result."""
        note = self._rewrite_content(
            note_id, lambda text: toggle_checkbox(text, line_index, strict=strict)
        )
        logger.debug("Toggled line %d of note %d", line_index, note_id)
        return note

    def set_checkbox(
        self, note_id: NoteId, line_index: int, checked: bool, strict: bool = False
    ) -> Note:
        return self._rewrite_content(
            note_id, lambda text: set_checkbox(text, line_index, checked, strict=strict)
        )
