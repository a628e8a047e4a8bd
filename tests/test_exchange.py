"""Tests for Markdown export and import."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from jotmark.adapters.sqlite_store import SQLiteStore
from jotmark.adapters.yaml_codec import NoteFileCodec, YamlFrontmatter
from jotmark.exchange import MarkdownExporter, MarkdownImporter


@pytest.fixture
def workdir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def make_store(path: Path) -> SQLiteStore:
    return SQLiteStore(db_path=path / "notes.sqlite")


def test_frontmatter_decode():
    fm = YamlFrontmatter()
    meta, body = fm.decode("---\ntitle: Hi\nfolder: Work\n---\n# Hi\n- [ ] a")
    assert meta == {"title": "Hi", "folder": "Work"}
    assert body == "# Hi\n- [ ] a"


def test_frontmatter_absent():
    fm = YamlFrontmatter()
    assert fm.decode("# Just text") == ({}, "# Just text")


def test_rule_lines_are_not_frontmatter():
    """A note that opens with a rule and prose keeps its text."""
    text = "---\nsome prose\n---\nmore"
    assert YamlFrontmatter().decode(text) == ({}, text)


def test_frontmatter_keeps_leading_blank_lines():
    fm = YamlFrontmatter()
    text = fm.encode({"title": "t"}) + "\n\nbody"
    assert fm.decode(text) == ({"title": "t"}, "\n\nbody")


def test_encode_note(workdir):
    store = make_store(workdir)
    note = store.create_note("Trip: day 1", "- [ ] pack")
    text = NoteFileCodec().encode_note(note, "Personal")
    assert text.startswith("---\ntitle: 'Trip: day 1'\nfolder: Personal\n")
    assert text.endswith("---\n- [ ] pack")


def test_export_layout(workdir):
    store = make_store(workdir / "db")
    work = store.find_folder("Work")
    filed = store.create_note("Weekly Plan", "# Plan", work.id)
    loose = store.create_note("Loose ends", "stuff")

    out = workdir / "out"
    count = MarkdownExporter(store).export_all(str(out))
    assert count == 2
    assert (out / "work" / f"{filed.id}-weekly-plan.md").exists()
    assert (out / "unfiled" / f"{loose.id}-loose-ends.md").exists()


def test_export_import_round_trip(workdir):
    source = make_store(workdir / "a")
    work = source.find_folder("Work")
    ideas = source.create_folder("Ideas")
    source.create_note("Plan", "# Plan\n- [x] one\n- [ ] two\r\n", work.id)
    source.create_note("Spark", "**big** idea", ideas.id)
    source.create_note("Loose", "")

    out = workdir / "out"
    MarkdownExporter(source).export_all(str(out))

    target = make_store(workdir / "b")
    importer = MarkdownImporter(target)
    count = importer.import_all(str(out))
    assert count == 3
    assert importer.report.failed == []
    assert importer.report.folders_created == ["Ideas"]

    def snapshot(store):
        folders = {f.id: f.name for f in store.list_folders()}
        return sorted(
            (n.title, n.content, folders.get(n.folder_id)) for n in store.list_notes()
        )

    assert snapshot(target) == snapshot(source)


def test_import_title_fallbacks(workdir):
    src = workdir / "src"
    src.mkdir()
    (src / "from-heading.md").write_text("text\n## Heading Title\nmore")
    (src / "from-name.md").write_text("no heading here")

    store = make_store(workdir)
    MarkdownImporter(store).import_all(str(src))
    titles = sorted(n.title for n in store.list_notes())
    assert titles == ["Heading Title", "from-name"]


def test_import_default_folder(workdir):
    src = workdir / "src"
    src.mkdir()
    (src / "a.md").write_text("a")
    (src / "b.md").write_text("---\nfolder: Work\n---\nb")

    store = make_store(workdir)
    importer = MarkdownImporter(store)
    importer.import_all(str(src), default_folder="Inbox")
    folders = {f.id: f.name for f in store.list_folders()}
    placed = {n.content: folders[n.folder_id] for n in store.list_notes()}
    assert placed == {"a": "Inbox", "b": "Work"}
    assert importer.report.folders_created == ["Inbox"]


def test_import_skips_hidden_and_reports_bad_files(workdir):
    src = workdir / "src"
    (src / ".trash").mkdir(parents=True)
    (src / ".trash" / "old.md").write_text("old")
    (src / "good.md").write_text("good")
    (src / "bad.md").write_text("---\ntitle: [unclosed\n---\nbody")
    (src / "binary.md").write_bytes(b"\xff\xfe\x00bad")

    store = make_store(workdir)
    importer = MarkdownImporter(store)
    assert importer.import_all(str(src)) == 1
    failed = sorted(Path(p).name for p, _ in importer.report.failed)
    assert failed == ["bad.md", "binary.md"]


def test_import_missing_directory(workdir):
    store = make_store(workdir)
    with pytest.raises(NotADirectoryError):
        MarkdownImporter(store).import_all(str(workdir / "missing"))


def test_import_blank_folder_uses_default(workdir):
    src = workdir / "src"
    src.mkdir()
    (src / "a.md").write_text("a")
    (src / "b.md").write_text('---\nfolder: "  "\n---\nb')
    (src / "c.md").write_text("c")

    store = make_store(workdir)
    importer = MarkdownImporter(store)
    assert importer.import_all(str(src), default_folder="Work") == 3
    assert importer.report.failed == []
    work = store.find_folder("Work")
    assert sorted(n.content for n in store.list_notes(folder_id=work.id)) == ["a", "b", "c"]


def test_import_invalid_folder_fails_per_file(workdir):
    src = workdir / "src"
    src.mkdir()
    (src / "a.md").write_text("a")
    (src / "b.md").write_text('---\nfolder: "  "\n---\nb')
    (src / "c.md").write_text("c")

    store = make_store(workdir)
    importer = MarkdownImporter(store)
    assert importer.import_all(str(src), default_folder="   ") == 0
    failed = [Path(p).name for p, reason in importer.report.failed]
    assert failed == ["a.md", "b.md", "c.md"]
    assert "Folder name is required" in importer.report.failed[0][1]


def test_import_restores_timestamps(workdir):
    src = workdir / "src"
    src.mkdir()
    (src / "a.md").write_text(
        "---\ncreated: '2024-03-01T09:30:00+02:00'\nupdated: 2024-03-02 10:00:00\n---\na"
    )
    (src / "b.md").write_text("---\ncreated: 2024-01-05\n---\nb")
    (src / "c.md").write_text("---\ncreated: not a date\n---\nc")

    store = make_store(workdir)
    importer = MarkdownImporter(store)
    assert importer.import_all(str(src)) == 2
    assert [Path(p).name for p, _ in importer.report.failed] == ["c.md"]

    notes = {n.content: n for n in store.list_notes()}
    assert notes["a"].created_at == datetime(2024, 3, 1, 7, 30, tzinfo=timezone.utc)
    assert notes["a"].updated_at == datetime(2024, 3, 2, 10, 0, tzinfo=timezone.utc)
    assert notes["b"].created_at == datetime(2024, 1, 5, tzinfo=timezone.utc)
    assert notes["b"].updated_at == notes["b"].created_at


def test_round_trip_keeps_timestamps(workdir):
    source = make_store(workdir / "a")
    note = source.create_note("Plan", "- [ ] one")
    note = source.toggle_checkbox(note.id, 0)

    out = workdir / "out"
    MarkdownExporter(source).export_all(str(out))
    target = make_store(workdir / "b")
    MarkdownImporter(target).import_all(str(out))

    [copy] = target.list_notes()
    assert copy.created_at == note.created_at
    assert copy.updated_at == note.updated_at
