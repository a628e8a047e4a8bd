"""Tests for preview mode functionality."""

import time
from pathlib import Path

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from jotmark.adapters.html_renderer import HtmlRenderer
from jotmark.watch import DebounceHandler, PreviewBuilder, should_skip, watch_preview


@pytest.fixture
def batches():
    return []


@pytest.fixture
def handler(batches):
    return DebounceHandler(lambda changed, deleted: batches.append((changed, deleted)), 50)


def test_should_skip():
    assert not should_skip(Path("notes/a.md"))
    assert should_skip(Path("notes/.hidden.md"))
    assert should_skip(Path("notes/.#a.md"))
    assert should_skip(Path("notes/a.md~"))
    assert should_skip(Path("notes/a.md.swp"))
    assert should_skip(Path("notes/a.txt"))


def test_debounce_collects_events(handler, batches):
    handler.on_created(FileCreatedEvent("/v/a.md"))
    handler.on_modified(FileModifiedEvent("/v/a.md"))
    handler.on_modified(FileModifiedEvent("/v/b.md"))
    handler.on_deleted(FileDeletedEvent("/v/c.md"))
    handler.on_created(FileCreatedEvent("/v/ignored.txt"))
    handler.on_created(DirCreatedEvent("/v/dir.md"))

    handler.check_and_flush()
    assert batches == []

    time.sleep(0.1)
    handler.check_and_flush()
    assert batches == [({Path("/v/a.md"), Path("/v/b.md")}, {Path("/v/c.md")})]

    handler.check_and_flush()
    assert len(batches) == 1


def test_delete_then_recreate_is_change(handler, batches):
    handler.on_deleted(FileDeletedEvent("/v/a.md"))
    handler.on_created(FileCreatedEvent("/v/a.md"))
    handler.flush()
    assert batches == [({Path("/v/a.md")}, set())]


def test_move_is_delete_plus_change(handler, batches):
    handler.on_moved(FileMovedEvent("/v/old.md", "/v/new.md"))
    handler.flush()
    assert batches == [({Path("/v/new.md")}, {Path("/v/old.md")})]


def test_flush_without_events_does_nothing(handler, batches):
    handler.flush()
    assert batches == []


@pytest.fixture
def notes_dir(tmp_path):
    src = tmp_path / "notes"
    (src / "work").mkdir(parents=True)
    (src / "a.md").write_text("---\ntitle: Front\n---\n- [ ] a")
    (src / "work" / "b.md").write_text("# Heading B\ntext")
    (src / "work" / "c.md").write_text("no title")
    (src / ".draft.md").write_text("hidden")
    return src


def test_build_all(notes_dir, tmp_path):
    out = tmp_path / "site"
    builder = PreviewBuilder(notes_dir, out, HtmlRenderer())
    assert builder.build_all() == 3

    page_a = (out / "a.html").read_text()
    assert "<title>Front</title>" in page_a
    assert 'data-line="0"' in page_a
    assert "title: Front" not in page_a
    assert "<title>Heading B</title>" in (out / "work" / "b.html").read_text()
    assert "<title>c</title>" in (out / "work" / "c.html").read_text()
    assert not (out / ".draft.html").exists()


def test_apply_changes(notes_dir, tmp_path):
    out = tmp_path / "site"
    builder = PreviewBuilder(notes_dir, out)
    builder.build_all()

    (notes_dir / "a.md").write_text("**changed**")
    (notes_dir / "work" / "b.md").unlink()
    (notes_dir / "bad.md").write_text("---\ntitle: [oops\n---\nx")

    counts = builder.apply(
        changed={notes_dir / "a.md", notes_dir / "bad.md", notes_dir / "gone.md"},
        deleted={notes_dir / "work" / "b.md"},
    )
    assert counts == {"rendered": 1, "removed": 1, "failed": 1}
    assert "<strong>changed</strong>" in (out / "a.html").read_text()
    assert not (out / "work" / "b.html").exists()


def test_watch_preview_missing_source(tmp_path, capsys):
    assert watch_preview(tmp_path / "missing", tmp_path / "out") == 1
    assert "Source directory not found" in capsys.readouterr().err
