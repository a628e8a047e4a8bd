"""Preview mode - render a directory of notes to HTML and keep it fresh."""

import json
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any, Callable

import yaml
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .adapters.html_renderer import HtmlRenderer
from .adapters.yaml_codec import YamlFrontmatter
from .core.utils import first_heading

logger = logging.getLogger(__name__)


def should_skip(path: Path) -> bool:
    """Hidden files, editor backups and non-Markdown files are never rendered."""
    name = path.name
    if name.startswith("."):
        return True
    if name.endswith("~") or name.endswith(".swp"):
        return True
    return not name.endswith(".md")


class DebounceHandler(FileSystemEventHandler):
    """File system event handler with debouncing."""

    def __init__(
        self,
        on_batch: Callable[[set[Path], set[Path]], None],
        debounce_ms: int = 150,
    ):
        super().__init__()
        self.on_batch = on_batch
        self.debounce_ms = debounce_ms

        self.changed: set[Path] = set()
        self.deleted: set[Path] = set()
        self.last_event_time = 0.0

    def _track(self, raw_path: Any, bucket: set[Path], other: set[Path]) -> None:
        path = Path(str(raw_path))
        if should_skip(path):
            return
        bucket.add(path)
        other.discard(path)
        self.last_event_time = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._track(event.src_path, self.changed, self.deleted)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._track(event.src_path, self.changed, self.deleted)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._track(event.src_path, self.deleted, self.changed)

    def on_moved(self, event: FileSystemEvent) -> None:
        # editors that save via rename show up as moves
        if not event.is_directory:
            self._track(event.src_path, self.deleted, self.changed)
            self._track(event.dest_path, self.changed, self.deleted)

    def check_and_flush(self) -> None:
        """Check if debounce period has elapsed and flush if so."""
        if not (self.changed or self.deleted):
            return
        elapsed = (time.time() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            self.flush()

    def flush(self) -> None:
        """Process accumulated events."""
        if not (self.changed or self.deleted):
            return
        changed, deleted = set(self.changed), set(self.deleted)
        self.changed.clear()
        self.deleted.clear()
        self.on_batch(changed, deleted)


class PreviewBuilder:
    """Maps ``src/**/x.md`` to ``out/**/x.html`` and renders it."""

    def __init__(self, src: Path, out: Path, renderer: HtmlRenderer | None = None):
        self.src = src
        self.out = out
        self.renderer = renderer or HtmlRenderer()
        self.fm = YamlFrontmatter()

    def target(self, path: Path) -> Path:
        return (self.out / path.relative_to(self.src)).with_suffix(".html")

    def render_file(self, path: Path) -> Path:
        meta, body = self.fm.decode(path.read_text(encoding="utf-8"))
        title = str(meta.get("title") or first_heading(body) or path.stem)
        target = self.target(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.renderer.render_page(body, title=title), encoding="utf-8")
        return target

    def remove_file(self, path: Path) -> bool:
        target = self.target(path)
        if target.exists():
            target.unlink()
            return True
        return False

    def build_all(self) -> int:
        count = 0
        for path in sorted(self.src.rglob("*.md")):
            if should_skip(path):
                continue
            self.render_file(path)
            count += 1
        return count

    def apply(self, changed: set[Path], deleted: set[Path]) -> dict[str, int]:
        counts = {"rendered": 0, "removed": 0, "failed": 0}
        for path in sorted(changed):
            if not path.exists():
                continue
            try:
                self.render_file(path)
                counts["rendered"] += 1
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
                logger.warning("Failed to render %s: %s", path, e)
                counts["failed"] += 1
        for path in sorted(deleted):
            if self.remove_file(path):
                counts["removed"] += 1
        return counts


def watch_preview(
    src: Path,
    out: Path,
    renderer: HtmlRenderer | None = None,
    debounce_ms: int = 150,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Render ``src`` into ``out`` and re-render files as they change.

    Args:
        src: Directory of Markdown notes
        out: Directory for rendered HTML
        renderer: HTML renderer to use
        debounce_ms: Debounce window in milliseconds
        quiet: Suppress output
        json_output: Output JSON events instead of human-readable

    Returns:
        Exit code
    """
    if not src.is_dir():
        print(f"Error: Source directory not found: {src}", file=sys.stderr)
        return 1

    builder = PreviewBuilder(src.resolve(), out, renderer)
    count = builder.build_all()
    if not quiet and not json_output:
        print(f"Rendered {count} notes into {out}", flush=True)

    running = True

    def handle_batch(changed: set[Path], deleted: set[Path]) -> None:
        start_time = time.time()
        counts = builder.apply(changed, deleted)
        duration_ms = int((time.time() - start_time) * 1000)
        if json_output:
            event = {
                "type": "batch",
                "changed": sorted(str(p) for p in changed),
                "deleted": sorted(str(p) for p in deleted),
                "duration_ms": duration_ms,
                **counts,
            }
            print(json.dumps(event), flush=True)
        elif not quiet:
            print(
                f"Rendered: +{counts['rendered']} -{counts['removed']} "
                f"!{counts['failed']} ({duration_ms}ms)",
                flush=True,
            )

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = DebounceHandler(handle_batch, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(builder.src), recursive=True)

    if not quiet and not json_output:
        print(f"Watching {src} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()
    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)
    return 0
