"""CLI for jotmark - plain-text notes with checklists."""

import argparse
import json
import logging
import os
import platform
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Any

from . import __version__
from .config import load_config
from .core.checkbox import checklist_progress, toggle_checkbox
from .core.errors import FolderNotFound, JotmarkError
from .core.model import block_to_dict
from .core.render import render
from .runtime import build_runtime

# Commands that work on files and never open the note database
FILE_COMMANDS = {"render", "toggle", "preview"}


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.buffer.read().decode("utf-8")
    return Path(path).read_bytes().decode("utf-8")


def _print_rendered(content: str, fmt: str, rt: Any, numbered: bool = False) -> None:
    if fmt == "json":
        print(json.dumps([block_to_dict(b) for b in render(content)], indent=2))
    elif fmt == "html":
        print(rt.html.render_text(content))
    elif fmt == "raw":
        print(content)
    else:
        rt.text.numbered = numbered
        print(rt.text.render_text(content))


def _resolve_folder(rt: Any, value: str | None) -> int | None:
    """Accept a folder id or a folder name."""
    if value is None:
        return None
    if value.isdigit():
        return rt.store.get_folder(int(value)).id
    folder = rt.store.find_folder(value)
    if folder is None:
        raise FolderNotFound(value)
    return folder.id


def _run_editor(initial: str) -> str:
    editor = os.environ.get("EDITOR", "vi")
    with tempfile.NamedTemporaryFile("w", suffix=".md", delete=False, encoding="utf-8") as f:
        f.write(initial)
        path = Path(f.name)
    try:
        subprocess.run([editor, str(path)], check=False)
        return path.read_text(encoding="utf-8")
    finally:
        path.unlink(missing_ok=True)


def cmd_render(args: argparse.Namespace, rt: Any) -> int:
    """Render a markup file (or stdin)."""
    _print_rendered(_read_source(args.file), args.format, rt, numbered=args.numbered)
    return 0


def cmd_toggle(args: argparse.Namespace, rt: Any) -> int:
    """Toggle one checklist line of a markup file."""
    content = _read_source(args.file)
    new_content = toggle_checkbox(content, args.line, strict=args.strict)
    if args.in_place:
        if args.file == "-":
            print("Error: --in-place needs a file, not stdin", file=sys.stderr)
            return 1
        Path(args.file).write_bytes(new_content.encode("utf-8"))
        if not args.quiet:
            state = "unchanged" if new_content == content else "toggled"
            print(f"Line {args.line} {state}")
    else:
        sys.stdout.write(new_content)
    return 0


def cmd_folders_ls(args: argparse.Namespace, rt: Any) -> int:
    """List folders."""
    folders = rt.store.list_folders()
    if args.json:
        print(json.dumps([f.to_dict() for f in folders], indent=2))
        return 0
    counts: dict[int | None, int] = {}
    for note in rt.store.list_notes():
        counts[note.folder_id] = counts.get(note.folder_id, 0) + 1
    for folder in folders:
        print(f"{folder.id}\t{folder.name}\t{counts.get(folder.id, 0)}")
    return 0


def cmd_folders_add(args: argparse.Namespace, rt: Any) -> int:
    """Create a folder."""
    folder = rt.store.create_folder(args.name)
    if not args.quiet:
        print(folder.id)
    return 0


def cmd_folders_rename(args: argparse.Namespace, rt: Any) -> int:
    """Rename a folder."""
    rt.store.rename_folder(args.id, args.name)
    return 0


def cmd_folders_rm(args: argparse.Namespace, rt: Any) -> int:
    """Delete an empty folder."""
    rt.store.delete_folder(args.id)
    if not args.quiet:
        print(f"Deleted folder {args.id}")
    return 0


def cmd_new(args: argparse.Namespace, rt: Any) -> int:
    """Create a new note."""
    title = args.title or ""
    if args.content is not None:
        content = args.content
    elif not sys.stdin.isatty():
        content = sys.stdin.buffer.read().decode("utf-8")
    else:
        content = f"# {title}\n" if title else ""

    if args.edit:
        content = _run_editor(content)

    folder_id = _resolve_folder(rt, args.folder)
    note = rt.store.create_note(title, content, folder_id)
    if not args.quiet:
        print(note.id)
    return 0


def cmd_ls(args: argparse.Namespace, rt: Any) -> int:
    """List notes."""
    notes = rt.store.list_notes(folder_id=_resolve_folder(rt, args.folder), query=args.grep)
    if args.json:
        print(json.dumps([n.to_dict() for n in notes], indent=2))
        return 0
    for note in notes:
        done, total = checklist_progress(note.content)
        progress = f"\t[{done}/{total}]" if total else ""
        print(f"{note.id}\t{note.title}{progress}")
    return 0


def cmd_show(args: argparse.Namespace, rt: Any) -> int:
    """Render a stored note."""
    note = rt.store.get_note(args.id)
    fmt = "json" if args.json else args.format
    _print_rendered(note.content, fmt, rt, numbered=args.numbered)
    return 0


def cmd_edit(args: argparse.Namespace, rt: Any) -> int:
    """Open a note's content in $EDITOR and save it back."""
    note = rt.store.get_note(args.id)
    content = _run_editor(note.content)
    if content == note.content:
        if not args.quiet:
            print("No changes")
        return 0
    rt.store.update_note(note.id, content=content)
    return 0


def cmd_check(args: argparse.Namespace, rt: Any) -> int:
    """Toggle a checklist line of a stored note."""
    before = rt.store.get_note(args.id)
    note = rt.store.toggle_checkbox(args.id, args.line, strict=args.strict)
    if not args.quiet:
        if note.content == before.content:
            print(f"Line {args.line} is not a checklist item; nothing changed")
        else:
            print(note.content.split("\n")[args.line])
    return 0


def cmd_rm(args: argparse.Namespace, rt: Any) -> int:
    """Delete a note."""
    rt.store.delete_note(args.id)
    if not args.quiet:
        print(f"Deleted note {args.id}")
    return 0


def cmd_export(args: argparse.Namespace, rt: Any) -> int:
    """Export notes as Markdown files with YAML front matter."""
    from .exchange import MarkdownExporter

    count = MarkdownExporter(rt.store).export_all(args.out)
    if not args.quiet:
        print(f"Exported {count} notes to {args.out}")
    return 0


def cmd_import(args: argparse.Namespace, rt: Any) -> int:
    """Import Markdown files."""
    from .exchange import MarkdownImporter

    src_dir = Path(args.src)
    if not src_dir.is_dir():
        print(f"Source directory does not exist: {src_dir}", file=sys.stderr)
        return 1

    importer = MarkdownImporter(rt.store)
    count = importer.import_all(str(src_dir), default_folder=args.folder)
    report = importer.report
    if args.json:
        print(json.dumps({
            "imported": report.imported,
            "failed": [{"path": p, "reason": r} for p, r in report.failed],
            "folders_created": report.folders_created,
        }, indent=2))
    elif not args.quiet:
        print(f"Imported: {count}")
        if report.folders_created:
            print(f"Folders created: {', '.join(report.folders_created)}")
        if report.failed:
            print(f"Failed: {len(report.failed)}")
            for path, reason in report.failed:
                print(f"  {path}: {reason}")
    return 1 if report.failed else 0


def cmd_preview(args: argparse.Namespace, rt: Any) -> int:
    """Render a directory of notes to HTML, optionally watching for changes."""
    from .watch import PreviewBuilder, watch_preview

    src, out = Path(args.src), Path(args.out)
    if args.once:
        if not src.is_dir():
            print(f"Error: Source directory not found: {src}", file=sys.stderr)
            return 1
        count = PreviewBuilder(src.resolve(), out, rt.html).build_all()
        if not args.quiet:
            print(f"Rendered {count} notes into {out}")
        return 0

    return watch_preview(
        src=src,
        out=out,
        renderer=rt.html,
        debounce_ms=args.debounce_ms,
        quiet=args.quiet,
        json_output=args.json,
    )


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start the JSON API server."""
    import uvicorn

    from .api.app import create_app, generate_token

    token_arg = args.token
    token = None
    if token_arg == "auto":
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == "none":
        print("Warning: Running without authentication. Only use in trusted environments.")
    else:
        token = token_arg

    server = rt.config.server
    host = args.host or server.host
    port = args.port or server.port
    app = create_app(rt, token=token, enable_cors=args.cors or server.cors)

    print(f"Starting server on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


def _version_text() -> str:
    return (
        f"jotmark {__version__}\n"
        f"python {platform.python_version()}\n"
        f"platform {platform.system().lower()}-{platform.machine()}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jot", description="jotmark CLI")
    parser.add_argument("--version", action="version", version=_version_text())
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/jot.toml)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the note database (overrides config)",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimize output")
    parser.add_argument("--json", action="store_true", help="Machine-readable output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="cmd", required=True)
    formats = ["text", "html", "json"]

    # render command
    parser_render = subparsers.add_parser("render", help="Render a markup file")
    parser_render.add_argument("file", help="Markup file, or - for stdin")
    parser_render.add_argument("--format", choices=formats, default="text")
    parser_render.add_argument("-n", "--numbered", action="store_true", help="Show line numbers")

    # toggle command
    parser_toggle = subparsers.add_parser("toggle", help="Toggle a checklist line in a file")
    parser_toggle.add_argument("file", help="Markup file, or - for stdin")
    parser_toggle.add_argument("line", type=int, help="0-based line index")
    parser_toggle.add_argument("-i", "--in-place", action="store_true", help="Rewrite the file")
    parser_toggle.add_argument(
        "--strict", action="store_true", help="Fail if the line is not a checklist item"
    )

    # folders command
    parser_folders = subparsers.add_parser("folders", help="Manage folders")
    folders_sub = parser_folders.add_subparsers(dest="folders_cmd", required=True)
    folders_sub.add_parser("ls", help="List folders")
    parser_folders_add = folders_sub.add_parser("add", help="Create a folder")
    parser_folders_add.add_argument("name")
    parser_folders_rename = folders_sub.add_parser("rename", help="Rename a folder")
    parser_folders_rename.add_argument("id", type=int)
    parser_folders_rename.add_argument("name")
    parser_folders_rm = folders_sub.add_parser("rm", help="Delete an empty folder")
    parser_folders_rm.add_argument("id", type=int)

    # new command
    parser_new = subparsers.add_parser("new", help="Create a new note")
    parser_new.add_argument("--title", default=None, help="Note title")
    parser_new.add_argument("--folder", default=None, help="Folder id or name")
    parser_new.add_argument("--content", default=None, help="Note content (default: stdin)")
    parser_new.add_argument("--edit", action="store_true", help="Open in $EDITOR first")

    # ls command
    parser_ls = subparsers.add_parser("ls", help="List notes")
    parser_ls.add_argument("--folder", default=None, help="Folder id or name")
    parser_ls.add_argument("--grep", default=None, help="Substring filter")

    # show command
    parser_show = subparsers.add_parser("show", help="Render a stored note")
    parser_show.add_argument("id", type=int)
    parser_show.add_argument("--format", choices=formats + ["raw"], default="text")
    parser_show.add_argument("-n", "--numbered", action="store_true", help="Show line numbers")

    # edit command
    parser_edit = subparsers.add_parser("edit", help="Open in $EDITOR")
    parser_edit.add_argument("id", type=int)

    # check command
    parser_check = subparsers.add_parser("check", help="Toggle a checklist line of a note")
    parser_check.add_argument("id", type=int)
    parser_check.add_argument("line", type=int, help="0-based line index")
    parser_check.add_argument(
        "--strict", action="store_true", help="Fail if the line is not a checklist item"
    )

    # rm command
    parser_rm = subparsers.add_parser("rm", help="Delete a note")
    parser_rm.add_argument("id", type=int)

    # export command
    parser_export = subparsers.add_parser("export", help="Export notes as Markdown")
    parser_export.add_argument("out", help="Output directory")

    # import command
    parser_import = subparsers.add_parser("import", help="Import Markdown files")
    parser_import.add_argument("src", help="Directory to scan for *.md")
    parser_import.add_argument(
        "--folder", default=None, help="Folder for files without a 'folder' key"
    )

    # preview command
    parser_preview = subparsers.add_parser("preview", help="Render Markdown files to HTML")
    parser_preview.add_argument("src", help="Directory of Markdown notes")
    parser_preview.add_argument("--out", required=True, help="Output directory")
    parser_preview.add_argument("--once", action="store_true", help="Render once and exit")
    parser_preview.add_argument(
        "--debounce-ms", type=int, default=150,
        help="Debounce window in milliseconds (default: 150)",
    )

    # serve command
    parser_serve = subparsers.add_parser("serve", help="Start the JSON API server")
    parser_serve.add_argument("--host", default=None, help="Host to bind to (default: config)")
    parser_serve.add_argument("--port", type=int, default=None, help="Port (default: config)")
    parser_serve.add_argument(
        "--token", default="auto", help="Bearer token (auto|<string>|none, default: auto)"
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(config_path=args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log.level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "render": cmd_render,
        "toggle": cmd_toggle,
        "new": cmd_new,
        "ls": cmd_ls,
        "show": cmd_show,
        "edit": cmd_edit,
        "check": cmd_check,
        "rm": cmd_rm,
        "export": cmd_export,
        "import": cmd_import,
        "preview": cmd_preview,
        "serve": cmd_serve,
    }
    folders_handlers = {
        "ls": cmd_folders_ls,
        "add": cmd_folders_add,
        "rename": cmd_folders_rename,
        "rm": cmd_folders_rm,
    }

    if args.cmd == "folders":
        handler = folders_handlers.get(args.folders_cmd)
    else:
        handler = handlers.get(args.cmd)

    if handler is None:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)

    try:
        rt = build_runtime(
            db_path=args.db, config=config, open_store=args.cmd not in FILE_COMMANDS
        )
        rt.text.colors = rt.text.colors and sys.stdout.isatty()
        exit_code = handler(args, rt)
    except (JotmarkError, OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
