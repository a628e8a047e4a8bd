"""Runtime wiring helper for CLI and API."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.html_renderer import HtmlRenderer
from .adapters.sqlite_store import SQLiteStore
from .adapters.text_renderer import TextRenderer
from .config import JotConfig, load_config
from .core.ports import NoteStore


@dataclass
class Runtime:
    """Container for all wired components."""
    store: NoteStore | None
    html: HtmlRenderer
    text: TextRenderer
    config: JotConfig


def build_runtime(
    db_path: Path | None = None,
    config_path: Path | None = None,
    data_dir: Path | None = None,
    config: JotConfig | None = None,
    open_store: bool = True,
) -> Runtime:
    """Build and wire all components.

    ``open_store=False`` leaves ``store`` unset for commands that only
    render files, so no database gets created.
    """
    if config is None:
        config = load_config(config_path=config_path, data_dir=data_dir)

    # CLI args win over config values
    if db_path is None:
        db_path = config.store.db

    store = None
    if open_store:
        store = SQLiteStore(db_path=db_path, default_folders=config.store.default_folders)
    html = HtmlRenderer(safe_links=config.render.safe_links)
    text = TextRenderer(colors=config.ui.colors)

    return Runtime(store=store, html=html, text=text, config=config)
