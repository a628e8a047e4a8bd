"""Configuration loader for jot.toml."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .adapters.sqlite_store import DEFAULT_FOLDERS


@dataclass
class StoreConfig:
    """Note database configuration."""
    db: Path
    default_folders: tuple[str, ...] = DEFAULT_FOLDERS


@dataclass
class ServerConfig:
    """HTTP API configuration."""
    host: str = "127.0.0.1"
    port: int = 8080
    cors: bool = False


@dataclass
class RenderConfig:
    """HTML rendering configuration."""
    safe_links: bool = True


@dataclass
class UIConfig:
    """UI configuration."""
    colors: bool = True


@dataclass
class LogConfig:
    level: str = "WARNING"


@dataclass
class JotConfig:
    """Complete jotmark configuration."""
    store: StoreConfig
    server: ServerConfig = field(default_factory=ServerConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log: LogConfig = field(default_factory=LogConfig)


def load_config(config_path: Path | None = None, data_dir: Path | None = None) -> JotConfig:
    """
    Load configuration from jot.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/jot.toml
    3. data_dir/jot.toml

    Args:
        config_path: Explicit path to config file
        data_dir: Data directory for fallback search; also the default
            location of the database

    Returns:
        JotConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / "jot.toml")
    if data_dir:
        search_paths.append(data_dir / "jot.toml")

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    store_data = toml_data.get("store", {})
    default_db = (data_dir or Path("./data")) / "notes.sqlite"
    store_config = StoreConfig(
        db=Path(store_data.get("db", default_db)).expanduser(),
        default_folders=tuple(store_data.get("default_folders", DEFAULT_FOLDERS)),
    )

    server_data = toml_data.get("server", {})
    server_config = ServerConfig(
        host=server_data.get("host", "127.0.0.1"),
        port=int(server_data.get("port", 8080)),
        cors=bool(server_data.get("cors", False)),
    )

    render_data = toml_data.get("render", {})
    render_config = RenderConfig(safe_links=render_data.get("safe_links", True))

    ui_data = toml_data.get("ui", {})
    ui_config = UIConfig(colors=ui_data.get("colors", True))

    log_data = toml_data.get("log", {})
    log_config = LogConfig(level=str(log_data.get("level", "WARNING")).upper())

    return JotConfig(
        store=store_config,
        server=server_config,
        render=render_config,
        ui=ui_config,
        log=log_config,
    )
