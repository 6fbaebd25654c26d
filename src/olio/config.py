"""Configuration loader for olio.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .adapters.help_resolver import DEFAULT_ARTICLE_PATH
from .adapters.inline_parser import DEFAULT_MAX_DEPTH

CONFIG_NAME = "olio.toml"


@dataclass
class LibraryConfig:
    """Help article library location."""
    root: Path


@dataclass
class ParserConfig:
    """Document parser settings."""
    max_inline_depth: int = DEFAULT_MAX_DEPTH


@dataclass
class HelpConfig:
    """Public help page settings."""
    article_path: str = DEFAULT_ARTICLE_PATH


@dataclass
class ServeConfig:
    """JSON API server settings."""
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class WatchConfig:
    """Watch mode settings."""
    debounce_ms: int = 150


@dataclass
class OlioConfig:
    """Complete olio configuration."""
    library: LibraryConfig
    parser: ParserConfig
    help: HelpConfig
    serve: ServeConfig
    watch: WatchConfig


def load_config(config_path: Path | None = None, library_path: Path | None = None) -> OlioConfig:
    """
    Load configuration from olio.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/olio.toml
    3. library_path/olio.toml

    Args:
        config_path: Explicit path to config file
        library_path: Library root for fallback search

    Returns:
        OlioConfig with resolved settings

    Raises:
        FileNotFoundError: if config_path is given but missing
        ValueError: if a setting has the wrong type
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_NAME)
    if library_path:
        search_paths.append(library_path / CONFIG_NAME)

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    library_data = toml_data.get("library", {})
    library_config = LibraryConfig(
        root=Path(library_data.get("root", library_path or Path("./help"))),
    )

    parser_data = toml_data.get("parser", {})
    depth = parser_data.get("max_inline_depth", DEFAULT_MAX_DEPTH)
    if not isinstance(depth, int) or depth < 0:
        raise ValueError(f"parser.max_inline_depth must be a non-negative integer, got {depth!r}")
    parser_config = ParserConfig(max_inline_depth=depth)

    help_data = toml_data.get("help", {})
    help_config = HelpConfig(
        article_path=help_data.get("article_path", DEFAULT_ARTICLE_PATH),
    )

    serve_data = toml_data.get("serve", {})
    serve_config = ServeConfig(
        host=serve_data.get("host", "127.0.0.1"),
        port=int(serve_data.get("port", 8765)),
    )

    watch_data = toml_data.get("watch", {})
    watch_config = WatchConfig(
        debounce_ms=int(watch_data.get("debounce_ms", 150)),
    )

    return OlioConfig(
        library=library_config,
        parser=parser_config,
        help=help_config,
        serve=serve_config,
        watch=watch_config,
    )
