"""
Configuration management CLI commands.

Collection settings live in .shelf/config.yaml under dotted keys.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.table import Table

from shelf.core.backup import DEFAULT_KEEP_COUNT, DEFAULT_KEEP_DAYS
from shelf.core.config import get_paths
from shelf.recommendations.cache import DEFAULT_TTL_MINUTES

console = Console()

CONFIG_SCHEMA: dict[str, dict[str, Any]] = {
    "backup.keep_days": {
        "default": DEFAULT_KEEP_DAYS,
        "type": int,
        "description": "Maximum age of database backups in days",
    },
    "backup.keep_count": {
        "default": DEFAULT_KEEP_COUNT,
        "type": int,
        "description": "Minimum number of backups to keep per database",
    },
    "recommendations.cache_ttl_minutes": {
        "default": DEFAULT_TTL_MINUTES,
        "type": int,
        "description": "How long the API caches reading path catalogs",
    },
    "server.host": {
        "default": "127.0.0.1",
        "type": str,
        "description": "Interface for 'shelf serve'",
    },
    "server.port": {
        "default": 8000,
        "type": int,
        "description": "Port for 'shelf serve'",
    },
}


def get_config_path(root: Path | None = None) -> Path:
    return get_paths(root).config_file


def load_config(root: Path | None = None) -> dict[str, Any]:
    """Load configuration, or an empty dict if there is none."""
    config_path = get_config_path(root)
    if not config_path.exists():
        return {}
    loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    return loaded if isinstance(loaded, dict) else {}


def save_config(config: dict[str, Any]) -> None:
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        yaml.dump(config, default_flow_style=False, sort_keys=False), encoding="utf-8"
    )


def get_config_value(key: str, default: Any = None, root: Path | None = None) -> Any:
    """Get a configuration value by dotted key."""
    current: Any = load_config(root)
    for part in key.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return default
    return current


def get_setting(key: str, root: Path | None = None) -> Any:
    """Get a known setting, falling back to its schema default."""
    schema = CONFIG_SCHEMA[key]
    value = get_config_value(key, root=root)
    if value is None:
        return schema["default"]
    try:
        return schema["type"](value)
    except (TypeError, ValueError):
        return schema["default"]


def set_config_value(key: str, value: Any) -> None:
    """Set a configuration value by dotted key."""
    config = load_config()
    parts = key.split(".")
    current = config
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = value
    save_config(config)


def _unknown_key(key: str) -> None:
    console.print(f"[red]Unknown setting: {key}[/red]")
    console.print("\nAvailable settings:")
    for k in CONFIG_SCHEMA:
        console.print(f"  - {k}")


@click.group()
def config():
    """Manage collection settings.

    Settings are stored in .shelf/config.yaml.
    """
    pass


@config.command(name="show")
@click.option("--all", "show_all", is_flag=True, help="Show all settings including defaults")
def show_cmd(show_all: bool):
    """Show current configuration.

    Without --all, only shows settings that differ from defaults.
    """
    config_path = get_config_path()
    if not load_config() and not show_all:
        console.print("[dim]No custom configuration set. Using defaults.[/dim]")
        console.print(f"[dim]Config file: {config_path}[/dim]")
        return

    table = Table(title="Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value", style="green")
    table.add_column("Default", style="dim")
    table.add_column("Description", style="dim")

    for key, schema in CONFIG_SCHEMA.items():
        current = get_config_value(key)
        default = schema["default"]
        if show_all or (current is not None and current != default):
            table.add_row(
                key,
                str(current) if current is not None else f"[dim]{default}[/dim]",
                str(default),
                schema["description"],
            )

    console.print(table)
    console.print(f"\n[dim]Config file: {config_path}[/dim]")


@config.command(name="get")
@click.argument("key")
def get_cmd(key: str):
    """Get a configuration value.

    Examples:
        shelf config get server.port
    """
    if key not in CONFIG_SCHEMA:
        _unknown_key(key)
        return

    value = get_config_value(key)
    if value is None:
        console.print(f"{key} = {CONFIG_SCHEMA[key]['default']} [dim](default)[/dim]")
    else:
        console.print(f"{key} = {value}")


@config.command(name="set")
@click.argument("key")
@click.argument("value")
def set_cmd(key: str, value: str):
    """Set a configuration value.

    Examples:
        shelf config set backup.keep_days 14
        shelf config set recommendations.cache_ttl_minutes 5
    """
    if key not in CONFIG_SCHEMA:
        _unknown_key(key)
        return

    expected = CONFIG_SCHEMA[key]["type"]
    try:
        typed_value = expected(value)
    except ValueError:
        console.print(f"[red]Invalid value type. Expected {expected.__name__}[/red]")
        return

    set_config_value(key, typed_value)
    console.print(f"[green]Set {key} = {typed_value}[/green]")


@config.command(name="reset")
@click.argument("key")
def reset_cmd(key: str):
    """Reset a setting to its default."""
    if key not in CONFIG_SCHEMA:
        _unknown_key(key)
        return

    config = load_config()
    *parents, leaf = key.split(".")
    current: Any = config
    for part in parents:
        current = current.get(part) if isinstance(current, dict) else None

    if not isinstance(current, dict) or leaf not in current:
        console.print(f"[dim]{key} is already at default[/dim]")
        return

    del current[leaf]
    save_config(config)
    console.print(f"[green]Reset {key} to default ({CONFIG_SCHEMA[key]['default']})[/green]")
