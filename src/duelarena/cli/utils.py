"""Utility functions for the Duel Arena CLI."""

import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console

from duelarena.registry.characters import JsonCharacterRegistry
from duelarena.utils.config import get_log_level, get_registry_path


def configure_logging(level: str | None = None) -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=(level or get_log_level()).upper())


def load_registry(path: Path | None, console: Console) -> JsonCharacterRegistry:
    registry_path = path or get_registry_path()
    if not registry_path.exists():
        console.print(f"[red]Error:[/red] character registry not found at {registry_path}")
        raise typer.Exit(code=1)
    return JsonCharacterRegistry(registry_path).load()
