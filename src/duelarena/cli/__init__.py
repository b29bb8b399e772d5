"""Duel Arena CLI.

Developer tooling for running battles locally and inspecting event logs.

Usage:
    duel --help
"""

from duelarena.cli.app import app

__all__ = ["app"]
