"""Entry point for running the CLI as a module.

Usage:
    python -m duelarena.cli
"""

from duelarena.cli.app import app

if __name__ == "__main__":
    app()
