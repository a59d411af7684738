"""Shared helpers for CLI commands."""

from pathlib import Path

from rich.console import Console

console = Console()


def get_project_root() -> Path:
    """Get the project root directory (the one holding pyproject.toml)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()
