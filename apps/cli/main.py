"""Expose the CLI Typer app under ``apps.cli.main`` for the console script."""

from __future__ import annotations

from apps.cli.personal_os_cli.main import app

__all__ = ["app"]
