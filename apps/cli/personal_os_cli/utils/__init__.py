"""Shared helpers for CLI commands."""

from apps.cli.personal_os_cli.utils.async_wrapper import async_command

__all__ = ["async_command"]
