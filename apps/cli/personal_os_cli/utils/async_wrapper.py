"""Run async Typer commands.

Chat and reconcile talk to Redis, PostgreSQL and Ollama through async
clients, while Typer only calls plain functions.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any

import typer

# Conventional shell exit status for SIGINT.
INTERRUPTED_EXIT_CODE = 130


def async_command(func: Callable[..., Coroutine[Any, Any, Any]]) -> Callable[..., Any]:
    """Wrap a coroutine command so each invocation gets its own event loop.

    Ctrl-C exits with status 130 instead of printing a traceback.

    Usage:
        @app.command()
        @async_command
        async def reconcile(limit: int = 100) -> None:
            ...
    """

    @wraps(func)
    def run_command(*args: Any, **kwargs: Any) -> Any:
        try:
            return asyncio.run(func(*args, **kwargs))
        except KeyboardInterrupt:
            raise typer.Exit(INTERRUPTED_EXIT_CODE) from None

    return run_command


__all__ = ["INTERRUPTED_EXIT_CODE", "async_command"]
