"""Personal OS application shells.

This package contains thin I/O layers for different interfaces:
- worker: enrichment worker consuming lifecycle events
- cli: Typer CLI for chat, reconciliation and schema setup
"""
