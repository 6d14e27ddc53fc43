"""Prompt assembly for retrieval-augmented chat over the owner's posts."""

from __future__ import annotations

from collections.abc import Sequence

from packages.schemas.models import Post


def build_chat_prompt(query: str, sources: Sequence[Post]) -> str:
    """
    Render the chat prompt for a question and its retrieved posts.

    Each source contributes its title and full markdown body under a numbered
    ``Context N`` header, in retrieval order. Output is deterministic for a
    given query and source list.

    Args:
        query: The user's question, inserted verbatim
        sources: Posts returned by the nearest-vector lookup

    Returns:
        Prompt string for the generative service
    """
    lines = ["Based on the following contexts:", ""]
    for idx, source in enumerate(sources, start=1):
        lines.append(f"--- Context {idx} (Title: {source.title}) ---")
        lines.append(source.content_markdown)
        lines.append("")

    lines.append("--- Question ---")
    lines.append(query)
    lines.append("")
    lines.append("--- Answer ---")
    lines.append("Please answer the question above based only on the provided contexts:")

    return "\n".join(lines)


def format_source_list(sources: Sequence[Post]) -> str:
    """
    Format source list for a citation section.

    Args:
        sources: Posts used as context, in prompt order

    Returns:
        Formatted source list string
    """
    if not sources:
        return ""

    lines = ["", "Sources:"]
    for idx, source in enumerate(sources, start=1):
        lines.append(f"[{idx}] {source.title} (/{source.slug})")

    return "\n".join(lines)
