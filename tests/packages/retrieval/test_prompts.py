"""Tests for chat prompt assembly."""

from packages.retrieval.context.prompts import build_chat_prompt, format_source_list


def test_prompt_layout_is_deterministic(post_factory) -> None:
    sources = [
        post_factory(slug="bread", title="Bread", content_markdown="Flour and water."),
        post_factory(slug="cheese", title="Cheese", content_markdown="Milk and time."),
    ]

    prompt = build_chat_prompt("How do I bake?", sources)

    assert prompt == (
        "Based on the following contexts:\n"
        "\n"
        "--- Context 1 (Title: Bread) ---\n"
        "Flour and water.\n"
        "\n"
        "--- Context 2 (Title: Cheese) ---\n"
        "Milk and time.\n"
        "\n"
        "--- Question ---\n"
        "How do I bake?\n"
        "\n"
        "--- Answer ---\n"
        "Please answer the question above based only on the provided contexts:"
    )
    assert build_chat_prompt("How do I bake?", sources) == prompt


def test_prompt_without_sources_still_asks_question() -> None:
    prompt = build_chat_prompt("Anything?", [])

    assert "--- Context" not in prompt
    assert "--- Question ---\nAnything?" in prompt


def test_format_source_list(post_factory) -> None:
    sources = [post_factory(slug="bread", title="Bread")]

    assert format_source_list(sources) == "\nSources:\n[1] Bread (/bread)"
    assert format_source_list([]) == ""
