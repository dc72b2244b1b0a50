"""Tests for markdown stripping, excerpts and slugs."""

from __future__ import annotations

from ncit_hub.utils.text import generate_excerpt, generate_slug, strip_markdown


def test_strip_markdown_removes_markup():
    text = "# Hello\n\nThis is **bold** and [a link](http://x.com)."
    assert strip_markdown(text) == "Hello This is bold and a link."


def test_strip_markdown_code_images_and_lists():
    text = (
        "> quoted *words*\n"
        "- first\n"
        "1. second\n"
        "![diagram](img.png)\n"
        "Use `pip` here\n"
        "```\nprint('hidden')\n```\n"
        "---\n"
        "<b>done</b> ~~old~~"
    )
    assert strip_markdown(text) == "quoted words first second Use pip here done old"


def test_strip_markdown_keeps_snake_case():
    assert strip_markdown("call my_helper_function now") == "call my_helper_function now"


def test_excerpt_short_text_has_no_ellipsis():
    assert generate_excerpt("Short **post**") == "Short post"


def test_excerpt_truncates_and_appends_ellipsis():
    content = "word " * 50
    assert generate_excerpt(content, 150) == ("word " * 30).strip() + "..."


def test_excerpt_is_deterministic():
    content = "## Title\n\n" + "lorem ipsum " * 40
    assert generate_excerpt(content) == generate_excerpt(content)
    assert len(generate_excerpt(content)) <= 153


def test_slug():
    assert generate_slug("Hack Night: 2025 Edition!") == "hack-night-2025-edition"
    assert generate_slug("  Many   spaces -- here ") == "many-spaces-here"
    assert len(generate_slug("x" * 300)) == 100
