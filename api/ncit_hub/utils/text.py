"""Plain-text helpers for blog excerpts and event slugs."""

from __future__ import annotations

import re

# Applied in order; later patterns assume earlier ones already ran.
_MARKDOWN_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"<[^>]*>"), ""),  # HTML tags
    (re.compile(r"```.*?```", re.DOTALL), " "),  # fenced code blocks
    (re.compile(r"`([^`]*)`"), r"\1"),  # inline code
    (re.compile(r"!\[[^\]]*\]\([^)]*\)"), ""),  # images
    (re.compile(r"\[([^\]]*)\]\([^)]*\)"), r"\1"),  # links keep their label
    (re.compile(r"^[ \t]{0,3}#{1,6}[ \t]*", re.MULTILINE), ""),  # headings
    (re.compile(r"^[ \t]{0,3}>\s?", re.MULTILINE), ""),  # blockquotes
    (re.compile(r"^[ \t]*(?:[-*_][ \t]*){3,}$", re.MULTILINE), ""),  # horizontal rules
    (re.compile(r"^[ \t]*(?:[-*+]|\d+\.)\s+", re.MULTILINE), ""),  # list bullets
    (re.compile(r"(\*\*|__)(?!\s)(.+?)(?<!\s)\1"), r"\2"),  # bold
    (re.compile(r"(?<!\w)([*_])(?!\s)(.+?)(?<!\s)\1(?!\w)"), r"\2"),  # italic
    (re.compile(r"~~(.*?)~~"), r"\1"),  # strikethrough
    (re.compile(r"\s+"), " "),
]

_SLUG_MAX_LENGTH = 100


def strip_markdown(text: str) -> str:
    """Remove markdown and HTML markup, collapsing whitespace."""
    for pattern, replacement in _MARKDOWN_PATTERNS:
        text = pattern.sub(replacement, text)
    return text.strip()


def generate_excerpt(content: str, max_length: int = 150) -> str:
    """
    Build a plain-text excerpt of at most max_length characters (plus "...").

    Text that already fits is returned without an ellipsis.
    """
    plain_text = strip_markdown(content)
    if len(plain_text) <= max_length:
        return plain_text
    return plain_text[:max_length].strip() + "..."


def generate_slug(title: str) -> str:
    """
    URL-friendly slug from a title.

    >>> generate_slug("Hack Night: 2025 Edition!")
    'hack-night-2025-edition'
    """
    slug = title.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug[:_SLUG_MAX_LENGTH]
