"""Text utilities shared by the parser, editor and lint passes."""

import re

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_NEWLINE_RE = re.compile(r"\r\n?")
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)

ARTICLE_SLUG_MAX = 80


def anchor_slug(text: str) -> str:
    """
    Convert heading text to an anchor slug.

    - Lowercase
    - Runs of anything outside ``[a-z0-9]`` become a single ``-``
    - Strip leading/trailing ``-``

    Examples:
        >>> anchor_slug("Getting Started")
        'getting-started'
        >>> anchor_slug("  What's new?  ")
        'what-s-new'
    """
    return _NON_ALNUM_RE.sub("-", text.lower().strip()).strip("-")


def article_slug(text: str) -> str:
    """Slug for a help article URL, capped at 80 characters."""
    return anchor_slug(text)[:ARTICLE_SLUG_MAX]


class AnchorRegistry:
    """Hands out unique anchor ids for one document: ``slug``, ``slug-2``, ``slug-3``..."""

    def __init__(self) -> None:
        self._seen: dict[str, int] = {}
        self._used: set[str] = set()

    def assign(self, heading_text: str) -> str:
        base = anchor_slug(heading_text) or "section"
        count = self._seen.get(base, 0)
        candidate = base if count == 0 else f"{base}-{count + 1}"
        # A literal "Intro 2" heading may already hold "intro-2".
        while candidate in self._used:
            count += 1
            candidate = f"{base}-{count + 1}"
        self._seen[base] = count + 1
        self._used.add(candidate)
        return candidate


def normalize_newlines(text: str) -> str:
    return _NEWLINE_RE.sub("\n", text or "")


def strip_html_comments(text: str) -> str:
    return _COMMENT_RE.sub("", text)


def replace_range(text: str, start: int, end: int, replacement: str) -> str:
    return f"{text[:start]}{replacement}{text[end:]}"


def offset_to_line(text: str, offset: int) -> int:
    """
    Convert character offset to line number (1-based).

    Args:
        text: The full text
        offset: Character offset (0-based)

    Returns:
        Line number (1-based)
    """
    return text.count("\n", 0, max(0, min(offset, len(text)))) + 1
