"""Link segmentation and selection edits over flat document text.

These work on the raw string, not on parsed blocks. Offsets are character
indices into the exact string passed in; after any edit, callers re-derive
links from the new content rather than reusing old offsets.
"""

import re
from dataclasses import dataclass

from ..core.links import create_markdown_link, decode_href
from ..core.model import LinkSegment, LinkTarget, MarkdownLink, Segment, TextSegment
from ..core.utils import replace_range

LINK_RE = re.compile(r"(?<!\\)\[([^\]\n]+)\]\(([^)\s]+)\)")
OPEN_BRACKET_RE = re.compile(r"(?<!\\)\[")


@dataclass(frozen=True)
class LinkInsertion:
    """Result of inserting a link token."""

    content: str
    cursor: int
    token: str


def replace_content_range(content: str, start: int, end: int, replacement: str) -> str:
    return replace_range(content, start, end, replacement)


def extract_links(content: str) -> list[MarkdownLink]:
    """All ``[label](href)`` tokens in ``content``, in order."""
    links = []
    for m in LINK_RE.finditer(content):
        links.append(
            MarkdownLink(
                raw_text=m.group(0),
                label=m.group(1),
                href=m.group(2),
                start=m.start(),
                end=m.end(),
                target=decode_href(m.group(2)),
            )
        )
    return links


def parse_markdown_links(content: str) -> list[Segment]:
    """
    Split ``content`` into alternating text and link segments.

    Concatenating the segments in order reproduces ``content`` exactly.
    An empty string yields a single empty text segment.
    """
    segments: list[Segment] = []
    cursor = 0

    for link in extract_links(content):
        if link.start > cursor:
            segments.append(TextSegment(content[cursor : link.start], cursor, link.start))
        segments.append(LinkSegment(link))
        cursor = link.end

    if cursor < len(content):
        segments.append(TextSegment(content[cursor:], cursor, len(content)))

    if not segments:
        segments.append(TextSegment(content, 0, len(content)))

    return segments


def find_link_at_position(content: str, offset: int) -> MarkdownLink | None:
    """Link whose range contains ``offset``; both ends count as inside."""
    for link in extract_links(content):
        if link.start <= offset <= link.end:
            return link
    return None


def replace_selection_with_link(
    content: str,
    selection_start: int,
    selection_end: int,
    fallback_label: str,
    target: LinkTarget,
) -> LinkInsertion:
    """
    Replace the selection with a link token.

    A non-empty selection supplies the label; otherwise (or if the selected
    text is blank) ``fallback_label`` does. The cursor lands just after the
    inserted token. Raises ``ValueError`` when both are blank, since an empty
    label would not read back as a link.
    """
    selected = content[selection_start:selection_end] if selection_start != selection_end else ""
    label = selected.strip() or fallback_label.strip()
    if not label:
        raise ValueError("Link label is empty")
    token = create_markdown_link(label, target)
    return LinkInsertion(
        content=replace_content_range(content, selection_start, selection_end, token),
        cursor=selection_start + len(token),
        token=token,
    )


def remove_markdown_link(content: str, link: MarkdownLink) -> str:
    """Degrade a link to its label text, leaving everything around it alone.

    Open brackets in the label are escaped so the remaining text cannot pair
    with what follows into a new link.
    """
    label = OPEN_BRACKET_RE.sub(r"\\[", link.label)
    return replace_content_range(content, link.start, link.end, label)


def update_link_target(
    content: str,
    link: MarkdownLink,
    target: LinkTarget,
    label: str | None = None,
) -> LinkInsertion:
    """Rewrite an existing link token in place with a new target (and optionally label)."""
    token = create_markdown_link((label or "").strip() or link.label, target)
    return LinkInsertion(
        content=replace_content_range(content, link.start, link.end, token),
        cursor=link.start + len(token),
        token=token,
    )
