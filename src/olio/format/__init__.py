"""Selection edit operations for link tokens in document text."""

from .links import (
    LinkInsertion,
    extract_links,
    find_link_at_position,
    parse_markdown_links,
    remove_markdown_link,
    replace_content_range,
    replace_selection_with_link,
    update_link_target,
)

__all__ = [
    "LinkInsertion",
    "extract_links",
    "find_link_at_position",
    "parse_markdown_links",
    "remove_markdown_link",
    "replace_content_range",
    "replace_selection_with_link",
    "update_link_target",
]
