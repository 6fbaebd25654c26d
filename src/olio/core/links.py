"""Link target codec: typed targets <-> href strings.

Internal targets use the ``olio://`` scheme, which is persisted inside
document content and therefore a durable format:

- ``olio://help/{articleId}``
- ``olio://help-anchor/{anchorId}``
- ``olio://project/{projectId}/{file|resource|planner|board}/{targetId}``

Anything else with a URI scheme is an external link. Hrefs that are neither
decode to ``None`` so that malformed links stay visible but inert.
"""

import re

from .model import (
    ExternalTarget,
    HelpAnchorTarget,
    HelpTarget,
    InternalKind,
    InternalTarget,
    LinkTarget,
    SCHEME,
    has_scheme,
    normalize_external_url,
)

KIND_SEGMENTS: dict[InternalKind, str] = {
    InternalKind.FILE: "file",
    InternalKind.RESOURCE: "resource",
    InternalKind.PLANNER_ITEM: "planner",
    InternalKind.BOARD_CARD: "board",
}
SEGMENT_KINDS = {segment: kind for kind, segment in KIND_SEGMENTS.items()}

_OLIO_PREFIX_RE = re.compile(rf"^{SCHEME}://", re.IGNORECASE)
_HELP_RE = re.compile(rf"^{SCHEME}://help/([^/?#\s]+)$", re.IGNORECASE)
_HELP_ANCHOR_RE = re.compile(rf"^{SCHEME}://help-anchor/([^/?#\s]+)$", re.IGNORECASE)
_PROJECT_RE = re.compile(
    rf"^{SCHEME}://project/([^/?#\s]+)/([^/?#\s]+)/([^/?#\s]+)$", re.IGNORECASE
)

__all__ = [
    "SCHEME",
    "create_markdown_link",
    "decode_href",
    "encode_target",
    "normalize_external_url",
    "target_from_input",
]


def encode_target(target: LinkTarget) -> str:
    """Build the href stored in document content for ``target``."""
    if isinstance(target, ExternalTarget):
        return normalize_external_url(target.url)
    if isinstance(target, HelpTarget):
        return f"{SCHEME}://help/{target.article_id}"
    if isinstance(target, HelpAnchorTarget):
        return f"{SCHEME}://help-anchor/{target.anchor_id}"
    segment = KIND_SEGMENTS[target.kind]
    return f"{SCHEME}://project/{target.project_id}/{segment}/{target.target_id}"


def _decode_olio(href: str) -> LinkTarget | None:
    m = _HELP_RE.match(href)
    if m:
        return HelpTarget(m.group(1))

    m = _HELP_ANCHOR_RE.match(href)
    if m:
        return HelpAnchorTarget(m.group(1))

    m = _PROJECT_RE.match(href)
    if not m:
        return None
    project_id, segment, target_id = m.groups()
    kind = SEGMENT_KINDS.get(segment.lower())
    if kind is None:
        return None
    return InternalTarget(kind, project_id, target_id)


def decode_href(href: str) -> LinkTarget | None:
    """Classify an href. Never raises; unknown shapes give ``None``."""
    if _OLIO_PREFIX_RE.match(href):
        return _decode_olio(href)
    if has_scheme(href) and not any(c.isspace() for c in href):
        return ExternalTarget(href)
    return None


def create_markdown_link(label: str, target: LinkTarget) -> str:
    return f"[{label.strip()}]({encode_target(target)})"


def target_from_input(raw: str) -> LinkTarget:
    """
    Turn link-picker input into a target.

    Hrefs with a scheme are decoded as stored content would be; anything else
    is treated as an external address typed without its scheme.

    Raises ValueError when the input is empty or names an unknown olio:// path.
    """
    value = raw.strip()
    if has_scheme(value):
        target = decode_href(value)
        if target is None:
            raise ValueError(f"Unrecognized link target: {raw}")
        return target
    return ExternalTarget(value)
