from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

SCHEME = "olio"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z\d+\-.]*:")
_SEGMENT_RE = re.compile(r"^[^/?#\s]+$")


def normalize_external_url(raw: str) -> str:
    """Trim a user-entered URL and default it to ``https://`` when it has no scheme."""
    value = raw.strip()
    if not value:
        return value
    if _SCHEME_RE.match(value):
        return value
    return f"https://{value}"


def has_scheme(value: str) -> bool:
    return bool(_SCHEME_RE.match(value))


def _check_segment(name: str, value: str) -> None:
    if not isinstance(value, str) or not _SEGMENT_RE.match(value):
        raise ValueError(f"Invalid {name}: {value!r}")


class InternalKind(str, Enum):
    FILE = "file"
    RESOURCE = "resource"
    PLANNER_ITEM = "planner_item"
    BOARD_CARD = "board_card"


# Link targets. Frozen so a target's kind never changes once built.


@dataclass(frozen=True)
class ExternalTarget:
    url: str
    type: ClassVar[str] = "external"

    def __post_init__(self) -> None:
        url = normalize_external_url(self.url)
        if (
            not url
            or any(c.isspace() for c in url)
            or url.lower().startswith(f"{SCHEME}://")
        ):
            raise ValueError(f"Invalid external url: {self.url!r}")
        object.__setattr__(self, "url", url)


@dataclass(frozen=True)
class HelpTarget:
    article_id: str
    type: ClassVar[str] = "help"

    def __post_init__(self) -> None:
        _check_segment("article id", self.article_id)


@dataclass(frozen=True)
class HelpAnchorTarget:
    anchor_id: str
    type: ClassVar[str] = "help_anchor"

    def __post_init__(self) -> None:
        _check_segment("anchor id", self.anchor_id)


@dataclass(frozen=True)
class InternalTarget:
    kind: InternalKind
    project_id: str
    target_id: str
    type: ClassVar[str] = "internal"

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", InternalKind(self.kind))
        _check_segment("project id", self.project_id)
        _check_segment("target id", self.target_id)


LinkTarget = Union[ExternalTarget, HelpTarget, HelpAnchorTarget, InternalTarget]


@dataclass(frozen=True)
class MarkdownLink:
    raw_text: str
    label: str
    href: str
    start: int  # half-open character offsets into the source text
    end: int
    target: LinkTarget | None = None


@dataclass(frozen=True)
class TextSegment:
    text: str
    start: int
    end: int
    kind: ClassVar[str] = "text"


@dataclass(frozen=True)
class LinkSegment:
    link: MarkdownLink
    kind: ClassVar[str] = "link"


Segment = Union[TextSegment, LinkSegment]


@dataclass(frozen=True)
class LinkMeta:
    exists: bool
    title: str | None = None
    subtitle: str | None = None
    warning: str | None = None


# Blocks


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    anchor_id: str
    kind: ClassVar[str] = "heading"


@dataclass(frozen=True)
class UnorderedList:
    items: tuple[str, ...]
    kind: ClassVar[str] = "unordered_list"


@dataclass(frozen=True)
class OrderedList:
    items: tuple[str, ...]
    kind: ClassVar[str] = "ordered_list"


@dataclass(frozen=True)
class TaskItem:
    checked: bool
    text: str


@dataclass(frozen=True)
class TaskList:
    items: tuple[TaskItem, ...]
    kind: ClassVar[str] = "task_list"


@dataclass(frozen=True)
class QuoteLine:
    level: int
    text: str


@dataclass(frozen=True)
class Blockquote:
    lines: tuple[QuoteLine, ...]
    kind: ClassVar[str] = "blockquote"


@dataclass(frozen=True)
class CodeBlock:
    code: str
    language: str | None = None
    fenced: bool = True
    kind: ClassVar[str] = "code"


@dataclass(frozen=True)
class Table:
    header: tuple[str, ...]
    alignments: tuple[str | None, ...]  # "left" | "right" | "center" | None
    rows: tuple[tuple[str, ...], ...]
    kind: ClassVar[str] = "table"


@dataclass(frozen=True)
class Definition:
    term: str
    descriptions: tuple[str, ...]


@dataclass(frozen=True)
class DefinitionList:
    items: tuple[Definition, ...]
    kind: ClassVar[str] = "definition_list"


@dataclass(frozen=True)
class HorizontalRule:
    kind: ClassVar[str] = "horizontal_rule"


@dataclass(frozen=True)
class Paragraph:
    lines: tuple[str, ...]
    kind: ClassVar[str] = "paragraph"


Block = Union[
    Heading,
    UnorderedList,
    OrderedList,
    TaskList,
    Blockquote,
    CodeBlock,
    Table,
    DefinitionList,
    HorizontalRule,
    Paragraph,
]


@dataclass(frozen=True)
class Anchor:
    id: str
    title: str
    level: int


@dataclass
class ParsedDocument:
    blocks: list[Block] = field(default_factory=list)
    reference_links: dict[str, str] = field(default_factory=dict)
    footnotes: dict[str, str] = field(default_factory=dict)
    footnote_numbers: dict[str, int] = field(default_factory=dict)

    @property
    def anchors(self) -> list[Anchor]:
        return [
            Anchor(id=b.anchor_id, title=b.text, level=b.level)
            for b in self.blocks
            if isinstance(b, Heading)
        ]


# Inline nodes


@dataclass(frozen=True)
class Text:
    text: str
    kind: ClassVar[str] = "text"


@dataclass(frozen=True)
class LineBreak:
    kind: ClassVar[str] = "line_break"


@dataclass(frozen=True)
class Code:
    code: str
    kind: ClassVar[str] = "code"


@dataclass(frozen=True)
class Styled:
    style: str  # bold_italic | bold | italic | strike | highlight | superscript | subscript | underline
    children: tuple["InlineNode", ...]
    kind: ClassVar[str] = "styled"


@dataclass(frozen=True)
class Details:
    summary: tuple["InlineNode", ...]
    body: tuple["InlineNode", ...]
    kind: ClassVar[str] = "details"


@dataclass(frozen=True)
class Link:
    label: str
    children: tuple["InlineNode", ...]
    href: str
    target: LinkTarget | None = None
    title: str | None = None
    reference: str | None = None  # reference id for [label][ref] links
    kind: ClassVar[str] = "link"


@dataclass(frozen=True)
class FootnoteRef:
    id: str
    number: int
    kind: ClassVar[str] = "footnote_ref"


InlineNode = Union[Text, LineBreak, Code, Styled, Details, Link, FootnoteRef]


@dataclass
class HelpArticle:
    id: str
    title: str
    slug: str
    content: str
    summary: str = ""
    published: bool = True
    meta: dict = field(default_factory=dict)
