"""Inline scanner: links, footnote refs, code spans and emphasis inside block text.

Every match is attempted at an explicit position (``pattern.match(text, pos)``),
so a scanner carries no matcher state between calls. The only mutable state is
the footnote numbering map, which belongs to one document.
"""

import logging
import re
import string
from bisect import bisect_left

from ..core.links import decode_href
from ..core.model import (
    Code,
    Details,
    FootnoteRef,
    InlineNode,
    LineBreak,
    Link,
    Styled,
    Text,
)

log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 6

ESCAPABLE = frozenset(string.punctuation)

BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
WRAPPER_RE = re.compile(r"<(u|b|strong|em|i)>(.*?)</\1>", re.IGNORECASE | re.DOTALL)
DETAILS_RE = re.compile(
    r"<details>\s*<summary>(.*?)</summary>(.*?)</details>", re.IGNORECASE | re.DOTALL
)
DIRECT_LINK_RE = re.compile(r'\[([^\]\n]+)\]\(\s*([^)\s]+)(?:\s+"([^"\n]*)")?\s*\)')
REFERENCE_LINK_RE = re.compile(r"\[([^\]\n^][^\]\n]*)\]\[([^\]\n]*)\]")
FOOTNOTE_REF_RE = re.compile(r"\[\^([^\]\s]+)\]")

WRAPPER_STYLES = {
    "u": "underline",
    "b": "bold",
    "strong": "bold",
    "em": "italic",
    "i": "italic",
}

# Longest markers first so "***" is not read as "**" + "*".
EMPHASIS_MARKERS = (
    ("***", "bold_italic"),
    ("___", "bold_italic"),
    ("**", "bold"),
    ("__", "bold"),
    ("~~", "strike"),
    ("==", "highlight"),
    ("*", "italic"),
    ("_", "italic"),
    ("^", "superscript"),
    ("~", "subscript"),
)


class InlineScanner:
    def __init__(
        self,
        reference_links: dict[str, str] | None = None,
        footnotes: dict[str, str] | None = None,
        footnote_numbers: dict[str, int] | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.reference_links = reference_links or {}
        self.footnotes = footnotes or {}
        self.footnote_numbers = dict(footnote_numbers or {})
        self.max_depth = max_depth

    def scan(self, text: str, depth: int = 0) -> list[InlineNode]:
        if not text:
            return []
        if depth > self.max_depth:
            log.debug("Inline nesting deeper than %d, emitting literal text", self.max_depth)
            return [Text(text)]

        nodes: list[InlineNode] = []
        buf: list[str] = []

        def flush() -> None:
            if buf:
                nodes.append(Text("".join(buf)))
                buf.clear()

        closers = _Closers(text)
        pos = 0
        while pos < len(text):
            ch = text[pos]

            if ch == "\\" and pos + 1 < len(text) and text[pos + 1] in ESCAPABLE:
                buf.append(text[pos + 1])
                pos += 2
                continue

            node, end, literal = self._match_at(text, pos, depth, closers)
            if literal is not None:
                buf.append(literal)
                pos = end
            elif node is not None:
                flush()
                nodes.append(node)
                pos = end
            else:
                buf.append(ch)
                pos += 1

        flush()
        return nodes

    def _match_at(
        self, text: str, pos: int, depth: int, closers: "_Closers"
    ) -> tuple[InlineNode | None, int, str | None]:
        """
        Try each construct at ``pos`` in priority order.

        Returns ``(node, end, literal)``. ``literal`` is set when a construct
        was recognised but must stay plain text (unresolved references,
        unmatched backtick runs).
        """
        ch = text[pos]

        if ch == "\n":
            return LineBreak(), pos + 1, None

        if ch == "<":
            m = BR_RE.match(text, pos)
            if m:
                return LineBreak(), m.end(), None
            m = DETAILS_RE.match(text, pos)
            if m:
                summary = tuple(self.scan(m.group(1), depth + 1))
                body = tuple(self.scan(m.group(2).strip("\n"), depth + 1))
                return Details(summary=summary, body=body), m.end(), None
            m = WRAPPER_RE.match(text, pos)
            if m:
                style = WRAPPER_STYLES[m.group(1).lower()]
                children = tuple(self.scan(m.group(2), depth + 1))
                return Styled(style, children), m.end(), None

        if ch == "`":
            return self._code_span(text, pos)

        if ch == "[":
            return self._bracket(text, pos, depth)

        return self._emphasis(text, pos, depth, closers)

    def _code_span(self, text: str, pos: int) -> tuple[InlineNode | None, int, str | None]:
        run = 1
        while pos + run < len(text) and text[pos + run] == "`":
            run += 1
        fence = "`" * run
        search = pos + run
        while True:
            close = text.find(fence, search)
            if close == -1:
                return None, pos + run, fence
            if text[close + run : close + run + 1] == "`":
                # Longer run; not our closer.
                search = close + run
                while search < len(text) and text[search] == "`":
                    search += 1
                continue
            break
        code = text[pos + run : close]
        if len(code) >= 2 and code.startswith(" ") and code.endswith(" ") and code.strip():
            code = code[1:-1]
        return Code(code), close + run, None

    def _bracket(self, text: str, pos: int, depth: int) -> tuple[InlineNode | None, int, str | None]:
        m = DIRECT_LINK_RE.match(text, pos)
        if m:
            label, href, title = m.group(1), m.group(2), m.group(3)
            link = Link(
                label=label,
                children=tuple(self.scan(label, depth + 1)),
                href=href,
                target=decode_href(href),
                title=title,
            )
            return link, m.end(), None

        m = REFERENCE_LINK_RE.match(text, pos)
        if m:
            label = m.group(1)
            ref_id = (m.group(2).strip() or label).lower()
            href = self.reference_links.get(ref_id)
            if href is None:
                # Only the first bracket is literal; the second may be a footnote ref.
                literal_end = m.start(2) - 1
                return None, literal_end, text[pos:literal_end]
            link = Link(
                label=label,
                children=tuple(self.scan(label, depth + 1)),
                href=href,
                target=decode_href(href),
                reference=ref_id,
            )
            return link, m.end(), None

        m = FOOTNOTE_REF_RE.match(text, pos)
        if m:
            note_id = m.group(1)
            if note_id not in self.footnotes:
                return None, m.end(), m.group(0)
            number = self.footnote_numbers.get(note_id)
            if number is None:
                number = len(self.footnote_numbers) + 1
                self.footnote_numbers[note_id] = number
            return FootnoteRef(note_id, number), m.end(), None

        return None, pos, None

    def _emphasis(
        self, text: str, pos: int, depth: int, closers: "_Closers"
    ) -> tuple[InlineNode | None, int, str | None]:
        for marker, style in EMPHASIS_MARKERS:
            if not text.startswith(marker, pos):
                continue
            size = len(marker)
            if marker[0] == "_" and pos > 0 and text[pos - 1].isalnum():
                continue
            close = closers.find(marker, pos + size)
            if close == -1:
                continue
            inner = text[pos + size : close]
            if not inner.strip() or inner[0].isspace() or inner[-1].isspace():
                continue
            children = tuple(self.scan(inner, depth + 1))
            return Styled(style, children), close + size, None
        return None, pos, None


class _Closers:
    """Valid closing positions per marker for one text, indexed on first use."""

    def __init__(self, text: str):
        self.text = text
        self._positions: dict[str, list[int]] = {}

    def find(self, marker: str, start: int) -> int:
        positions = self._positions.get(marker)
        if positions is None:
            positions = self._positions[marker] = _closing_positions(self.text, marker)
        i = bisect_left(positions, start)
        return positions[i] if i < len(positions) else -1


def _closing_positions(text: str, marker: str) -> list[int]:
    size = len(marker)
    out = []
    idx = text.find(marker)
    while idx != -1:
        end = idx + size
        prev = text[idx - 1] if idx else ""
        ok = prev != "\\"
        if ok and size == 1:
            # A single marker must not be half of a doubled one ("*" inside "**").
            ok = prev != marker and text[end : end + 1] != marker
        if ok and marker[0] == "_":
            ok = end >= len(text) or not text[end].isalnum()
        if ok:
            out.append(idx)
        idx = text.find(marker, idx + 1)
    return out
