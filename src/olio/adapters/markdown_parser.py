import re

from ..core.model import (
    Anchor,
    Block,
    Blockquote,
    CodeBlock,
    Definition,
    DefinitionList,
    Heading,
    HorizontalRule,
    OrderedList,
    Paragraph,
    ParsedDocument,
    QuoteLine,
    Table,
    TaskItem,
    TaskList,
    UnorderedList,
)
from ..core.ports import ParserStrategy
from ..core.utils import AnchorRegistry, normalize_newlines, strip_html_comments
from .inline_parser import DEFAULT_MAX_DEPTH, InlineScanner

HEADING_RE = re.compile(r"^\s{0,3}(#{1,6})\s+(.+?)\s*$")
HEADING_CLOSE_RE = re.compile(r"(?:^|\s+)#+\s*$")
HR_RE = re.compile(r"^\s{0,3}(?:-{3,}|_{3,}|\*{3,})\s*$")
FENCE_OPEN_RE = re.compile(r"^\s{0,3}```\s*([^`\s]*)")
FENCE_CLOSE_RE = re.compile(r"^\s{0,3}```\s*$")
INDENT_RE = re.compile(r"^(?:\t| {4})")
QUOTE_RE = re.compile(r"^\s{0,3}((?:>\s?)+)(.*)$")
TASK_RE = re.compile(r"^\s{0,3}[-*+]\s+\[([ xX])\]\s+(.*?)\s*$")
UNORDERED_RE = re.compile(r"^\s{0,3}(?:[-*+]\s+|•\s*)(.*?)\s*$")
ORDERED_RE = re.compile(r"^\s{0,3}\d+\.\s+(.*?)\s*$")
ALIGN_CELL_RE = re.compile(r"^:?-+:?$")
DEFINITION_RE = re.compile(r"^:\s+(.*?)\s*$")
FOOTNOTE_DEF_RE = re.compile(r"^\s{0,3}\[\^([^\]\s]+)\]:\s*(.*?)\s*$")
REFERENCE_DEF_RE = re.compile(r'^\s{0,3}\[([^\]^][^\]]*)\]:\s*<?([^\s>]+)>?(?:\s+"[^"]*")?\s*$')
PIPE_SPLIT_RE = re.compile(r"(?<!\\)\|")


def split_table_row(line: str) -> list[str]:
    """Split a ``|``-delimited row into stripped cells (escaped pipes stay in the cell)."""
    row = line.strip()
    if "|" not in row:
        return [row]
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [cell.strip() for cell in PIPE_SPLIT_RE.split(row)]


def _alignment(cell: str) -> str | None:
    left = cell.startswith(":")
    right = cell.endswith(":")
    if left and right:
        return "center"
    if right:
        return "right"
    if left:
        return "left"
    return None


def _alignment_row(line: str) -> list[str] | None:
    if "-" not in line:
        return None
    cells = split_table_row(line)
    if len(cells) < 2 or not all(ALIGN_CELL_RE.match(c) for c in cells):
        return None
    return cells


def _parse_heading(line: str) -> tuple[int, str] | None:
    m = HEADING_RE.match(line)
    if not m:
        return None
    text = HEADING_CLOSE_RE.sub("", m.group(2)).strip()
    if not text:
        return None
    return len(m.group(1)), text


def _is_table_start(lines: list[str], i: int) -> bool:
    if i + 1 >= len(lines) or "|" not in lines[i]:
        return False
    if len(split_table_row(lines[i])) < 2:
        return False
    return _alignment_row(lines[i + 1]) is not None


def _is_definition_start(lines: list[str], i: int) -> bool:
    return (
        i + 1 < len(lines)
        and bool(lines[i].strip())
        and not DEFINITION_RE.match(lines[i])
        and bool(DEFINITION_RE.match(lines[i + 1]))
    )


def _starts_block(lines: list[str], i: int) -> bool:
    """True when line ``i`` opens a block that interrupts a paragraph."""
    line = lines[i]
    return bool(
        not line.strip()
        or FENCE_OPEN_RE.match(line)
        or HR_RE.match(line)
        or _parse_heading(line)
        or QUOTE_RE.match(line)
        or UNORDERED_RE.match(line)
        or ORDERED_RE.match(line)
        or _is_table_start(lines, i)
        or _is_definition_start(lines, i)
    )


def extract_definitions(lines: list[str]) -> tuple[list[str], dict[str, str], dict[str, str]]:
    """
    Pull footnote and reference-link definitions out of the line stream.

    Fenced code is left untouched. Returns ``(remaining_lines, references, footnotes)``;
    reference ids are lowercased and the first definition of an id wins.
    """
    remaining: list[str] = []
    references: dict[str, str] = {}
    footnotes: dict[str, str] = {}
    in_fence = False

    for line in lines:
        if in_fence:
            if FENCE_CLOSE_RE.match(line):
                in_fence = False
            remaining.append(line)
            continue
        if FENCE_OPEN_RE.match(line):
            in_fence = True
            remaining.append(line)
            continue

        m = FOOTNOTE_DEF_RE.match(line)
        if m:
            footnotes.setdefault(m.group(1), m.group(2))
            continue
        m = REFERENCE_DEF_RE.match(line)
        if m:
            references.setdefault(m.group(1).strip().lower(), m.group(2))
            continue
        remaining.append(line)

    return remaining, references, footnotes


class MarkdownParser(ParserStrategy):
    def __init__(self, max_inline_depth: int = DEFAULT_MAX_DEPTH):
        self.max_inline_depth = max_inline_depth

    def parse(self, text: str) -> ParsedDocument:
        content = strip_html_comments(normalize_newlines(text))
        lines, references, footnotes = extract_definitions(content.split("\n"))

        blocks = _BlockScanner(lines).scan()

        scanner = InlineScanner(references, footnotes, max_depth=self.max_inline_depth)
        for block in blocks:
            for chunk in inline_texts(block):
                scanner.scan(chunk)

        return ParsedDocument(
            blocks=blocks,
            reference_links=references,
            footnotes=footnotes,
            footnote_numbers=scanner.footnote_numbers,
        )

    def scanner_for(self, document: ParsedDocument) -> InlineScanner:
        """Inline scanner that reuses the document's tables and footnote numbering."""
        return InlineScanner(
            document.reference_links,
            document.footnotes,
            document.footnote_numbers,
            max_depth=self.max_inline_depth,
        )


def extract_anchors(text: str) -> list[Anchor]:
    """Heading anchors of a document in order, for tables of contents."""
    return MarkdownParser().parse(text).anchors


def inline_texts(block: Block) -> list[str]:
    """Text chunks of a block that carry inline markup, in reading order."""
    if isinstance(block, Heading):
        return [block.text]
    if isinstance(block, (UnorderedList, OrderedList)):
        return list(block.items)
    if isinstance(block, TaskList):
        return [item.text for item in block.items]
    if isinstance(block, Blockquote):
        return [line.text for line in block.lines]
    if isinstance(block, Table):
        return [*block.header, *(cell for row in block.rows for cell in row)]
    if isinstance(block, DefinitionList):
        out: list[str] = []
        for item in block.items:
            out.append(item.term)
            out.extend(item.descriptions)
        return out
    if isinstance(block, Paragraph):
        return ["\n".join(block.lines)]
    return []


class _BlockScanner:
    """One forward pass over definition-free lines, one block per step."""

    def __init__(self, lines: list[str]):
        self.lines = lines
        self.i = 0
        self.anchors = AnchorRegistry()

    def scan(self) -> list[Block]:
        blocks: list[Block] = []
        while self.i < len(self.lines):
            if not self.lines[self.i].strip():
                self.i += 1
                continue
            blocks.append(self._next_block())
        return blocks

    def _next_block(self) -> Block:
        lines, i = self.lines, self.i
        line = lines[i]

        m = FENCE_OPEN_RE.match(line)
        if m:
            return self._fenced_code(m.group(1) or None)

        if INDENT_RE.match(line):
            return self._indented_code()

        if HR_RE.match(line):
            self.i += 1
            return HorizontalRule()

        heading = _parse_heading(line)
        if heading:
            level, text = heading
            self.i += 1
            return Heading(level=level, text=text, anchor_id=self.anchors.assign(text))

        if QUOTE_RE.match(line):
            return self._blockquote()

        if TASK_RE.match(line):
            return TaskList(tuple(self._run(TASK_RE, lambda m: TaskItem(m.group(1) != " ", m.group(2)))))

        if UNORDERED_RE.match(line):
            return UnorderedList(tuple(self._run(UNORDERED_RE, lambda m: m.group(1), skip=TASK_RE)))

        if ORDERED_RE.match(line):
            return OrderedList(tuple(self._run(ORDERED_RE, lambda m: m.group(1))))

        if _is_table_start(lines, i):
            return self._table()

        if _is_definition_start(lines, i):
            return self._definition_list()

        return self._paragraph()

    def _run(self, pattern: re.Pattern[str], build, skip: re.Pattern[str] | None = None) -> list:
        items = []
        while self.i < len(self.lines):
            line = self.lines[self.i]
            if skip is not None and skip.match(line):
                break
            m = pattern.match(line)
            if not m:
                break
            items.append(build(m))
            self.i += 1
        return items

    def _fenced_code(self, language: str | None) -> CodeBlock:
        self.i += 1
        code: list[str] = []
        while self.i < len(self.lines):
            line = self.lines[self.i]
            self.i += 1
            if FENCE_CLOSE_RE.match(line):
                break
            code.append(line)
        return CodeBlock(code="\n".join(code), language=language, fenced=True)

    def _indented_code(self) -> CodeBlock:
        code: list[str] = []
        while self.i < len(self.lines):
            line = self.lines[self.i]
            if line.strip() and not INDENT_RE.match(line):
                break
            code.append(INDENT_RE.sub("", line, count=1) if line.strip() else "")
            self.i += 1
        while code and not code[-1]:
            code.pop()
        return CodeBlock(code="\n".join(code), language=None, fenced=False)

    def _blockquote(self) -> Blockquote:
        quote: list[QuoteLine] = []
        while self.i < len(self.lines):
            m = QUOTE_RE.match(self.lines[self.i])
            if not m:
                break
            quote.append(QuoteLine(level=m.group(1).count(">"), text=m.group(2).rstrip()))
            self.i += 1
        return Blockquote(tuple(quote))

    def _table(self) -> Table:
        header = split_table_row(self.lines[self.i])
        width = len(header)
        align_cells = _alignment_row(self.lines[self.i + 1]) or []
        alignments = [_alignment(c) for c in align_cells[:width]]
        alignments += [None] * (width - len(alignments))
        self.i += 2

        rows: list[tuple[str, ...]] = []
        while self.i < len(self.lines):
            line = self.lines[self.i]
            if "|" not in line:
                break
            cells = split_table_row(line)
            if len(cells) < 2:
                break
            cells = cells[:width] + [""] * (width - len(cells))
            rows.append(tuple(cells))
            self.i += 1

        return Table(header=tuple(header), alignments=tuple(alignments), rows=tuple(rows))

    def _definition_list(self) -> DefinitionList:
        items: list[Definition] = []
        while _is_definition_start(self.lines, self.i):
            term = self.lines[self.i].strip()
            self.i += 1
            descriptions = self._run(DEFINITION_RE, lambda m: m.group(1))
            items.append(Definition(term=term, descriptions=tuple(descriptions)))
        return DefinitionList(tuple(items))

    def _paragraph(self) -> Paragraph:
        para = [self.lines[self.i].rstrip()]
        self.i += 1
        while self.i < len(self.lines) and not _starts_block(self.lines, self.i):
            para.append(self.lines[self.i].rstrip())
            self.i += 1
        return Paragraph(tuple(para))
