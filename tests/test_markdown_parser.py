"""Tests for block segmentation."""

from olio.adapters.markdown_parser import MarkdownParser, split_table_row
from olio.core.model import (
    Blockquote,
    CodeBlock,
    Definition,
    DefinitionList,
    Heading,
    HorizontalRule,
    OrderedList,
    Paragraph,
    QuoteLine,
    Table,
    TaskItem,
    TaskList,
    UnorderedList,
)


def parse(text):
    return MarkdownParser().parse(text)


def test_headings_and_paragraphs():
    """Test headings with unique anchors and soft-wrapped paragraphs."""
    doc = parse("# Title\n\nIntro text\nwrapped line.\n\n## Title\n")
    assert doc.blocks == [
        Heading(1, "Title", "title"),
        Paragraph(("Intro text", "wrapped line.")),
        Heading(2, "Title", "title-2"),
    ]


def test_heading_needs_space_after_hashes():
    """Test that #tag is paragraph text."""
    doc = parse("#tag line")
    assert doc.blocks == [Paragraph(("#tag line",))]


def test_lists():
    """Test unordered, ordered and task lists."""
    doc = parse("- one\n- two\n* three\n\n1. first\n2. second\n\n- [ ] todo\n- [x] done\n")
    assert doc.blocks == [
        UnorderedList(("one", "two", "three")),
        OrderedList(("first", "second")),
        TaskList((TaskItem(False, "todo"), TaskItem(True, "done"))),
    ]


def test_task_line_ends_unordered_run():
    """Test that a task item splits an unordered list."""
    doc = parse("- plain\n- [X] checked\n")
    assert doc.blocks == [
        UnorderedList(("plain",)),
        TaskList((TaskItem(True, "checked"),)),
    ]


def test_blockquote_levels():
    """Test nested quote depth."""
    doc = parse("> outer\n> > inner\n>> also inner\n")
    assert doc.blocks == [
        Blockquote(
            (
                QuoteLine(1, "outer"),
                QuoteLine(2, "inner"),
                QuoteLine(2, "also inner"),
            )
        )
    ]


def test_fenced_code():
    """Test fenced code keeps its content raw."""
    doc = parse("```python\n# comment\n- not a list\n```\n\nAfter\n")
    assert doc.blocks == [
        CodeBlock("# comment\n- not a list", "python", True),
        Paragraph(("After",)),
    ]


def test_unclosed_fence_runs_to_end():
    """Test an unclosed fence swallows the rest of the document."""
    doc = parse("```\ncode\n\n# still code\n")
    assert doc.blocks == [CodeBlock("code\n\n# still code\n", None, True)]


def test_indented_code():
    """Test indented code blocks."""
    doc = parse("Para\n\n    line one\n    line two\n\nAfter\n")
    assert doc.blocks == [
        Paragraph(("Para",)),
        CodeBlock("line one\nline two", None, False),
        Paragraph(("After",)),
    ]


def test_indented_line_continues_paragraph():
    """Test that indentation does not interrupt a paragraph."""
    doc = parse("Para\n    continued\n")
    assert doc.blocks == [Paragraph(("Para", "    continued"))]


def test_horizontal_rule():
    """Test thematic breaks."""
    doc = parse("Above\n---\n***\nBelow\n")
    assert doc.blocks == [
        Paragraph(("Above",)),
        HorizontalRule(),
        HorizontalRule(),
        Paragraph(("Below",)),
    ]


def test_table_alignment_and_rectangular_rows():
    """Test tables are rectangular with per-column alignment."""
    doc = parse("| A | B | C |\n|:--|:-:|--:|\n| 1 | 2 |\n| 3 | 4 | 5 | 6 |\n")
    assert doc.blocks == [
        Table(
            header=("A", "B", "C"),
            alignments=("left", "center", "right"),
            rows=(("1", "2", ""), ("3", "4", "5")),
        )
    ]
    table = doc.blocks[0]
    assert all(len(row) == len(table.header) for row in table.rows)


def test_table_without_alignment_row_is_paragraph():
    """Test that a lone pipe line is not a table."""
    doc = parse("a | b\nc | d\n")
    assert doc.blocks == [Paragraph(("a | b", "c | d"))]


def test_split_table_row_escaped_pipe():
    """Test escaped pipes stay in the cell."""
    assert split_table_row(r"| a \| b | c |") == [r"a \| b", "c"]


def test_definition_list():
    """Test term/description groups."""
    doc = parse("Term\n: first\n: second\nOther\n: only\n")
    assert doc.blocks == [
        DefinitionList(
            (
                Definition("Term", ("first", "second")),
                Definition("Other", ("only",)),
            )
        )
    ]


def test_html_comments_are_stripped():
    """Test that comments vanish before segmentation."""
    doc = parse("Hello <!-- hidden --> world\n\n<!--\n# Hidden\n-->\n# Shown\n")
    assert doc.blocks == [
        Paragraph(("Hello  world",)),
        Heading(1, "Shown", "shown"),
    ]


def test_crlf_is_normalized():
    """Test Windows newlines."""
    doc = parse("# A\r\n\r\nText\r\n")
    assert doc.blocks == [Heading(1, "A", "a"), Paragraph(("Text",))]


def test_definitions_extracted():
    """Test reference and footnote definitions leave the block stream."""
    text = (
        "See [docs][d] and a note[^n].\n"
        "\n"
        "[d]: https://example.com/docs\n"
        "[D]: https://example.com/other\n"
        "[^n]: The note.\n"
    )
    doc = parse(text)
    assert doc.blocks == [Paragraph(("See [docs][d] and a note[^n].",))]
    assert doc.reference_links == {"d": "https://example.com/docs"}
    assert doc.footnotes == {"n": "The note."}
    assert doc.footnote_numbers == {"n": 1}


def test_definitions_inside_code_are_kept():
    """Test that definition-shaped lines in a fence stay code."""
    doc = parse("```\n[x]: https://example.com\n```\n")
    assert doc.reference_links == {}
    assert doc.blocks == [CodeBlock("[x]: https://example.com", None, True)]


def test_footnotes_numbered_by_first_reference():
    """Test numbering follows body order, not definition order."""
    text = "B first[^b], then A[^a], B again[^b].\n\n[^a]: Note A\n[^b]: Note B\n"
    doc = parse(text)
    assert doc.footnote_numbers == {"b": 1, "a": 2}


def test_empty_document():
    """Test empty and blank input."""
    assert parse("").blocks == []
    assert parse("\n\n   \n").blocks == []


def test_table_lookahead():
    """Test a pipe line becomes a table only with an alignment row after it."""
    doc = parse("A | B\n--- | ---\n")
    assert doc.blocks == [Table(header=("A", "B"), alignments=(None, None), rows=())]
    assert parse("A | B\n").blocks == [Paragraph(("A | B",))]


def test_adjacent_footnotes_numbered():
    """Test footnote refs written back to back are both numbered."""
    doc = parse("Claim[^b][^a].\n\n[^a]: A\n[^b]: B\n")
    assert doc.footnote_numbers == {"b": 1, "a": 2}
