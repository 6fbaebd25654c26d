"""Tests for inline scanning: links, footnotes, code spans, emphasis."""

import time

from olio.adapters.inline_parser import InlineScanner
from olio.core.model import (
    Code,
    Details,
    ExternalTarget,
    FootnoteRef,
    HelpTarget,
    LineBreak,
    Link,
    Styled,
    Text,
)


def scan(text, **kwargs):
    return InlineScanner(**kwargs).scan(text)


def test_plain_text():
    """Test text without markup is one node."""
    assert scan("just words") == [Text("just words")]
    assert scan("") == []


def test_emphasis_family():
    """Test each emphasis marker."""
    assert scan("***x***") == [Styled("bold_italic", (Text("x"),))]
    assert scan("**x**") == [Styled("bold", (Text("x"),))]
    assert scan("__x__") == [Styled("bold", (Text("x"),))]
    assert scan("*x*") == [Styled("italic", (Text("x"),))]
    assert scan("_x_") == [Styled("italic", (Text("x"),))]
    assert scan("~~x~~") == [Styled("strike", (Text("x"),))]
    assert scan("==x==") == [Styled("highlight", (Text("x"),))]
    assert scan("x^2^") == [Text("x"), Styled("superscript", (Text("2"),))]
    assert scan("H~2~O") == [Text("H"), Styled("subscript", (Text("2"),)), Text("O")]


def test_nested_emphasis_inner_closed():
    """Test italic nested in bold with trailing text."""
    assert scan("**a *b* c**") == [
        Styled("bold", (Text("a "), Styled("italic", (Text("b"),)), Text(" c"))),
    ]


def test_unmatched_markers_are_literal():
    """Test that a marker without a closer stays text."""
    assert scan("2 * 3 = 6") == [Text("2 * 3 = 6")]
    assert scan("**open only") == [Text("**open only")]
    assert scan("** **") == [Text("** **")]


def test_underscore_inside_words():
    """Test snake_case is not emphasis."""
    assert scan("use snake_case_names here") == [Text("use snake_case_names here")]


def test_escapes():
    """Test backslash escapes produce literal characters."""
    assert scan(r"\*not italic\*") == [Text("*not italic*")]
    assert scan(r"\[not a link](x)") == [Text("[not a link](x)")]


def test_code_span():
    """Test code spans are opaque."""
    assert scan("run `**x**` now") == [Text("run "), Code("**x**"), Text(" now")]
    assert scan("`` a ` b ``") == [Code("a ` b")]
    assert scan("`unclosed") == [Text("`unclosed")]


def test_line_breaks():
    """Test newlines and <br> tags."""
    assert scan("a\nb") == [Text("a"), LineBreak(), Text("b")]
    assert scan("a<br/>b") == [Text("a"), LineBreak(), Text("b")]


def test_html_wrappers():
    """Test <u>, <b>, <em> and <details> wrappers are re-scanned."""
    assert scan("<u>under</u>") == [Styled("underline", (Text("under"),))]
    assert scan("<strong>*x*</strong>") == [
        Styled("bold", (Styled("italic", (Text("x"),)),)),
    ]
    assert scan("<details><summary>More</summary>Hidden **text**</details>") == [
        Details(
            summary=(Text("More"),),
            body=(Text("Hidden "), Styled("bold", (Text("text"),))),
        )
    ]


def test_direct_links():
    """Test [label](href "title") links decode their targets."""
    nodes = scan('See [Docs](https://example.com "Example") and [Help](olio://help/abc).')
    links = [n for n in nodes if isinstance(n, Link)]
    assert links[0].label == "Docs"
    assert links[0].title == "Example"
    assert links[0].target == ExternalTarget("https://example.com")
    assert links[1].target == HelpTarget("abc")
    assert links[1].children == (Text("Help"),)


def test_malformed_link_has_no_target():
    """Test that an unrecognized href still yields a link node, just inert."""
    [link] = scan("[Broken](docs/page.md)")
    assert isinstance(link, Link)
    assert link.target is None


def test_reference_links():
    """Test [label][ref] resolution against the reference table."""
    refs = {"guide": "https://example.com/guide"}
    [link] = scan("[The Guide][Guide]", reference_links=refs)
    assert link.href == "https://example.com/guide"
    assert link.reference == "guide"

    [collapsed] = scan("[guide][]", reference_links=refs)
    assert collapsed.href == "https://example.com/guide"


def test_unresolved_reference_is_literal():
    """Test that an unknown ref id is left as text."""
    assert scan("see [x][missing].") == [Text("see [x][missing].")]


def test_footnote_refs():
    """Test footnote numbering by first appearance and undefined ids."""
    scanner = InlineScanner(footnotes={"a": "A", "b": "B"})
    nodes = scanner.scan("x[^b] y[^a] z[^b] w[^nope]")
    refs = [n for n in nodes if isinstance(n, FootnoteRef)]
    assert refs == [FootnoteRef("b", 1), FootnoteRef("a", 2), FootnoteRef("b", 1)]
    assert nodes[-1] == Text(" w[^nope]")
    assert scanner.footnote_numbers == {"b": 1, "a": 2}


def test_depth_cap_emits_literal_text():
    """Test that nesting past the cap stays literal."""
    assert scan("**a *b* c**", max_depth=0) == [Styled("bold", (Text("a *b* c"),))]
    assert scan("**a *b* c**", max_depth=1) == [
        Styled("bold", (Text("a "), Styled("italic", (Text("b"),)), Text(" c"))),
    ]


def test_pathological_nesting_terminates():
    """Test deeply nested markers do not blow the stack."""
    text = "<u>" * 200 + "x" + "</u>" * 200
    nodes = scan(text)
    assert nodes


def test_adjacent_footnote_refs():
    """Test back-to-back footnote refs are not read as a reference link."""
    scanner = InlineScanner(footnotes={"a": "A", "b": "B"})
    nodes = scanner.scan("Claim[^b][^a].")
    assert nodes == [Text("Claim"), FootnoteRef("b", 1), FootnoteRef("a", 2), Text(".")]


def test_unresolved_reference_rescans_second_bracket():
    """Test an unknown ref id leaves the second bracket free to be a footnote."""
    scanner = InlineScanner(footnotes={"n": "Note"})
    nodes = scanner.scan("see [x][^n]")
    assert nodes == [Text("see [x]"), FootnoteRef("n", 1)]


def test_long_marker_run_scans_quickly():
    """Test a long run of unmatched markers is scanned in linear time."""
    text = "*" * 20000 + "a"
    started = time.perf_counter()
    nodes = scan(text)
    assert time.perf_counter() - started < 5
    assert "".join(n.text for n in nodes if isinstance(n, Text)).endswith("a")
