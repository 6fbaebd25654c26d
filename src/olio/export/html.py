"""Render a parsed document to HTML.

Link existence and display titles come from a ``LinkResolver``; the renderer
itself never looks anything up.
"""

from html import escape

from ..adapters.markdown_parser import MarkdownParser
from ..core.model import (
    Block,
    Blockquote,
    Code,
    CodeBlock,
    DefinitionList,
    Details,
    ExternalTarget,
    FootnoteRef,
    Heading,
    HelpAnchorTarget,
    HelpTarget,
    HorizontalRule,
    InlineNode,
    LineBreak,
    Link,
    OrderedList,
    Paragraph,
    ParsedDocument,
    Styled,
    Table,
    TaskList,
    Text,
    UnorderedList,
)
from ..core.ports import LinkResolver, Renderer

STYLE_TAGS = {
    "bold_italic": ("<strong><em>", "</em></strong>"),
    "bold": ("<strong>", "</strong>"),
    "italic": ("<em>", "</em>"),
    "strike": ("<del>", "</del>"),
    "highlight": ("<mark>", "</mark>"),
    "superscript": ("<sup>", "</sup>"),
    "subscript": ("<sub>", "</sub>"),
    "underline": ("<u>", "</u>"),
}


def _attr(value: str) -> str:
    return escape(value, quote=True)


class HtmlRenderer(Renderer):
    def __init__(self, resolver: LinkResolver | None = None, parser: MarkdownParser | None = None):
        self.resolver = resolver
        self.parser = parser or MarkdownParser()

    def render(self, document: ParsedDocument) -> str:
        scanner = self.parser.scanner_for(document)

        def inline(text: str) -> str:
            return self._inline(scanner.scan(text))

        parts = [self._block(block, inline) for block in document.blocks]

        if document.footnote_numbers:
            items = []
            for note_id, _number in sorted(document.footnote_numbers.items(), key=lambda kv: kv[1]):
                items.append(
                    f'<li id="fn-{_attr(note_id)}">{inline(document.footnotes[note_id])}</li>'
                )
            parts.append(f'<section class="footnotes"><ol>{"".join(items)}</ol></section>')

        return "\n".join(parts)

    def _block(self, block: Block, inline) -> str:
        if isinstance(block, Heading):
            return f'<h{block.level} id="{_attr(block.anchor_id)}">{inline(block.text)}</h{block.level}>'
        if isinstance(block, HorizontalRule):
            return "<hr>"
        if isinstance(block, CodeBlock):
            cls = f' class="language-{_attr(block.language)}"' if block.language else ""
            return f"<pre><code{cls}>{escape(block.code)}</code></pre>"
        if isinstance(block, UnorderedList):
            return "<ul>" + "".join(f"<li>{inline(i)}</li>" for i in block.items) + "</ul>"
        if isinstance(block, OrderedList):
            return "<ol>" + "".join(f"<li>{inline(i)}</li>" for i in block.items) + "</ol>"
        if isinstance(block, TaskList):
            items = []
            for item in block.items:
                checked = " checked" if item.checked else ""
                items.append(
                    f'<li><input type="checkbox" disabled{checked}> {inline(item.text)}</li>'
                )
            return '<ul class="task-list">' + "".join(items) + "</ul>"
        if isinstance(block, Blockquote):
            lines = [
                f'<p class="quote-level-{line.level}">{inline(line.text)}</p>'
                for line in block.lines
            ]
            return "<blockquote>" + "".join(lines) + "</blockquote>"
        if isinstance(block, Table):
            return self._table(block, inline)
        if isinstance(block, DefinitionList):
            parts = []
            for item in block.items:
                parts.append(f"<dt>{inline(item.term)}</dt>")
                parts.extend(f"<dd>{inline(d)}</dd>" for d in item.descriptions)
            return "<dl>" + "".join(parts) + "</dl>"
        if isinstance(block, Paragraph):
            return "<p>" + inline("\n".join(block.lines)) + "</p>"
        return ""

    def _table(self, table: Table, inline) -> str:
        def cell(tag: str, text: str, align: str | None) -> str:
            style = f' style="text-align: {align}"' if align else ""
            return f"<{tag}{style}>{inline(text)}</{tag}>"

        head = "".join(cell("th", t, a) for t, a in zip(table.header, table.alignments))
        rows = "".join(
            "<tr>" + "".join(cell("td", t, a) for t, a in zip(row, table.alignments)) + "</tr>"
            for row in table.rows
        )
        return f"<table><thead><tr>{head}</tr></thead><tbody>{rows}</tbody></table>"

    def _inline(self, nodes: list[InlineNode] | tuple[InlineNode, ...]) -> str:
        out = []
        for node in nodes:
            if isinstance(node, Text):
                out.append(escape(node.text))
            elif isinstance(node, LineBreak):
                out.append("<br>")
            elif isinstance(node, Code):
                out.append(f"<code>{escape(node.code)}</code>")
            elif isinstance(node, Styled):
                open_tag, close_tag = STYLE_TAGS[node.style]
                out.append(f"{open_tag}{self._inline(node.children)}{close_tag}")
            elif isinstance(node, Details):
                out.append(
                    f"<details><summary>{self._inline(node.summary)}</summary>"
                    f"{self._inline(node.body)}</details>"
                )
            elif isinstance(node, FootnoteRef):
                out.append(
                    f'<sup class="footnote-ref"><a href="#fn-{_attr(node.id)}">{node.number}</a></sup>'
                )
            elif isinstance(node, Link):
                out.append(self._link(node))
        return "".join(out)

    def _link(self, link: Link) -> str:
        label = self._inline(link.children)
        target = link.target
        if target is None:
            # Malformed links stay visible but inert.
            return f'<span class="link-inert">{label}</span>'

        meta = self.resolver.resolve_meta(link.label, target) if self.resolver else None
        title = f' title="{_attr(meta.subtitle)}"' if meta and meta.subtitle else ""

        if isinstance(target, ExternalTarget):
            return (
                f'<a href="{_attr(target.url)}" target="_blank" '
                f'rel="noopener noreferrer"{title}>{label}</a>'
            )
        if isinstance(target, HelpTarget):
            href = (self.resolver.help_href(target.article_id) if self.resolver else None) or "/help"
            return f'<a href="{_attr(href)}"{title}>{label}</a>'
        if isinstance(target, HelpAnchorTarget):
            return f'<a href="#{_attr(target.anchor_id)}"{title}>{label}</a>'

        if meta is not None and not meta.exists:
            return f'<span class="olio-ref missing"{title}>Missing: {label}</span>'
        return (
            f'<span class="olio-ref" data-kind="{target.kind.value}" '
            f'data-project="{_attr(target.project_id)}" '
            f'data-target="{_attr(target.target_id)}"{title}>{label}</span>'
        )
