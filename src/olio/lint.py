import re
from dataclasses import dataclass
from typing import Protocol

from .adapters.markdown_parser import FENCE_CLOSE_RE, FENCE_OPEN_RE, MarkdownParser
from .core.model import HelpAnchorTarget, InternalTarget, ParsedDocument
from .core.ports import LinkResolver
from .core.utils import normalize_newlines, offset_to_line
from .format.links import extract_links

REFERENCE_USE_RE = re.compile(r"\[([^\]\n^][^\]\n]*)\]\[([^\]\n]*)\]")
FOOTNOTE_USE_RE = re.compile(r"\[\^([^\]\s]+)\](?!:)")


@dataclass
class Finding:
    severity: str  # "info" | "warn" | "error"
    message: str
    start: int
    end: int
    line: int = 0


class LintRule(Protocol):
    id: str

    def check(
        self, content: str, document: ParsedDocument, resolver: LinkResolver
    ) -> list[Finding]:
        pass


class MalformedLinksRule:
    id = "malformed-links"

    def check(
        self, content: str, document: ParsedDocument, resolver: LinkResolver
    ) -> list[Finding]:
        return [
            Finding("warn", f"Unrecognized link target {link.href}", link.start, link.end)
            for link in extract_links(content)
            if link.target is None
        ]


class DeadLinksRule:
    id = "dead-links"

    def check(
        self, content: str, document: ParsedDocument, resolver: LinkResolver
    ) -> list[Finding]:
        anchors = {a.id for a in document.anchors}
        out: list[Finding] = []
        for link in extract_links(content):
            if link.target is None:
                continue
            if isinstance(link.target, HelpAnchorTarget):
                if link.target.anchor_id not in anchors:
                    out.append(
                        Finding(
                            "warn",
                            f"{link.href}: no heading with anchor {link.target.anchor_id}",
                            link.start,
                            link.end,
                        )
                    )
                continue
            meta = resolver.resolve_meta(link.label, link.target)
            if meta.exists:
                continue
            # Project references cannot be checked outside their project.
            severity = "info" if isinstance(link.target, InternalTarget) else "error"
            detail = meta.warning or meta.subtitle or "target not found"
            out.append(Finding(severity, f"{link.href}: {detail}", link.start, link.end))
        return out


def _code_ranges(content: str) -> list[tuple[int, int]]:
    ranges = []
    offset = 0
    fence_start: int | None = None
    for line in content.split("\n"):
        if fence_start is None and FENCE_OPEN_RE.match(line):
            fence_start = offset
        elif fence_start is not None and FENCE_CLOSE_RE.match(line):
            ranges.append((fence_start, offset + len(line)))
            fence_start = None
        offset += len(line) + 1
    if fence_start is not None:
        ranges.append((fence_start, len(content)))
    return ranges


class UnresolvedReferencesRule:
    id = "unresolved-references"

    def check(
        self, content: str, document: ParsedDocument, resolver: LinkResolver
    ) -> list[Finding]:
        code = _code_ranges(content)

        def in_code(pos: int) -> bool:
            return any(start <= pos < end for start, end in code)

        out: list[Finding] = []
        for m in REFERENCE_USE_RE.finditer(content):
            ref_id = (m.group(2).strip() or m.group(1)).lower()
            if ref_id not in document.reference_links and not in_code(m.start()):
                out.append(
                    Finding("warn", f"Undefined link reference [{ref_id}]", m.start(), m.end())
                )
        for m in FOOTNOTE_USE_RE.finditer(content):
            if m.group(1) not in document.footnotes and not in_code(m.start()):
                out.append(
                    Finding("warn", f"Undefined footnote [^{m.group(1)}]", m.start(), m.end())
                )
        return out


DEFAULT_RULES: tuple[LintRule, ...] = (
    MalformedLinksRule(),
    DeadLinksRule(),
    UnresolvedReferencesRule(),
)


def lint_document(
    content: str,
    resolver: LinkResolver,
    rules: tuple[LintRule, ...] = DEFAULT_RULES,
    parser: MarkdownParser | None = None,
) -> list[Finding]:
    """Run ``rules`` over ``content`` and return findings ordered by position."""
    content = normalize_newlines(content)
    document = (parser or MarkdownParser()).parse(content)
    findings: list[Finding] = []
    for rule in rules:
        findings.extend(rule.check(content, document, resolver))
    for finding in findings:
        finding.line = offset_to_line(content, finding.start)
    findings.sort(key=lambda f: (f.start, f.end))
    return findings
