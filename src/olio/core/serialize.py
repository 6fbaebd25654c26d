"""Plain-dict views of model objects for JSON output."""

from dataclasses import asdict
from typing import Any

from .links import encode_target
from .model import (
    Block,
    InlineNode,
    InternalTarget,
    LinkSegment,
    LinkTarget,
    MarkdownLink,
    ParsedDocument,
    Segment,
)


def target_to_dict(target: LinkTarget | None) -> dict[str, Any] | None:
    if target is None:
        return None
    data: dict[str, Any] = {"type": target.type, **asdict(target), "href": encode_target(target)}
    if isinstance(target, InternalTarget):
        data["kind"] = target.kind.value
    return data


def link_to_dict(link: MarkdownLink) -> dict[str, Any]:
    return {
        "raw": link.raw_text,
        "label": link.label,
        "href": link.href,
        "start": link.start,
        "end": link.end,
        "target": target_to_dict(link.target),
    }


def segment_to_dict(segment: Segment) -> dict[str, Any]:
    if isinstance(segment, LinkSegment):
        return {"kind": "link", "link": link_to_dict(segment.link)}
    return {"kind": "text", "text": segment.text, "start": segment.start, "end": segment.end}


def block_to_dict(block: Block) -> dict[str, Any]:
    return {"kind": block.kind, **asdict(block)}


def inline_to_dict(node: InlineNode) -> dict[str, Any]:
    data: dict[str, Any] = {"kind": node.kind}
    for name, value in vars(node).items():
        if name == "target":
            data[name] = target_to_dict(value)
        elif isinstance(value, tuple):
            data[name] = [inline_to_dict(child) for child in value]
        else:
            data[name] = value
    return data


def document_to_dict(document: ParsedDocument) -> dict[str, Any]:
    return {
        "blocks": [block_to_dict(b) for b in document.blocks],
        "anchors": [asdict(a) for a in document.anchors],
        "reference_links": dict(document.reference_links),
        "footnotes": dict(document.footnotes),
        "footnote_numbers": dict(document.footnote_numbers),
    }
