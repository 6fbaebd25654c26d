"""CLI for olio - parse, lint and edit help article documents."""

import argparse
import json
import logging
import platform
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from . import __version__
from ._logging import configure_logging
from .core.links import target_from_input
from .core.serialize import document_to_dict, link_to_dict, segment_to_dict
from .format.links import (
    find_link_at_position,
    parse_markdown_links,
    remove_markdown_link,
    replace_selection_with_link,
    update_link_target,
)
from .lint import lint_document
from .runtime import build_runtime

log = logging.getLogger(__name__)


class Document:
    """A document loaded from a file path or a library article id."""

    def __init__(self, path: Path, prefix: str, body: str):
        self.path = path
        self.prefix = prefix  # raw frontmatter block, written back untouched
        self.body = body

    def save(self, body: str) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(self.prefix + body, encoding="utf-8")
            tmp_path.replace(self.path)
        except Exception:
            if tmp_path.exists():
                tmp_path.unlink()
            raise


def load_document(ref: str, rt: Any) -> Document:
    path = Path(ref)
    if not path.exists():
        path = rt.library.storage._path(ref)
    if not path.exists():
        raise FileNotFoundError(f"Document {ref} not found")
    prefix, body = rt.frontmatter.split(path.read_text(encoding="utf-8"))
    return Document(path, prefix, body)


def _emit_content(args: argparse.Namespace, doc: Document, content: str, extra: dict[str, Any]) -> None:
    if args.write:
        doc.save(content)
        if not args.quiet:
            print(json.dumps(extra, indent=2))
    else:
        print(content, end="")


def cmd_ls(args: argparse.Namespace, rt: Any) -> int:
    """List help articles."""
    articles = rt.library.articles(published_only=args.published)
    if args.format == "json":
        rows = [
            {"id": a.id, "slug": a.slug, "title": a.title, "published": a.published}
            for a in articles
        ]
        print(json.dumps(rows, indent=2))
    else:
        for a in articles:
            print(f"{a.id}\t{a.slug}\t{a.title}")
    return 0


def cmd_parse(args: argparse.Namespace, rt: Any) -> int:
    """Print the block tree and definition tables as JSON."""
    doc = load_document(args.doc, rt)
    print(json.dumps(document_to_dict(rt.parser.parse(doc.body)), indent=2))
    return 0


def cmd_anchors(args: argparse.Namespace, rt: Any) -> int:
    """Print heading anchors (table of contents)."""
    doc = load_document(args.doc, rt)
    anchors = rt.parser.parse(doc.body).anchors
    if args.format == "json":
        print(json.dumps([asdict(a) for a in anchors], indent=2))
    else:
        for a in anchors:
            print(f"{a.id}\t{a.level}\t{a.title}")
    return 0


def cmd_links(args: argparse.Namespace, rt: Any) -> int:
    """Print link segments with offsets and decoded targets."""
    doc = load_document(args.doc, rt)
    segments = parse_markdown_links(doc.body)
    if args.format == "json":
        print(json.dumps([segment_to_dict(s) for s in segments], indent=2))
    else:
        for s in segments:
            if s.kind != "link":
                continue
            link = s.link
            kind = link.target.type if link.target else "invalid"
            print(f"{link.start}\t{link.end}\t{kind}\t{link.href}\t{link.label}")
    return 0


def cmd_lint(args: argparse.Namespace, rt: Any) -> int:
    """Check links, anchors and references."""
    refs = args.docs or list(rt.library.list_ids())
    errors = 0
    output = []
    for ref in refs:
        doc = load_document(ref, rt)
        for f in lint_document(doc.body, rt.resolver, parser=rt.parser):
            if f.severity == "error":
                errors += 1
            if args.format == "json":
                output.append({"doc": ref, **asdict(f)})
            else:
                print(f"{ref}:{f.line}: {f.severity}: {f.message}")
    if args.format == "json":
        print(json.dumps(output, indent=2))
    return 1 if errors else 0


def cmd_render(args: argparse.Namespace, rt: Any) -> int:
    """Render a document to HTML."""
    doc = load_document(args.doc, rt)
    document = rt.parser.parse(doc.body)
    html = rt.renderer_for([a.id for a in document.anchors]).render(document)
    if args.out:
        Path(args.out).write_text(html + "\n", encoding="utf-8")
    else:
        print(html)
    return 0


def cmd_link_insert(args: argparse.Namespace, rt: Any) -> int:
    """Insert a link token over a selection."""
    doc = load_document(args.doc, rt)
    end = args.end if args.end is not None else args.start
    if not 0 <= args.start <= end <= len(doc.body):
        raise ValueError(f"Selection {args.start}..{end} outside document (length {len(doc.body)})")
    result = replace_selection_with_link(
        doc.body, args.start, end, args.label, target_from_input(args.target)
    )
    _emit_content(args, doc, result.content, {"token": result.token, "cursor": result.cursor})
    return 0


def cmd_link_at(args: argparse.Namespace, rt: Any) -> int:
    """Show the link under an offset."""
    doc = load_document(args.doc, rt)
    link = find_link_at_position(doc.body, args.offset)
    if link is None:
        print(f"No link at offset {args.offset}", file=sys.stderr)
        return 1
    print(json.dumps(link_to_dict(link), indent=2))
    return 0


def cmd_link_remove(args: argparse.Namespace, rt: Any) -> int:
    """Replace the link under an offset with its label."""
    doc = load_document(args.doc, rt)
    link = find_link_at_position(doc.body, args.offset)
    if link is None:
        print(f"No link at offset {args.offset}", file=sys.stderr)
        return 1
    content = remove_markdown_link(doc.body, link)
    _emit_content(args, doc, content, {"removed": link.raw_text, "label": link.label})
    return 0


def cmd_link_edit(args: argparse.Namespace, rt: Any) -> int:
    """Point the link under an offset at a new target."""
    doc = load_document(args.doc, rt)
    link = find_link_at_position(doc.body, args.offset)
    if link is None:
        print(f"No link at offset {args.offset}", file=sys.stderr)
        return 1
    result = update_link_target(doc.body, link, target_from_input(args.target), args.label)
    _emit_content(args, doc, result.content, {"token": result.token, "cursor": result.cursor})
    return 0


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start the local JSON API server."""
    import uvicorn

    from .api.app import create_app, generate_token

    if args.token == "auto":
        token: str | None = generate_token()
    elif args.token == "none":
        token = None
    else:
        token = args.token

    host = args.host or rt.config.serve.host
    port = args.port or rt.config.serve.port

    if not args.quiet:
        print(f"Serving {rt.library.storage.root} on http://{host}:{port}")
        if token:
            print(f"Bearer token: {token}")

    app = create_app(rt, token=token, enable_cors=args.cors)
    uvicorn.run(app, host=host, port=port, log_level="warning")
    return 0


def cmd_watch(args: argparse.Namespace, rt: Any) -> int:
    """Watch the library and lint articles as they change."""
    from .watch import watch_library

    debounce = args.debounce if args.debounce is not None else rt.config.watch.debounce_ms
    return watch_library(rt, debounce_ms=debounce, quiet=args.quiet, json_output=args.json)


def _version_string() -> str:
    return f"olio {__version__} (python {platform.python_version()}, platform {platform.system().lower()})"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="olio",
        description="olio - rich-text document tools for help articles",
    )
    parser.add_argument("--version", action="version", version=_version_string())
    parser.add_argument("--library", type=Path, help="Help article directory (default: from olio.toml or ./help)")
    parser.add_argument("--config", type=Path, help="Path to olio.toml")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress informational output")
    parser.add_argument("--log-level", help="Log level (default: OLIO_LOG_LEVEL or WARNING)")

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    parser_ls = subparsers.add_parser("ls", help="List help articles")
    parser_ls.add_argument("--published", action="store_true", help="Only published articles")
    parser_ls.add_argument("--format", choices=["tsv", "json"], default="tsv")

    parser_parse = subparsers.add_parser("parse", help="Parse a document to JSON")
    parser_parse.add_argument("doc", help="File path or article id")

    parser_anchors = subparsers.add_parser("anchors", help="List heading anchors")
    parser_anchors.add_argument("doc", help="File path or article id")
    parser_anchors.add_argument("--format", choices=["tsv", "json"], default="tsv")

    parser_links = subparsers.add_parser("links", help="List links with offsets")
    parser_links.add_argument("doc", help="File path or article id")
    parser_links.add_argument("--format", choices=["tsv", "json"], default="tsv")

    parser_lint = subparsers.add_parser("lint", help="Check links and references")
    parser_lint.add_argument("docs", nargs="*", help="File paths or article ids (default: whole library)")
    parser_lint.add_argument("--format", choices=["text", "json"], default="text")

    parser_render = subparsers.add_parser("render", help="Render a document to HTML")
    parser_render.add_argument("doc", help="File path or article id")
    parser_render.add_argument("-o", "--out", help="Output file (default: stdout)")

    parser_link = subparsers.add_parser("link", help="Edit links in a document")
    link_sub = parser_link.add_subparsers(dest="link_cmd", required=True)

    parser_insert = link_sub.add_parser("insert", help="Insert a link at a selection")
    parser_insert.add_argument("doc", help="File path or article id")
    parser_insert.add_argument("target", help="olio:// href or external URL")
    parser_insert.add_argument("--start", type=int, required=True, help="Selection start offset")
    parser_insert.add_argument("--end", type=int, help="Selection end offset (default: start)")
    parser_insert.add_argument("--label", default="link", help="Label when the selection is empty")
    parser_insert.add_argument("--write", action="store_true", help="Write the file instead of printing")

    parser_at = link_sub.add_parser("at", help="Show the link under an offset")
    parser_at.add_argument("doc", help="File path or article id")
    parser_at.add_argument("offset", type=int)

    parser_remove = link_sub.add_parser("remove", help="Remove the link under an offset, keeping its label")
    parser_remove.add_argument("doc", help="File path or article id")
    parser_remove.add_argument("offset", type=int)
    parser_remove.add_argument("--write", action="store_true", help="Write the file instead of printing")

    parser_edit = link_sub.add_parser("edit", help="Change the target of the link under an offset")
    parser_edit.add_argument("doc", help="File path or article id")
    parser_edit.add_argument("offset", type=int)
    parser_edit.add_argument("target", help="olio:// href or external URL")
    parser_edit.add_argument("--label", help="New label (default: keep)")
    parser_edit.add_argument("--write", action="store_true", help="Write the file instead of printing")

    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument("--host", help="Host to bind to (default: 127.0.0.1)")
    parser_serve.add_argument("--port", type=int, help="Port to bind to (default: 8765)")
    parser_serve.add_argument(
        "--token", default="auto",
        help="Bearer token (auto|<string>|none, default: auto)"
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS (default: false)")

    parser_watch = subparsers.add_parser("watch", help="Lint articles as they change")
    parser_watch.add_argument("--debounce", type=int, help="Debounce window in ms (default: 150)")
    parser_watch.add_argument("--json", action="store_true", help="Emit JSON events")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    handlers = {
        "ls": cmd_ls,
        "parse": cmd_parse,
        "anchors": cmd_anchors,
        "links": cmd_links,
        "lint": cmd_lint,
        "render": cmd_render,
        "serve": cmd_serve,
        "watch": cmd_watch,
    }

    # Handle link subcommand
    if args.cmd == "link":
        link_handlers = {
            "insert": cmd_link_insert,
            "at": cmd_link_at,
            "remove": cmd_link_remove,
            "edit": cmd_link_edit,
        }
        handler = link_handlers.get(args.link_cmd)
    else:
        handler = handlers.get(args.cmd)

    if handler is None:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)

    try:
        rt = build_runtime(library_path=args.library, config_path=args.config)
        exit_code = handler(args, rt)
    except Exception as e:
        log.debug("Command %s failed", args.cmd, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
