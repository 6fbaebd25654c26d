from typing import Any, Iterable, Protocol

from .model import LinkMeta, LinkTarget, ParsedDocument


class StorageStrategy(Protocol):
    """
    Flat store: one directory, files named <id>.md
    """

    def read_raw(self, id: str) -> str | None:
        pass

    def write_raw(self, id: str, contents: str) -> None:
        pass

    def delete_raw(self, id: str) -> None:
        pass

    def list_all_ids(self) -> Iterable[str]:
        pass


class ParserStrategy(Protocol):
    """
    Parse document text into blocks plus reference/footnote tables.
    MUST NOT raise on any input.
    """

    def parse(self, text: str) -> ParsedDocument:
        pass


class FrontmatterCodec(Protocol):
    """
    Round-trip optional frontmatter without enforcing schema.
    """

    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        pass

    def encode(self, meta: dict[str, Any]) -> str:
        pass


class LinkResolver(Protocol):
    """
    Decides whether a link target still exists and how to present it.
    The parser never calls this; renderers and lint rules do, once per link.
    """

    def resolve_meta(self, label: str, target: LinkTarget | None) -> LinkMeta:
        pass

    def help_href(self, article_id: str) -> str | None:
        pass


class Renderer(Protocol):
    def render(self, document: ParsedDocument) -> str:
        pass
