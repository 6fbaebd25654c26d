import logging
from collections.abc import Iterable

from .model import HelpArticle, ParsedDocument
from .ports import ParserStrategy, StorageStrategy

log = logging.getLogger(__name__)


class HelpLibrary:
    """Help articles stored as markdown files, parsed on demand."""

    def __init__(self, storage: StorageStrategy, parser: ParserStrategy, codec):
        self.storage = storage
        self.parser = parser
        self.codec = codec

    def get(self, id: str) -> HelpArticle | None:
        raw = self.storage.read_raw(id)
        if raw is None:
            return None
        return self.codec.decode_file(raw, id)

    def put(self, article: HelpArticle) -> None:
        self.storage.write_raw(article.id, self.codec.encode_file(article))

    def delete(self, id: str) -> None:
        self.storage.delete_raw(id)

    def list_ids(self) -> Iterable[str]:
        return self.storage.list_all_ids()

    def articles(self, published_only: bool = False) -> list[HelpArticle]:
        out = []
        for aid in self.list_ids():
            article = self.get(aid)
            if article is None:
                continue
            if published_only and not article.published:
                continue
            out.append(article)
        return out

    def find_by_slug(self, slug: str) -> HelpArticle | None:
        for article in self.articles():
            if article.slug == slug:
                return article
        log.debug("No help article with slug %r", slug)
        return None

    def parse(self, id: str) -> ParsedDocument | None:
        article = self.get(id)
        if article is None:
            return None
        return self.parser.parse(article.content)
