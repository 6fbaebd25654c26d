from collections.abc import Iterable

from ..core.library import HelpLibrary
from ..core.model import (
    ExternalTarget,
    HelpAnchorTarget,
    HelpTarget,
    LinkMeta,
    LinkTarget,
)
from ..core.ports import LinkResolver

DEFAULT_ARTICLE_PATH = "/help/article"
HELP_INDEX_PATH = "/help"


class HelpResolver(LinkResolver):
    """
    Resolves links the way the public help pages do: help articles from the
    library, anchors from the document being shown, project references as
    unavailable (they only resolve inside a project).
    """

    def __init__(
        self,
        library: HelpLibrary,
        anchors: Iterable[str] = (),
        article_path: str = DEFAULT_ARTICLE_PATH,
    ):
        self.library = library
        self.anchors = set(anchors)
        self.article_path = article_path.rstrip("/")

    def with_anchors(self, anchors: Iterable[str]) -> "HelpResolver":
        return HelpResolver(self.library, anchors, self.article_path)

    def help_href(self, article_id: str) -> str | None:
        article = self.library.get(article_id)
        if article is None or not article.published:
            return HELP_INDEX_PATH
        return f"{self.article_path}/{article.slug}"

    def resolve_meta(self, label: str, target: LinkTarget | None) -> LinkMeta:
        if target is None:
            return LinkMeta(exists=False, title=label, subtitle="Invalid link format")

        if isinstance(target, ExternalTarget):
            return LinkMeta(exists=True, title=label, subtitle=target.url)

        if isinstance(target, HelpTarget):
            article = self.library.get(target.article_id)
            if article is None or not article.published:
                return LinkMeta(exists=False, title=label, subtitle="Help article unavailable")
            return LinkMeta(
                exists=True,
                title=article.title,
                subtitle=f"{self.article_path}/{article.slug}",
            )

        if isinstance(target, HelpAnchorTarget):
            if target.anchor_id not in self.anchors:
                return LinkMeta(
                    exists=False,
                    title=label,
                    subtitle=f"#{target.anchor_id}",
                    warning="Section not found in this article",
                )
            return LinkMeta(exists=True, title=label, subtitle=f"#{target.anchor_id}")

        return LinkMeta(
            exists=False,
            title=label,
            subtitle="Project-only reference not available in public help",
        )
