import io
import re
from typing import Any

import yaml

from ..core.model import HelpArticle
from ..core.ports import FrontmatterCodec
from ..core.utils import article_slug

_FM = re.compile(r"^\s*---\s*\n(.*?)\n---\s*\n?", re.DOTALL)

ARTICLE_KEYS = ("id", "slug", "title", "summary", "published")


class YamlFrontmatter(FrontmatterCodec):
    def decode(self, text: str) -> tuple[dict[str, Any], str]:
        m = _FM.match(text)
        if not m:
            return {}, text
        fm = yaml.safe_load(io.StringIO(m.group(1))) or {}
        if not isinstance(fm, dict):
            raise ValueError("Frontmatter must be a mapping")
        body = text[m.end() :]
        return (fm, body)

    def encode(self, meta: dict[str, Any]) -> str:
        if not meta:
            return ""
        buf = io.StringIO()
        yaml.safe_dump(meta, buf, sort_keys=False, allow_unicode=True)
        return f"---\n{buf.getvalue()}---\n"

    def split(self, text: str) -> tuple[str, str]:
        """Raw frontmatter block and body, so a body edit can be written back verbatim."""
        m = _FM.match(text)
        if not m:
            return "", text
        return text[: m.end()], text[m.end() :]


class HelpArticleCodec:
    """Help article files: YAML frontmatter (id, slug, title, summary, published) + markdown body."""

    def __init__(self, fm: YamlFrontmatter):
        self.fm = fm

    def decode_file(self, text: str, id: str) -> HelpArticle:
        meta, body = self.fm.decode(text)
        title = str(meta.get("title") or id)
        extra = {k: v for k, v in meta.items() if k not in ARTICLE_KEYS}
        return HelpArticle(
            # filename stays the source of truth for the id
            id=id,
            title=title,
            slug=str(meta.get("slug") or article_slug(title) or id),
            content=body,
            summary=str(meta.get("summary") or ""),
            published=bool(meta.get("published", True)),
            meta=extra,
        )

    def encode_file(self, article: HelpArticle) -> str:
        meta: dict[str, Any] = {
            "id": article.id,
            "slug": article.slug,
            "title": article.title,
        }
        if article.summary:
            meta["summary"] = article.summary
        if not article.published:
            meta["published"] = False
        meta.update(article.meta)
        return self.fm.encode(meta) + article.content
