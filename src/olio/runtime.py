"""Runtime wiring helper for CLI applications."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_storage import FsStorage
from .adapters.help_resolver import HelpResolver
from .adapters.markdown_parser import MarkdownParser
from .adapters.yaml_codec import HelpArticleCodec, YamlFrontmatter
from .config import OlioConfig, load_config
from .core.library import HelpLibrary
from .export.html import HtmlRenderer


@dataclass
class Runtime:
    """Container for all wired components."""
    library: HelpLibrary
    parser: MarkdownParser
    resolver: HelpResolver
    frontmatter: YamlFrontmatter
    config: OlioConfig

    def renderer_for(self, anchors: list[str]) -> HtmlRenderer:
        return HtmlRenderer(self.resolver.with_anchors(anchors), self.parser)


def build_runtime(
    library_path: Path | None = None,
    config_path: Path | None = None,
) -> Runtime:
    """Build and wire all components for a help library."""
    config = load_config(config_path=config_path, library_path=library_path)

    # CLI args win over config values
    if library_path is None:
        library_path = config.library.root

    frontmatter = YamlFrontmatter()
    parser = MarkdownParser(max_inline_depth=config.parser.max_inline_depth)
    library = HelpLibrary(FsStorage(library_path), parser, HelpArticleCodec(frontmatter))
    resolver = HelpResolver(library, article_path=config.help.article_path)

    return Runtime(
        library=library,
        parser=parser,
        resolver=resolver,
        frontmatter=frontmatter,
        config=config,
    )
