"""Tests for document lint rules."""

import tempfile
from pathlib import Path

import pytest

from olio.adapters.fs_storage import FsStorage
from olio.adapters.help_resolver import HelpResolver
from olio.adapters.markdown_parser import MarkdownParser
from olio.adapters.yaml_codec import HelpArticleCodec, YamlFrontmatter
from olio.core.library import HelpLibrary
from olio.core.model import HelpArticle
from olio.lint import MalformedLinksRule, lint_document


@pytest.fixture
def resolver():
    """Resolver over a library holding one published article."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = FsStorage(Path(tmpdir))
        library = HelpLibrary(storage, MarkdownParser(), HelpArticleCodec(YamlFrontmatter()))
        library.put(HelpArticle(id="a1", title="Setup", slug="setup", content="# Setup\n"))
        yield HelpResolver(library)


def test_clean_document(resolver):
    """Test a document with only good links has no findings."""
    content = "# Intro\n\nSee [setup](olio://help/a1), [top](olio://help-anchor/intro) and [web](https://e.example).\n"
    assert lint_document(content, resolver) == []


def test_malformed_link(resolver):
    """Test unrecognized hrefs are warnings."""
    findings = lint_document("Text\n[bad](docs/page.md)\n", resolver)
    assert len(findings) == 1
    assert findings[0].severity == "warn"
    assert findings[0].line == 2
    assert "docs/page.md" in findings[0].message


def test_dead_help_link_is_error(resolver):
    """Test links to missing articles are errors."""
    [finding] = lint_document("[gone](olio://help/zz)", resolver)
    assert finding.severity == "error"
    assert "Help article unavailable" in finding.message


def test_missing_anchor_is_warning(resolver):
    """Test anchors are checked against the document's own headings."""
    [finding] = lint_document("# Intro\n\n[jump](olio://help-anchor/outro)\n", resolver)
    assert finding.severity == "warn"
    assert "outro" in finding.message


def test_project_reference_is_info(resolver):
    """Test project references cannot be verified here."""
    [finding] = lint_document("[card](olio://project/p1/board/c1)", resolver)
    assert finding.severity == "info"


def test_unresolved_references(resolver):
    """Test undefined reference links and footnotes are reported."""
    content = "Use [guide][g] and [other][nope] plus a note[^1] and [^2].\n\n[g]: https://e.example\n[^1]: Note\n"
    findings = lint_document(content, resolver)
    messages = [f.message for f in findings]
    assert messages == ["Undefined link reference [nope]", "Undefined footnote [^2]"]


def test_references_in_code_are_ignored(resolver):
    """Test fenced code is not checked for references."""
    content = "```\n[x][nope] and [^zz]\n```\n"
    assert lint_document(content, resolver) == []


def test_findings_sorted_by_position(resolver):
    """Test findings come back in document order."""
    content = "[b](olio://help/zz)\n[a](bad/path)\n"
    findings = lint_document(content, resolver)
    assert [f.line for f in findings] == [1, 2]


def test_custom_rule_selection(resolver):
    """Test running a subset of rules."""
    content = "[gone](olio://help/zz) [bad](x/y)"
    findings = lint_document(content, resolver, rules=(MalformedLinksRule(),))
    assert len(findings) == 1
    assert findings[0].severity == "warn"


def test_adjacent_footnotes_are_not_references(resolver):
    """Test back-to-back footnote refs are not reported as link references."""
    content = "Claim[^b][^a].\n\n[^a]: A\n[^b]: B\n"
    assert lint_document(content, resolver) == []
