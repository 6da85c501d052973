"""Markdown rendering for document previews."""

import re
from typing import Callable
from xml.etree.ElementTree import Element

from markdown import Markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import SimpleTagInlineProcessor
from markdown.treeprocessors import Treeprocessor

from folio.core.models import INTERNAL_LINK_PREFIX, Document, permalink_for

# Markdown links whose target is another content file: [text](@/blog/post.md#anchor)
INTERNAL_LINK_PATTERN = re.compile(r"\]\(\s*@/([^)#\s]+)(?:#[^)\s]*)?\s*\)")

# Pattern for strikethrough: ~~text~~
# Group 2 must contain the text (SimpleTagInlineProcessor expectation)
STRIKETHROUGH_PATTERN = r"(~~)(.*?)~~"


class StrikethroughExtension(Extension):
    """Markdown extension for ~~strikethrough~~ text."""

    def extendMarkdown(self, md: Markdown) -> None:
        md.inlinePatterns.register(
            SimpleTagInlineProcessor(STRIKETHROUGH_PATTERN, "del"),
            "strikethrough",
            50,
        )


class InternalLinkTreeprocessor(Treeprocessor):
    """Rewrite ``@/path.md`` link targets to permalinks."""

    def __init__(self, md: Markdown, document_exists: Callable[[str], bool]):
        super().__init__(md)
        self.document_exists = document_exists

    def run(self, root: Element) -> None:
        for el in root.iter("a"):
            href = el.get("href", "")
            if not href.startswith(INTERNAL_LINK_PREFIX):
                continue
            target, _, anchor = href[len(INTERNAL_LINK_PREFIX) :].partition("#")
            url = permalink_for(target)
            el.set("href", f"{url}#{anchor}" if anchor else url)

            classes = [el.get("class")] if el.get("class") else []
            classes.append("internal-link")
            if not self.document_exists(target):
                classes.append("internal-link-missing")
            el.set("class", " ".join(classes))


class InternalLinkExtension(Extension):
    """Markdown extension for internal ``@/`` links."""

    def __init__(self, document_exists: Callable[[str], bool] | None = None, **kwargs):
        self.document_exists = document_exists or (lambda x: True)
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:
        md.treeprocessors.register(
            InternalLinkTreeprocessor(md, self.document_exists),
            "internal_link",
            5,
        )


def create_renderer(document_exists: Callable[[str], bool] | None = None) -> Markdown:
    """Create a Markdown renderer.

    Args:
        document_exists: Callback to check if a content path exists.
                    Used to flag links to missing documents.

    Returns:
        Configured Markdown instance.
    """
    return Markdown(
        extensions=[
            # Core formatting
            "extra",  # Includes: abbreviations, attr_list, def_list, fenced_code, footnotes, md_in_html, tables
            "sane_lists",
            "smarty",  # Smart quotes and dashes
            "toc",
            # PyMdown extensions
            "pymdownx.tasklist",
            # Custom extensions
            StrikethroughExtension(),
            InternalLinkExtension(document_exists=document_exists),
        ]
    )


def render_markdown(
    body: str,
    document_exists: Callable[[str], bool] | None = None,
) -> str:
    """Render a Markdown body to HTML."""
    return create_renderer(document_exists).convert(body)


def render_markdown_with_toc(
    body: str,
    document_exists: Callable[[str], bool] | None = None,
) -> tuple[str, str]:
    """Render a Markdown body to HTML and also return its table of contents.

    Returns:
        Tuple of (html, toc_html).
    """
    renderer = create_renderer(document_exists)
    html = renderer.convert(body)
    toc_html = getattr(renderer, "toc", "")
    return html, toc_html


def render_document(
    document: Document,
    document_exists: Callable[[str], bool] | None = None,
) -> tuple[str, str]:
    """Render a document's body, returning (html, toc_html)."""
    return render_markdown_with_toc(document.body, document_exists)


def extract_internal_links(body: str) -> list[str]:
    """Extract the content paths referenced by ``@/`` links in a body."""
    return [m.group(1) for m in INTERNAL_LINK_PATTERN.finditer(body)]
