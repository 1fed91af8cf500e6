"""Markdown rendering for article pages.

Renders article bodies with mistune. A fixed table maps element kinds to
rendering strategies that replace mistune's defaults: links are rewritten
to site URLs, h2 headings get anchor ids and feed the page outline, and
checkmark table cells become icons.
"""

import logging
import posixpath
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from types import MethodType
from urllib.parse import urlsplit

import mistune
from mistune.plugins.table import render_table_cell as default_table_cell
from mistune.util import striptags

from topicdocs.core.paths import INDEX_NAME
from topicdocs.core.records import split_front_matter
from topicdocs.core.tree import ArticleNode

logger = logging.getLogger(__name__)

CHECKMARK_TOKEN = ":heavy_check_mark:"
CHECKMARK_HTML = '<span class="checkmark" aria-label="yes">&#10003;</span>'

DESCRIPTION_LENGTH = 160

MARKDOWN_LINK_SUFFIXES = (".mdx", ".md")

LEADING_H1_PATTERN = re.compile(r"\A\s*#\s+.+\n?")


def slugify(text: str) -> str:
    """Convert heading text to an anchor id.

    Example: "Implementing the /info Endpoint" -> "implementing-the-info-endpoint"
    """
    slug = re.sub(r"[^\w\s-]", "", text.lower()).strip()
    return re.sub(r"[\s_-]+", "-", slug)


@dataclass(frozen=True)
class OutlineEntry:
    """Page outline entry built from an h2 heading."""

    title: str
    id: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"title": self.title, "href": f"#{self.id}"}


@dataclass
class RenderResult:
    """Result of rendering an article body."""

    html: str
    outline: list[OutlineEntry]
    description: str
    source_path: Path


class DocsRenderer(mistune.HTMLRenderer):
    """HTML renderer carrying per-page state for the element strategies."""

    def __init__(self, base_url: str) -> None:
        super().__init__(escape=False)
        self.base_url = base_url
        self.outline: list[OutlineEntry] = []
        self.description: str | None = None
        # Instance attributes shadow both the class methods and plugin renderers
        for kind, strategy in ELEMENT_STRATEGIES.items():
            setattr(self, kind, MethodType(strategy, self))


def rewrite_href(href: str, base_url: str) -> str:
    """Rewrite a markdown link to a site URL.

    Source-file links ("../guides/setup.mdx", "./index.md") become page URLs
    resolved against the directory of the current article. External links,
    fragments and absolute links to non-markdown targets are left alone.

    Args:
        href: Link target as written in markdown
        base_url: URL of the current article's topic (with trailing slash)

    Returns:
        Rewritten link target
    """
    parts = urlsplit(href)
    if parts.scheme or parts.netloc or not parts.path:
        return href

    path = parts.path
    for suffix in MARKDOWN_LINK_SUFFIXES:
        if path.endswith(suffix):
            path = path[: -len(suffix)]
            head, _, name = path.rpartition("/")
            if name == INDEX_NAME:
                path = f"{head}/" if head else "./"
            elif not path.endswith("/"):
                path = f"{path}/"
            break

    if path.startswith("."):
        trailing = path.endswith("/")
        path = posixpath.normpath(posixpath.join(base_url, path))
        if trailing and not path.endswith("/"):
            path = f"{path}/"

    fragment = f"#{parts.fragment}" if parts.fragment else ""
    query = f"?{parts.query}" if parts.query else ""
    return f"{path}{query}{fragment}"


def _render_link(renderer: DocsRenderer, text: str, url: str, title: str | None = None) -> str:
    return mistune.HTMLRenderer.link(renderer, text, rewrite_href(url, renderer.base_url), title)


def _render_heading(renderer: DocsRenderer, text: str, level: int, **attrs: object) -> str:
    if level != 2:
        return mistune.HTMLRenderer.heading(renderer, text, level, **attrs)

    # Headings may wrap inline code or emphasis; anchors use the plain text
    plain = striptags(text)
    anchor = slugify(plain)
    renderer.outline.append(OutlineEntry(title=plain, id=anchor))
    return f'<h2 id="{anchor}">{text}</h2>\n'


def _render_paragraph(renderer: DocsRenderer, text: str) -> str:
    if renderer.description is None:
        plain = " ".join(striptags(text).split())
        if plain:
            renderer.description = plain
    return mistune.HTMLRenderer.paragraph(renderer, text)


def _render_table_cell(
    renderer: DocsRenderer,
    text: str,
    align: str | None = None,
    head: bool = False,
) -> str:
    if not head and text.strip() == CHECKMARK_TOKEN:
        text = CHECKMARK_HTML
    return default_table_cell(renderer, text, align=align, head=head)


# Element kind -> rendering strategy, bound to every DocsRenderer
ELEMENT_STRATEGIES: dict[str, Callable[..., str]] = {
    "link": _render_link,
    "heading": _render_heading,
    "paragraph": _render_paragraph,
    "table_cell": _render_table_cell,
}


def _truncate(text: str, length: int = DESCRIPTION_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[: length - 1].rsplit(" ", 1)[0] + "…"


class PageRenderer:
    """Renders article bodies from the content directory."""

    def __init__(self, source_dir: Path, *, strip_title: bool = True) -> None:
        """Initialize renderer.

        Args:
            source_dir: Content directory containing article files
            strip_title: Drop a leading H1 (the title is rendered by the page)
        """
        self._source_dir = source_dir
        self._strip_title = strip_title

    @property
    def source_dir(self) -> Path:
        """Content directory containing article files."""
        return self._source_dir

    def render(self, article: ArticleNode) -> RenderResult:
        """Render an article's body.

        Args:
            article: Article node from the compiled tree

        Returns:
            RenderResult with HTML, outline, and description

        Raises:
            FileNotFoundError: If the source file doesn't exist
        """
        source_path = self._source_dir / article.source
        if not source_path.exists():
            raise FileNotFoundError(f"Source file not found: {source_path}")

        _, body = split_front_matter(source_path.read_text(encoding="utf-8"))
        # Relative links resolve against the article's topic directory
        if article.file_name == INDEX_NAME:
            base_url = article.url
        else:
            base_url = posixpath.dirname(article.url.rstrip("/")) + "/"
        return self.render_text(body, base_url, source_path)

    def render_text(self, body: str, base_url: str, source_path: Path) -> RenderResult:
        """Render markdown text for a page under base_url."""
        if self._strip_title:
            body = LEADING_H1_PATTERN.sub("", body, count=1)

        renderer = DocsRenderer(base_url)
        markdown = mistune.create_markdown(
            renderer=renderer,
            plugins=["table", "strikethrough"],
        )
        html = markdown(body)
        logger.debug(f"Rendered {source_path}: {len(html)} characters")
        return RenderResult(
            html=html,
            outline=list(renderer.outline),
            description=_truncate(renderer.description or ""),
            source_path=source_path,
        )
