"""Article metadata lookup against a compiled tree."""

from dataclasses import dataclass
from typing import NotRequired, TypedDict

from topicdocs.core.paths import resolve_current_path
from topicdocs.core.tree import ArticleNode, CompiledTree
from topicdocs.core.types import URLPath

DISPLAY_DATE_FORMAT = "%b. %d, %Y"


class ArticleNotFoundError(LookupError):
    """Raised when a path has no article in the compiled tree."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Article not found: {path}")
        self.path = path


class NextUpDict(TypedDict):
    """Dictionary representation of a next-up link."""

    title: str
    url: str


class ArticleMetadataDict(TypedDict):
    """Dictionary representation of article metadata."""

    id: str
    path: str
    title: str
    url: str
    order: int | None
    modified: str
    last_modified: str
    github_link: str | None
    next_up: NotRequired[NextUpDict]


@dataclass(frozen=True)
class NextUpLink:
    """Title and URL of the next article in reading order."""

    title: str
    url: URLPath

    def to_dict(self) -> NextUpDict:
        """Convert to dictionary for JSON serialization."""
        return {"title": self.title, "url": self.url}


@dataclass(frozen=True)
class ArticleMetadata:
    """Resolved metadata of one article, with its next-up link dereferenced."""

    id: str
    path: str
    title: str
    url: URLPath
    order: int | None
    modified: str
    last_modified: str
    github_link: str | None
    source: str
    next_up: NextUpLink | None

    def to_dict(self) -> ArticleMetadataDict:
        """Convert to dictionary for JSON serialization."""
        result: ArticleMetadataDict = {
            "id": self.id,
            "path": self.path,
            "title": self.title,
            "url": self.url,
            "order": self.order,
            "modified": self.modified,
            "last_modified": self.last_modified,
            "github_link": self.github_link,
        }
        if self.next_up is not None:
            result["next_up"] = self.next_up.to_dict()
        return result


def find_article(path: str, tree: CompiledTree) -> dict[str, ArticleMetadata]:
    """Resolve article metadata for a page path.

    A topic path yields every article placed directly in that topic; an
    article path yields just that article. Either way the result is keyed
    by file name, so callers pick the article they render by name.

    Args:
        path: Topic or article path (directory path, root-relative path or URL)
        tree: Compiled topic tree

    Returns:
        Article metadata keyed by file name

    Raises:
        ArticleNotFoundError: If no article matches the path
    """
    relative = resolve_current_path(path, tree.root_dir)

    topic = tree.get_topic(relative)
    if topic is not None and topic.articles:
        return {article.file_name: _resolve(article, tree) for article in topic.articles}

    article = tree.get_article(relative)
    if article is None:
        raise ArticleNotFoundError(path)
    return {article.file_name: _resolve(article, tree)}


def get_article(path: str, tree: CompiledTree) -> ArticleMetadata:
    """Resolve metadata for exactly the article addressed by path.

    Raises:
        ArticleNotFoundError: If no article has this path
    """
    article = tree.get_article(resolve_current_path(path, tree.root_dir))
    if article is None:
        raise ArticleNotFoundError(path)
    return _resolve(article, tree)


def _resolve(article: ArticleNode, tree: CompiledTree) -> ArticleMetadata:
    next_article = tree.get_next_up(article)
    next_up = None
    if next_article is not None:
        next_up = NextUpLink(title=next_article.title, url=next_article.url)

    return ArticleMetadata(
        id=article.id,
        path=article.path,
        title=article.title,
        url=article.url,
        order=article.order,
        modified=article.modified_time.strftime(DISPLAY_DATE_FORMAT),
        last_modified=article.modified_time.isoformat(),
        github_link=article.github_link,
        source=article.source,
        next_up=next_up,
    )
