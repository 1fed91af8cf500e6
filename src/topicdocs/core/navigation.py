"""Navigation tree builder.

Resolves which topics are expanded for a page and builds navigation
items from the compiled tree for UI presentation.
"""

from dataclasses import dataclass, field
from typing import TypedDict

from topicdocs.core.paths import resolve_current_path
from topicdocs.core.tree import ArticleNode, CompiledTree, TopicNode
from topicdocs.core.types import URLPath


class NavItemDict(TypedDict, total=False):
    """Dictionary representation of a navigation item."""

    id: str
    title: str
    path: str
    open: bool
    active: bool
    children: list["NavItemDict"]


@dataclass
class NavItem:
    """Navigation item with children for UI tree."""

    id: str
    title: str
    path: URLPath
    open: bool = False
    active: bool = False
    children: list["NavItem"] = field(default_factory=list)

    def to_dict(self) -> NavItemDict:
        """Convert to dictionary for JSON serialization."""
        result: NavItemDict = {"id": self.id, "title": self.title, "path": self.path}
        if self.open:
            result["open"] = True
        if self.active:
            result["active"] = True
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


def find_initial_open_topics(
    tree: CompiledTree,
    current_path: str,
    root_dir: str,
) -> frozenset[str]:
    """Find the topics that must be expanded for the current page.

    current_path may address a topic (its index page) or an article, either
    as a directory path ("docs/guides"), a root-relative path ("guides/setup")
    or a URL ("/docs/guides/setup/").

    Args:
        tree: Compiled topic tree
        current_path: Path of the page being rendered
        root_dir: Root directory of the tree

    Returns:
        Ids of every topic from the root down to the page's topic, inclusive.
        Empty if the path is not part of the tree.
    """
    if tree.is_empty():
        return frozenset()

    relative = resolve_current_path(current_path, root_dir)

    topic = tree.get_topic(relative)
    if topic is None:
        article = tree.get_article(relative)
        if article is None:
            return frozenset()
        topic = tree.get_topic_for_article(article)

    return frozenset(tree.iter_ancestors(topic))


def build_navigation(
    tree: CompiledTree,
    open_topics: frozenset[str] = frozenset(),
    active_url: str | None = None,
) -> list[NavItem]:
    """Build navigation tree from a compiled tree.

    Root-directory articles come first as plain links, followed by one item
    per top-level topic.

    Args:
        tree: Compiled topic tree
        open_topics: Topic ids to mark as expanded
        active_url: URL of the current article, marked active

    Returns:
        List of NavItem trees for navigation UI
    """
    items = [_article_item(article, active_url) for article in tree.root.articles]
    items.extend(
        _topic_item(topic, open_topics, active_url) for topic in tree.root.subtopics
    )
    return items


def _topic_item(
    topic: TopicNode,
    open_topics: frozenset[str],
    active_url: str | None,
) -> NavItem:
    """Recursively build NavItem from topic."""
    children = [_article_item(article, active_url) for article in topic.articles]
    children.extend(
        _topic_item(sub, open_topics, active_url) for sub in topic.subtopics
    )
    return NavItem(
        id=topic.id,
        title=topic.title,
        path=topic.url,
        open=topic.id in open_topics,
        children=children,
    )


def _article_item(article: ArticleNode, active_url: str | None) -> NavItem:
    return NavItem(
        id=article.id,
        title=article.title,
        path=article.url,
        active=article.url == active_url,
    )
