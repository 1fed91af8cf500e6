"""Topic tree compiled from flat content records.

Groups records by directory, orders articles within each topic and topics
among their siblings, and links every article to the next one in reading
order. The compiled tree is immutable: nodes are frozen and indexes are
read-only mappings, so it can be shared between concurrent page renders.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from topicdocs.core.paths import INDEX_NAME, build_url, is_under_root, join_path, normalize_path
from topicdocs.core.types import ContentRecord, SortMethod, URLPath

logger = logging.getLogger(__name__)

ROOT_TOPIC_ID = "topic:/"


def topic_id(topic_path: str) -> str:
    """Return the node id of a topic path."""
    return f"topic:{topic_path}" if topic_path else ROOT_TOPIC_ID


def article_id(path: str) -> str:
    """Return the node id of an article path."""
    return f"article:{path}"


@dataclass(frozen=True)
class ArticleNode:
    """Leaf of the topic tree: one resolved article."""

    id: str
    path: str
    file_name: str
    title: str
    order: int | None
    modified_time: datetime
    url: URLPath
    source: str
    github_link: str | None = None
    # Id of the next article in reading order, resolved via CompiledTree
    next_up: str | None = None


@dataclass(frozen=True)
class TopicNode:
    """Directory-level grouping of articles and nested topics."""

    id: str
    topic_path: str
    title: str
    url: URLPath
    subtopics: tuple["TopicNode", ...] = ()
    articles: tuple[ArticleNode, ...] = ()

    @property
    def is_root(self) -> bool:
        """Whether this is the synthetic root topic."""
        return self.topic_path == ""


class CompiledTree:
    """Topic tree with O(1) lookups by article path, article id and topic path.

    Built once by build_tree() and never mutated afterwards.
    """

    __slots__ = (
        "_articles_by_id",
        "_articles_by_path",
        "_flattened",
        "_parents",
        "_root",
        "_root_dir",
        "_topics",
    )

    def __init__(self, root: TopicNode, root_dir: str) -> None:
        """Index a topic hierarchy.

        Args:
            root: Synthetic root topic
            root_dir: Configured root directory the tree is relative to
        """
        self._root = root
        self._root_dir = root_dir

        articles_by_path: dict[str, ArticleNode] = {}
        articles_by_id: dict[str, ArticleNode] = {}
        topics: dict[str, TopicNode] = {}
        parents: dict[str, str | None] = {}
        flattened: list[ArticleNode] = []

        stack: list[tuple[TopicNode, str | None]] = [(root, None)]
        while stack:
            topic, parent_id = stack.pop()
            topics[topic.topic_path] = topic
            parents[topic.id] = parent_id
            for article in topic.articles:
                articles_by_path[article.path] = article
                articles_by_id[article.id] = article
                flattened.append(article)
            # Reversed so subtopics pop in sibling order (pre-order walk)
            stack.extend((sub, topic.id) for sub in reversed(topic.subtopics))

        self._articles_by_path = MappingProxyType(articles_by_path)
        self._articles_by_id = MappingProxyType(articles_by_id)
        self._topics = MappingProxyType(topics)
        self._parents = MappingProxyType(parents)
        self._flattened = tuple(flattened)

    @property
    def root(self) -> TopicNode:
        """Synthetic root topic."""
        return self._root

    @property
    def root_dir(self) -> str:
        """Root directory all paths are relative to."""
        return self._root_dir

    @property
    def flattened(self) -> tuple[ArticleNode, ...]:
        """All articles in reading order."""
        return self._flattened

    @property
    def articles(self) -> Mapping[str, ArticleNode]:
        """Articles keyed by root-relative path."""
        return self._articles_by_path

    @property
    def topics(self) -> Mapping[str, TopicNode]:
        """Topics keyed by root-relative topic path."""
        return self._topics

    def is_empty(self) -> bool:
        """Whether the tree holds no articles."""
        return not self._flattened

    def get_article(self, path: str) -> ArticleNode | None:
        """Get article by root-relative path."""
        return self._articles_by_path.get(path)

    def get_article_by_id(self, node_id: str) -> ArticleNode | None:
        """Get article by node id."""
        return self._articles_by_id.get(node_id)

    def get_topic(self, topic_path: str) -> TopicNode | None:
        """Get topic by root-relative topic path."""
        return self._topics.get(topic_path)

    def get_topic_for_article(self, article: ArticleNode) -> TopicNode:
        """Get the topic that directly contains an article."""
        topic_path = article.path if article.file_name == INDEX_NAME else article.path.rpartition("/")[0]
        return self._topics[topic_path]

    def get_next_up(self, article: ArticleNode) -> ArticleNode | None:
        """Dereference an article's next-up link."""
        if article.next_up is None:
            return None
        return self._articles_by_id.get(article.next_up)

    def iter_ancestors(self, topic: TopicNode) -> Iterator[str]:
        """Yield topic ids from the given topic up to the root, inclusive."""
        current: str | None = topic.id
        while current is not None:
            yield current
            current = self._parents[current]


@dataclass
class _TopicDraft:
    """Mutable topic used while assembling the hierarchy."""

    topic_path: str
    segment: str
    records: list[ContentRecord] = field(default_factory=list)
    children: dict[str, "_TopicDraft"] = field(default_factory=dict)
    min_order: int | None = None


def build_tree(
    records: Iterable[ContentRecord],
    root_dir: str,
    *,
    edit_url_base: str | None = None,
) -> CompiledTree:
    """Compile content records into a topic tree.

    Records whose directory is not under root_dir are ignored: content from
    unrelated trees shares the same record source.

    Args:
        records: Content records in record-source order
        root_dir: Root directory (e.g., "docs")
        edit_url_base: Base URL for "edit this page" links, if any

    Returns:
        Immutable CompiledTree
    """
    groups = _group_records(records, root_dir)

    root = _TopicDraft(topic_path="", segment=root_dir)
    for topic_path, group in groups.items():
        draft = _ensure_topic(root, topic_path)
        draft.records = _order_group(topic_path, group)

    _compute_min_order(root)

    reading_order: list[str] = []
    _collect_reading_order(root, reading_order)
    next_up = {
        current: following
        for current, following in zip(reading_order, [*reading_order[1:], None])
    }

    frozen_root = _freeze(root, root_dir, next_up, edit_url_base)
    tree = CompiledTree(frozen_root, root_dir)
    logger.debug(
        f"Compiled tree for {root_dir!r}: {len(tree.topics)} topics, "
        f"{len(tree.flattened)} articles",
    )
    return tree


def _group_records(
    records: Iterable[ContentRecord],
    root_dir: str,
) -> dict[str, list[ContentRecord]]:
    """Group records by normalized directory, keeping first-seen order.

    The first record claiming an article path wins; later duplicates are
    dropped so node ids stay unique.
    """
    groups: dict[str, list[ContentRecord]] = {}
    seen_paths: set[str] = set()

    for record in records:
        if not is_under_root(record.directory_path, root_dir):
            logger.debug(f"Skipping {record.relative_path}: outside {root_dir!r}")
            continue

        topic_path = normalize_path(record.directory_path, root_dir)
        path = join_path(topic_path, record.file_name)
        if path in seen_paths:
            logger.warning(f"Duplicate article path {path!r}, skipping {record.relative_path}")
            continue
        seen_paths.add(path)
        groups.setdefault(topic_path, []).append(record)

    return _drop_topic_collisions(groups)


def _drop_topic_collisions(
    groups: dict[str, list[ContentRecord]],
) -> dict[str, list[ContentRecord]]:
    """Drop articles whose path is also the path of a topic.

    "docs/a.md" and "docs/a/" would share the URL /docs/a/; the topic keeps
    it. Deepest groups never collide, so no topic disappears here.
    """
    topic_paths: set[str] = set()
    for topic_path in groups:
        segments = topic_path.split("/") if topic_path else []
        topic_paths.update("/".join(segments[:i]) for i in range(1, len(segments) + 1))

    result: dict[str, list[ContentRecord]] = {}
    for topic_path, group in groups.items():
        kept = []
        for record in group:
            path = join_path(topic_path, record.file_name)
            if record.file_name != INDEX_NAME and path in topic_paths:
                logger.warning(
                    f"Article path {path!r} collides with a topic, skipping {record.relative_path}",
                )
                continue
            kept.append(record)
        if kept:
            result[topic_path] = kept
    return result


def _title_key(record: ContentRecord) -> tuple[str, str, str]:
    """Case-insensitive title, then code points, then file name."""
    return (record.title.casefold(), record.title, record.file_name)


def _order_group(topic_path: str, group: list[ContentRecord]) -> list[ContentRecord]:
    """Order the articles of one topic by the topic's sort method.

    A manual topic must be fully annotated: if any article lacks an order,
    the whole topic is sorted alphabetically instead.
    """
    sort_method = group[0].sort_method

    if sort_method == SortMethod.MANUAL:
        if all(record.order is not None for record in group):
            return sorted(group, key=lambda r: (r.order, *_title_key(r)))
        logger.info(
            f"Topic {topic_path or '/'!r} has articles without order, "
            "falling back to alphabetical ordering",
        )
        return sorted(group, key=_title_key)

    if sort_method == SortMethod.BY_DATE:
        by_title = sorted(group, key=_title_key)
        return sorted(by_title, key=lambda r: r.modified_time, reverse=True)

    return sorted(group, key=_title_key)


def _ensure_topic(root: _TopicDraft, topic_path: str) -> _TopicDraft:
    """Get or create the draft for topic_path and all of its prefixes."""
    current = root
    if not topic_path:
        return current

    prefix: list[str] = []
    for segment in topic_path.split("/"):
        prefix.append(segment)
        child = current.children.get(segment)
        if child is None:
            child = _TopicDraft(topic_path="/".join(prefix), segment=segment)
            current.children[segment] = child
        current = child
    return current


def _compute_min_order(draft: _TopicDraft) -> int | None:
    """Compute the minimum article order of a topic, transitively."""
    orders = [record.order for record in draft.records if record.order is not None]
    for child in draft.children.values():
        child_order = _compute_min_order(child)
        if child_order is not None:
            orders.append(child_order)
    draft.min_order = min(orders) if orders else None
    return draft.min_order


def _sorted_children(draft: _TopicDraft) -> list[_TopicDraft]:
    """Order sibling topics by minimum order (unordered last), then name."""
    return sorted(
        draft.children.values(),
        key=lambda child: (
            child.min_order is None,
            child.min_order if child.min_order is not None else 0,
            child.segment.casefold(),
            child.segment,
        ),
    )


def _collect_reading_order(draft: _TopicDraft, out: list[str]) -> None:
    """Pre-order walk: a topic's own articles, then its subtopics."""
    for record in draft.records:
        out.append(article_id(join_path(draft.topic_path, record.file_name)))
    for child in _sorted_children(draft):
        _collect_reading_order(child, out)


def _freeze(
    draft: _TopicDraft,
    root_dir: str,
    next_up: dict[str, str | None],
    edit_url_base: str | None,
) -> TopicNode:
    """Convert a draft hierarchy into frozen nodes."""
    articles = tuple(
        _make_article(draft.topic_path, record, root_dir, next_up, edit_url_base)
        for record in draft.records
    )
    subtopics = tuple(
        _freeze(child, root_dir, next_up, edit_url_base) for child in _sorted_children(draft)
    )
    return TopicNode(
        id=topic_id(draft.topic_path),
        topic_path=draft.topic_path,
        title=_topic_title(draft),
        url=build_url(root_dir, draft.topic_path),
        subtopics=subtopics,
        articles=articles,
    )


def _make_article(
    topic_path: str,
    record: ContentRecord,
    root_dir: str,
    next_up: dict[str, str | None],
    edit_url_base: str | None,
) -> ArticleNode:
    path = join_path(topic_path, record.file_name)
    node_id = article_id(path)
    github_link = None
    if edit_url_base:
        github_link = f"{edit_url_base.rstrip('/')}/{record.relative_path}"
    return ArticleNode(
        id=node_id,
        path=path,
        file_name=record.file_name,
        title=record.title,
        order=record.order,
        modified_time=record.modified_time,
        url=build_url(root_dir, path),
        source=record.relative_path,
        github_link=github_link,
        next_up=next_up[node_id],
    )


def _topic_title(draft: _TopicDraft) -> str:
    """Use the metadata title of the topic, falling back to its directory name."""
    for record in draft.records:
        if record.topic_title:
            return record.topic_title
    return humanize(draft.segment)


def humanize(name: str) -> str:
    """Convert a file or directory name to a display title.

    Example: "getting-started" -> "Getting Started"
    """
    return name.replace("-", " ").replace("_", " ").strip().title()
