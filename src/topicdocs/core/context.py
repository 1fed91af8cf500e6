"""Build context holding one compiled tree.

A BuildContext is created from a complete record snapshot and owns the
tree compiled from it. Resolvers receive the context explicitly; nothing
is kept in module globals. SiteLoader hands contexts to request handlers
and lets a client carry one context across a chain of navigations by
presenting its build id.
"""

import asyncio
import hashlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from topicdocs.core.lookup import ArticleMetadata, find_article, get_article
from topicdocs.core.navigation import find_initial_open_topics
from topicdocs.core.tree import CompiledTree, build_tree
from topicdocs.core.types import ContentRecord

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Anything that can provide a complete snapshot of content records."""

    async def fetch(self) -> list[ContentRecord]: ...


def compute_build_id(records: Sequence[ContentRecord]) -> str:
    """Compute a content hash identifying a record snapshot.

    Returns:
        First 16 hex chars of the SHA-256 over all record fields
    """
    digest = hashlib.sha256()
    for record in records:
        digest.update(repr(record).encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()[:16]


@dataclass(frozen=True)
class BuildContext:
    """Record snapshot and the tree compiled from it."""

    build_id: str
    root_dir: str
    records: tuple[ContentRecord, ...]
    tree: CompiledTree

    @classmethod
    def create(
        cls,
        records: Sequence[ContentRecord],
        root_dir: str,
        *,
        edit_url_base: str | None = None,
    ) -> "BuildContext":
        """Compile records into a new context."""
        snapshot = tuple(records)
        tree = build_tree(snapshot, root_dir, edit_url_base=edit_url_base)
        return cls(
            build_id=compute_build_id(snapshot),
            root_dir=root_dir,
            records=snapshot,
            tree=tree,
        )

    def open_topics(self, current_path: str) -> frozenset[str]:
        """Topic ids to expand for current_path."""
        return find_initial_open_topics(self.tree, current_path, self.root_dir)

    def find_article(self, path: str) -> dict[str, ArticleMetadata]:
        """Article metadata of a topic or article path, keyed by file name."""
        return find_article(path, self.tree)

    def get_article(self, path: str) -> ArticleMetadata:
        """Article metadata of exactly one article path."""
        return get_article(path, self.tree)


class SiteLoader:
    """Loads build contexts from a record source.

    A request that presents the build id of the current context continues
    its navigation chain and reuses the compiled tree. Any other request
    starts a fresh chain and rebuilds from the record source.
    """

    def __init__(
        self,
        source: RecordSource,
        root_dir: str,
        *,
        edit_url_base: str | None = None,
    ) -> None:
        """Initialize loader.

        Args:
            source: Record source providing complete snapshots
            root_dir: Root directory of the topic tree
            edit_url_base: Base URL for edit links
        """
        self._source = source
        self._root_dir = root_dir
        self._edit_url_base = edit_url_base
        self._current: BuildContext | None = None
        self._lock = asyncio.Lock()

    @property
    def root_dir(self) -> str:
        """Root directory of the topic tree."""
        return self._root_dir

    @property
    def current(self) -> BuildContext | None:
        """Most recently built context, if any."""
        return self._current

    async def load(self, build_id: str | None = None) -> BuildContext:
        """Get a build context.

        Args:
            build_id: Build id carried by the client from a previous response

        Returns:
            The current context if build_id matches it, otherwise a fresh one
        """
        async with self._lock:
            current = self._current
            if build_id is not None and current is not None and current.build_id == build_id:
                return current

            records = await self._source.fetch()
            context = BuildContext.create(
                records,
                self._root_dir,
                edit_url_base=self._edit_url_base,
            )
            logger.info(
                f"Built context {context.build_id} from {len(context.records)} records",
            )
            self._current = context
            return context

    async def records(self) -> tuple[ContentRecord, ...]:
        """Get a record snapshot without compiling a tree.

        Reuses the snapshot of the current context when there is one.
        """
        current = self._current
        if current is not None:
            return current.records
        return tuple(await self._source.fetch())

    def invalidate(self) -> None:
        """Drop the current context; the next load rebuilds."""
        self._current = None
