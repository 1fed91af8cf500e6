"""Contentful Delivery API client for documentation metadata.

Directories and files can carry metadata entries (display title, order,
sort method) maintained in Contentful. Entries are addressed by their path
relative to the content directory, e.g. "docs/guides" for a topic or
"docs/guides/setup" for an article.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict

import httpx

from topicdocs.config import ContentfulConfig
from topicdocs.core.types import SortMethod

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class MetadataFieldsDict(TypedDict):
    """Fields of a docs metadata entry."""

    path: str
    metadata: NotRequired[dict[str, Any]]


class EntryDict(TypedDict):
    """Contentful entry."""

    sys: dict[str, Any]
    fields: MetadataFieldsDict


class EntriesResponseDict(TypedDict):
    """Contentful entries collection response."""

    total: int
    skip: int
    limit: int
    items: list[EntryDict]


@dataclass(frozen=True)
class PathMetadata:
    """Metadata attached to a directory or file path."""

    title: str | None = None
    order: int | None = None
    sort_method: SortMethod | None = None


class MetadataIndex:
    """Metadata entries keyed by normalized path."""

    def __init__(self, entries: dict[str, PathMetadata] | None = None) -> None:
        self._entries = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_entries(cls, entries: Iterable[EntryDict]) -> "MetadataIndex":
        """Build index from raw Contentful entries.

        Entries without a path are skipped. Unknown sort methods fall back
        to manual ordering.
        """
        index: dict[str, PathMetadata] = {}
        for entry in entries:
            fields = entry.get("fields", {})
            path = fields.get("path")
            if not isinstance(path, str) or not path.strip("/"):
                logger.warning(f"Skipping metadata entry {entry.get('sys', {}).get('id')}: no path")
                continue

            raw = fields.get("metadata") or {}
            data = raw.get("data", raw) if isinstance(raw, dict) else {}

            title = data.get("title")
            order = data.get("order")
            sort_method = data.get("sortMethod")
            index[path.strip("/")] = PathMetadata(
                title=title if isinstance(title, str) else None,
                order=order if isinstance(order, int) and not isinstance(order, bool) else None,
                sort_method=SortMethod.parse(sort_method) if sort_method is not None else None,
            )
        return cls(index)

    def get(self, path: str) -> PathMetadata | None:
        """Get metadata for a directory or extension-less file path."""
        return self._entries.get(path.strip("/"))


class ContentfulClient:
    """Async HTTP client for the Contentful Delivery API."""

    def __init__(self, client: httpx.AsyncClient, config: ContentfulConfig):
        """Initialize Contentful client.

        Args:
            client: httpx AsyncClient used for requests
            config: Contentful configuration with credentials
        """
        self.client = client
        self.config = config
        self.api_url = (
            f"{config.base_url.rstrip('/')}/spaces/{config.space_id}"
            f"/environments/{config.environment}"
        )

    async def get_entries(self, content_type: str, skip: int = 0) -> EntriesResponseDict:
        """Get one page of entries of a content type.

        Args:
            content_type: Content type id
            skip: Number of entries to skip

        Returns:
            Entries collection page

        Raises:
            httpx.HTTPError: If request fails
        """
        logger.debug(f"Fetching {content_type} entries from offset {skip}")
        response = await self.client.get(
            f"{self.api_url}/entries",
            params={"content_type": content_type, "limit": PAGE_SIZE, "skip": skip},
            headers={"Authorization": f"Bearer {self.config.access_token}"},
        )
        if response.status_code >= 400:
            logger.error(f"Error response: {response.text}")
        response.raise_for_status()

        data: EntriesResponseDict = response.json()
        return data

    async def get_all_entries(self, content_type: str) -> list[EntryDict]:
        """Get all entries of a content type, following pagination."""
        entries: list[EntryDict] = []
        skip = 0
        while True:
            page = await self.get_entries(content_type, skip)
            items = page.get("items", [])
            entries.extend(items)
            skip += len(items)
            if not items or skip >= page.get("total", 0):
                break

        logger.info(f"Fetched {len(entries)} {content_type} entries")
        return entries

    async def fetch_metadata(self) -> MetadataIndex:
        """Fetch the documentation metadata index."""
        entries = await self.get_all_entries(self.config.content_type)
        return MetadataIndex.from_entries(entries)
