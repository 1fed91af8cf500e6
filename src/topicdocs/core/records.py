"""Content records read from article files.

Walks the content directory for markdown files, reads their front matter
and merges in path metadata from the metadata store. Directory metadata
sets the sort method and display title of a topic; file metadata
overrides an article's title and order.
"""

import asyncio
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import yaml

from topicdocs.contentful import MetadataIndex
from topicdocs.core.tree import humanize
from topicdocs.core.types import ContentRecord, SortMethod

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".mdx")

FRONT_MATTER_PATTERN = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)

H1_PATTERN = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)


class MetadataProvider(Protocol):
    """Source of path metadata (e.g., ContentfulClient)."""

    async def fetch_metadata(self) -> MetadataIndex: ...


class FrontMatterError(ValueError):
    """Raised when a file's front matter is not a YAML mapping."""


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from markdown text.

    Args:
        text: Raw file content

    Returns:
        Tuple of (front matter mapping, body)

    Raises:
        FrontMatterError: If front matter is present but invalid
    """
    match = FRONT_MATTER_PATTERN.match(text)
    if match is None:
        return {}, text

    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid front matter: {e}") from e
    if not isinstance(data, dict):
        raise FrontMatterError("Front matter must be a mapping")
    return data, text[match.end() :]


class FileRecordSource:
    """Record source backed by markdown files in a content directory."""

    def __init__(self, source_dir: Path, metadata: MetadataProvider | None = None) -> None:
        """Initialize record source.

        Args:
            source_dir: Content directory to walk
            metadata: Metadata provider, or None to use file data only
        """
        self._source_dir = source_dir
        self._metadata = metadata

    @property
    def source_dir(self) -> Path:
        """Content directory."""
        return self._source_dir

    async def fetch(self) -> list[ContentRecord]:
        """Read a complete snapshot of content records."""
        index = MetadataIndex()
        if self._metadata is not None:
            index = await self._metadata.fetch_metadata()
        # The walk reads every file, keep it off the event loop
        return await asyncio.to_thread(read_records, self._source_dir, index)


def read_records(source_dir: Path, index: MetadataIndex | None = None) -> list[ContentRecord]:
    """Read content records for all markdown files under source_dir.

    Files and directories starting with "." or "_" are skipped, as are
    files whose front matter cannot be parsed.

    Args:
        source_dir: Content directory
        index: Path metadata to merge

    Returns:
        Records ordered by relative file path
    """
    if not source_dir.is_dir():
        logger.warning(f"Content directory not found: {source_dir}")
        return []

    index = index or MetadataIndex()
    records: list[ContentRecord] = []
    for file_path in sorted(source_dir.rglob("*")):
        if file_path.suffix not in MARKDOWN_SUFFIXES or not file_path.is_file():
            continue
        relative = file_path.relative_to(source_dir)
        if any(part.startswith((".", "_")) for part in relative.parts):
            continue

        try:
            record = _read_record(file_path, relative, index)
        except (OSError, UnicodeDecodeError, FrontMatterError) as e:
            logger.warning(f"Skipping {relative}: {e}")
            continue
        records.append(record)

    logger.debug(f"Read {len(records)} records from {source_dir}")
    return records


def _read_record(file_path: Path, relative: Path, index: MetadataIndex) -> ContentRecord:
    text = file_path.read_text(encoding="utf-8")
    front_matter, body = split_front_matter(text)

    directory = relative.parent.as_posix()
    directory = "" if directory == "." else directory
    stem = relative.stem

    file_meta = index.get(f"{directory}/{stem}" if directory else stem)
    dir_meta = index.get(directory) if directory else None

    title = _first_str(
        file_meta.title if file_meta else None,
        front_matter.get("title"),
        _extract_h1(body),
    ) or humanize(stem if stem != "index" else (relative.parent.name or stem))

    order = file_meta.order if file_meta and file_meta.order is not None else _as_int(front_matter.get("order"))

    sort_method = SortMethod.MANUAL
    if dir_meta is not None and dir_meta.sort_method is not None:
        sort_method = dir_meta.sort_method
    elif "sortMethod" in front_matter:
        sort_method = SortMethod.parse(front_matter["sortMethod"])

    locale = front_matter.get("locale")
    return ContentRecord(
        directory_path=directory,
        file_name=stem,
        title=title,
        modified_time=datetime.fromtimestamp(file_path.stat().st_mtime, tz=UTC),
        order=order,
        sort_method=sort_method,
        locale=locale if isinstance(locale, str) else None,
        is_private=front_matter.get("private") is True,
        extension=relative.suffix,
        topic_title=dir_meta.title if dir_meta else None,
    )


def _extract_h1(body: str) -> str | None:
    match = H1_PATTERN.search(body)
    return match.group(1) if match else None


def _first_str(*values: object) -> str | None:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    return None
