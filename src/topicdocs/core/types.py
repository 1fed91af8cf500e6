"""Core type definitions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import NewType

# URL path for routing (e.g., "/docs/guide/", "/docs/")
# Distinct from directory paths to catch type mismatches
URLPath = NewType("URLPath", str)


class SortMethod(StrEnum):
    """How articles within one topic are ordered."""

    MANUAL = "manual"
    ALPHABETICAL = "alphabetical"
    BY_DATE = "byDate"

    @classmethod
    def parse(cls, value: object) -> "SortMethod":
        """Parse a sort method name, defaulting to manual for unknown values."""
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return cls.MANUAL


@dataclass(frozen=True)
class ContentRecord:
    """Metadata for one article file, as provided by the record source."""

    directory_path: str
    file_name: str
    title: str
    modified_time: datetime
    order: int | None = None
    sort_method: SortMethod = SortMethod.MANUAL
    locale: str | None = None
    is_private: bool = False
    extension: str = ".md"
    topic_title: str | None = None

    @property
    def relative_path(self) -> str:
        """Source file path relative to the content directory."""
        if not self.directory_path:
            return f"{self.file_name}{self.extension}"
        return f"{self.directory_path}/{self.file_name}{self.extension}"
