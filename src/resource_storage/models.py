"""Resource storage data models.

Typed dataclasses for listing metadata, listing pages, fetched content and
directory summaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import BinaryIO


@dataclass(frozen=True)
class ObjectSummary:
    """Listing metadata for one stored object.

    Attributes:
        key: Full namespace key of the object.
        size_bytes: Size of the object content in bytes.
        last_modified: Timestamp of the last write (timezone-aware).
        etag: Backend entity tag, if the backend reports one.
    """

    key: str
    size_bytes: int
    last_modified: datetime
    etag: str | None = None

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert summary to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "size_bytes": self.size_bytes,
            "last_modified": self.last_modified.isoformat(),
            "etag": self.etag,
        }


@dataclass(frozen=True)
class ListPage:
    """One page of a prefix listing.

    Attributes:
        summaries: Objects on this page.
        next_token: Continuation token for the next page, or None when the
            listing is exhausted.
    """

    summaries: list[ObjectSummary] = field(default_factory=list)
    next_token: str | None = None


@dataclass(frozen=True)
class ResourceContent:
    """A fetched resource: a single-pass byte stream plus its MIME type.

    The caller owns ``body`` and must close it, either explicitly or by
    using the content as a context manager.
    """

    key: str
    content_type: str | None
    body: BinaryIO
    size_bytes: int | None = None

    def read(self, amt: int | None = None) -> bytes:
        if amt is None:
            return self.body.read()
        return self.body.read(amt)

    def close(self) -> None:
        self.body.close()

    def __enter__(self) -> ResourceContent:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ContentFileType(str, Enum):
    """Content families, each rooted at its own top-level directory."""

    IMAGE = "images"
    DOCUMENT = "documents"
    XML = "xml"
    TEXT = "text"
    LOG = "logs"
    MISC = "misc"

    @property
    def directory(self) -> str:
        return self.value


@dataclass(frozen=True)
class FileItem:
    """One entry of a directory summary.

    Attributes:
        name: Name relative to the summarized directory.
        key: Full namespace key.
        size_bytes: Size of the object content in bytes.
        last_modified: Timestamp of the last write.
    """

    name: str
    key: str
    size_bytes: int
    last_modified: datetime

    def to_dict(self) -> dict[str, str | int]:
        """Convert item to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "key": self.key,
            "size_bytes": self.size_bytes,
            "last_modified": self.last_modified.isoformat(),
        }
