"""Resource storage resolver interface.

The capability surface every storage variant offers to application code.
Whatever the backend, implementations share three rules:

- creating a resource fails with ResourceAlreadyExistsError if it exists
- deleting a resource is idempotent
- reading a missing resource returns None rather than raising

Methods that take a resource ``name`` also accept ``owner_id``; when it is
given, ``name`` is relative to the owner's namespace.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import BinaryIO

from resource_storage.models import ContentFileType, FileItem, ResourceContent


class ResourceStorageResolver(ABC):
    """Abstract base class for resource storage variants."""

    @abstractmethod
    def exists(self, name: str, *, owner_id: int | None = None) -> bool:
        """Check whether a resource is stored.

        Args:
            name: Full key, or a name relative to the owner's namespace.
            owner_id: Owner whose namespace ``name`` is relative to.

        Returns:
            True if the resource exists, False otherwise.

        Raises:
            StorageUnavailableError: If the backend cannot answer.
        """
        ...

    @abstractmethod
    def get(self, name: str, *, owner_id: int | None = None) -> ResourceContent | None:
        """Open a resource for reading.

        Args:
            name: Full key, or a name relative to the owner's namespace.
            owner_id: Owner whose namespace ``name`` is relative to.

        Returns:
            ResourceContent whose body the caller must close, or None if
            the resource does not exist.

        Raises:
            StorageUnavailableError: If the backend cannot complete the read.
        """
        ...

    @abstractmethod
    def put(
        self,
        name: str,
        data: bytes | BinaryIO,
        content_type: str | None,
        *,
        owner_id: int | None = None,
    ) -> bool:
        """Create a resource from bytes or a binary stream.

        Args:
            name: Full key, or a name relative to the owner's namespace.
            data: Content as bytes, or a stream read to its end.
            content_type: MIME type stored with the content.
            owner_id: Owner whose namespace ``name`` is relative to.

        Returns:
            True if written, False if the stream could not be read.

        Raises:
            ResourceAlreadyExistsError: If the resource already exists.
            StorageUnavailableError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def put_base64(
        self,
        name: str,
        payload: str,
        content_type: str | None,
        *,
        owner_id: int | None = None,
    ) -> bool:
        """Create a resource from base64 text or a base64 data URL.

        Args:
            name: Full key, or a name relative to the owner's namespace.
            payload: Base64 text, optionally prefixed ``data:<mime>;base64,``.
            content_type: MIME type stored with the content.
            owner_id: Owner whose namespace ``name`` is relative to.

        Returns:
            True if written, False if the payload could not be decoded.

        Raises:
            ResourceAlreadyExistsError: If the resource already exists.
            StorageUnavailableError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def store_marker(self, name: str, *, owner_id: int | None = None) -> bool:
        """Create an empty resource, e.g. to mark a folder.

        Returns:
            True once the marker is written.

        Raises:
            ResourceAlreadyExistsError: If the resource already exists.
            StorageUnavailableError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def delete(self, name: str, *, owner_id: int | None = None) -> None:
        """Delete a resource. Missing resources are ignored.

        Raises:
            StorageUnavailableError: If the backend cannot complete the deletion.
        """
        ...

    @abstractmethod
    def delete_resources_in_directory(self, prefix: str) -> int:
        """Delete every resource whose key starts with ``prefix``.

        Args:
            prefix: Raw key prefix; must not be empty.

        Returns:
            Number of resources deleted.

        Raises:
            ValueError: If ``prefix`` is empty.
            StorageUnavailableError: If listing or deletion fails.
        """
        ...

    @abstractmethod
    def copy_resource(self, content_type: ContentFileType, source: str, dest: str) -> None:
        """Copy a resource within a content family's directory.

        Args:
            content_type: Content family whose directory holds both paths.
            source: Path of the existing resource inside the family directory.
            dest: Path of the new resource inside the family directory.

        Raises:
            ResourceNotFoundError: If the source does not exist.
            ResourceAlreadyExistsError: If the destination already exists.
            StorageUnavailableError: If the backend cannot complete the copy.
        """
        ...

    @abstractmethod
    def get_resources_summary(
        self, content_type: ContentFileType, directory: str
    ) -> list[FileItem]:
        """Summarize the files in a directory of a content family.

        Returns:
            One FileItem per file, named relative to the directory. The
            directory marker itself is not included.

        Raises:
            StorageUnavailableError: If the listing fails.
        """
        ...

    @abstractmethod
    def get_summarized_resources(self, path: str) -> list[FileItem]:
        """Summarize the files under a directory key.

        Args:
            path: Directory key; a trailing ``/`` is added when missing, so
                sibling directories sharing the name as a prefix are excluded.

        Returns:
            One FileItem per file, named relative to ``path``.

        Raises:
            StorageUnavailableError: If the listing fails.
        """
        ...

    @abstractmethod
    def construct_relative_path(self, content_type: ContentFileType, path: str) -> str:
        """Return the key of ``path`` inside a content family's directory."""
        ...

    @abstractmethod
    def construct_relative_path_with_file_name(
        self,
        content_type: ContentFileType,
        name: str,
        sub_dir: str | None = None,
    ) -> str:
        """Return the key of a file inside a content family's directory.

        Args:
            content_type: Content family.
            name: File name.
            sub_dir: Optional sub-directory between the family directory and
                the file name.

        Raises:
            ValueError: If ``name`` is empty.
        """
        ...

    @abstractmethod
    def get_resource_url(
        self,
        name: str,
        *,
        owner_id: int | None = None,
        ttl: timedelta | None = None,
    ) -> str:
        """Return a time-limited URL granting read access to the resource.

        Args:
            name: Full key, or a name relative to the owner's namespace.
            owner_id: Owner whose namespace ``name`` is relative to.
            ttl: Requested lifetime, clamped to the backend maximum. None
                requests the longest allowed lifetime.

        Raises:
            ValueError: If ``ttl`` is zero or negative.
            StorageUnavailableError: If the URL cannot be signed.
        """
        ...
