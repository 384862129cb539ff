"""Object store gateway interface.

The gateway is the only layer that talks to the storage backend. Each
logical operation maps onto one backend call, and backend failures are
translated into the resource storage error taxonomy where they occur.

Implementations:
- S3ObjectStoreGateway: AWS S3 and S3-compatible services (production)
- FilesystemObjectStoreGateway: local directory tree (dev/test)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import timedelta

from resource_storage.models import ListPage, ResourceContent

# SigV4 presigned requests are valid for at most 7 days
MAX_PRESIGN_TTL = timedelta(days=7)

# Kept below the ceiling to tolerate clock skew between signer and consumer
PRESIGN_SAFETY_MARGIN = timedelta(days=1)


def clamp_presign_ttl(ttl: timedelta | None) -> timedelta:
    """Clamp a requested link lifetime to what the backend can sign.

    Args:
        ttl: Requested lifetime. None requests the longest allowed lifetime.

    Returns:
        ``ttl`` capped at MAX_PRESIGN_TTL - PRESIGN_SAFETY_MARGIN.

    Raises:
        ValueError: If ``ttl`` is zero or negative.
    """
    ceiling = MAX_PRESIGN_TTL - PRESIGN_SAFETY_MARGIN
    if ttl is None:
        return ceiling
    if ttl <= timedelta(0):
        raise ValueError(f"ttl must be positive, got {ttl}")
    return min(ttl, ceiling)


class ObjectStoreGateway(ABC):
    """Abstract base class for object store backends.

    All operations are synchronous and block on backend I/O. No operation
    retries; backend failures surface as StorageUnavailableError.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for logs and spans (e.g., "s3")."""
        ...

    @abstractmethod
    def list_page(self, prefix: str, continuation_token: str | None = None) -> ListPage:
        """Return one page of objects whose keys start with ``prefix``.

        Args:
            prefix: Key prefix to list under.
            continuation_token: Token from the previous page, or None for the
                first page.

        Returns:
            ListPage whose ``next_token`` is None once the listing is
            exhausted. Every object is returned exactly once across a full
            run, assuming no concurrent mutation.

        Raises:
            StorageUnavailableError: If the backend cannot complete the listing.
        """
        ...

    @abstractmethod
    def get(self, key: str) -> ResourceContent:
        """Open an object for reading.

        Returns:
            ResourceContent whose body the caller must close.

        Raises:
            ResourceNotFoundError: If the key does not exist.
            StorageUnavailableError: If the backend cannot complete the read.
        """
        ...

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Write an object, overwriting any existing value.

        Raises:
            StorageUnavailableError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete an object. Deleting an absent key is a no-op.

        Raises:
            StorageUnavailableError: If the backend cannot complete the deletion.
        """
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Return True if an object is stored under ``key``.

        Raises:
            StorageUnavailableError: If the backend cannot answer.
        """
        ...

    @abstractmethod
    def presign(self, key: str, ttl: timedelta | None = None) -> str:
        """Issue a time-limited, credential-free read URL for ``key``.

        The object is not checked for existence. ``ttl`` is clamped with
        clamp_presign_ttl.

        Raises:
            StorageUnavailableError: If the URL cannot be signed.
        """
        ...

    @abstractmethod
    def copy(self, source_key: str, dest_key: str) -> None:
        """Copy an object server-side, overwriting the destination.

        Raises:
            ResourceNotFoundError: If the source does not exist.
            StorageUnavailableError: If the backend cannot complete the copy.
        """
        ...

    def delete_many(self, keys: Iterable[str]) -> int:
        """Delete several objects. Absent keys are ignored.

        Returns:
            Number of keys submitted for deletion.
        """
        count = 0
        for key in keys:
            self.delete(key)
            count += 1
        return count
