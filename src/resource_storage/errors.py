"""Resource storage error types.

Every failure raised by a gateway or the resource store derives from
ResourceStorageError and carries the key (and owner, when known) it failed on.
Gateway errors propagate unchanged through the store; absence on reads is
reported as ``None`` by the store, never as a backend failure.
"""

from __future__ import annotations


class ResourceStorageError(Exception):
    """Base exception for resource storage operations.

    Attributes:
        message: Human-readable error message.
        key: Namespace key associated with the operation (if applicable).
        owner_id: Owner identifier associated with the operation (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        owner_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
        self.owner_id = owner_id

    def __str__(self) -> str:
        parts = [self.message]
        if self.owner_id is not None:
            parts.append(f"owner_id={self.owner_id}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class ResourceNotFoundError(ResourceStorageError):
    """Raised when a read targets a key that does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        *,
        key: str | None = None,
        owner_id: int | None = None,
    ) -> None:
        super().__init__(message, key=key, owner_id=owner_id)


class ResourceAlreadyExistsError(ResourceStorageError):
    """Raised when a conditional create targets an occupied key.

    Nothing is written when this is raised.
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        *,
        key: str | None = None,
        owner_id: int | None = None,
    ) -> None:
        super().__init__(message, key=key, owner_id=owner_id)


class StorageUnavailableError(ResourceStorageError):
    """Raised when the storage backend cannot complete an operation.

    Covers authentication failures, throttling, connectivity and any other
    service-side error. Never retried internally.
    """

    def __init__(
        self,
        message: str = "Storage backend unavailable",
        *,
        key: str | None = None,
        owner_id: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, key=key, owner_id=owner_id)
        self.cause = cause


class MalformedContentError(ResourceStorageError):
    """Raised when a write payload cannot be decoded or read.

    The resource store catches this, logs a warning and skips the write.
    """

    def __init__(
        self,
        message: str = "Malformed resource content",
        *,
        key: str | None = None,
        owner_id: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, key=key, owner_id=owner_id)
        self.cause = cause


class PathTraversalError(ResourceStorageError):
    """Raised when a key contains path traversal sequences.

    Only the filesystem gateway maps keys onto paths, so only it raises this.
    """

    def __init__(
        self,
        message: str = "Invalid key: path traversal detected",
        *,
        key: str | None = None,
        owner_id: int | None = None,
    ) -> None:
        super().__init__(message, key=key, owner_id=owner_id)


class StorageConfigError(ResourceStorageError):
    """Raised when storage settings are missing or invalid at build time."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
