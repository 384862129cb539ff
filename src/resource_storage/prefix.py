"""Owner-scoped key prefixes.

The object store has a flat key space; folders are emulated by key prefixes
that end with the ``/`` delimiter. A codec maps an owner identifier (venue,
organization, catalog, ...) onto exactly one prefix, so that two owners never
share or nest each other's prefix.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod

DELIMITER = "/"

MAX_OWNER_ID = 2**64 - 1


def _validate_owner_id(owner_id: int) -> None:
    if isinstance(owner_id, bool) or not isinstance(owner_id, int):
        raise TypeError(f"owner_id must be an int, got {type(owner_id).__name__}")
    if owner_id < 0 or owner_id > MAX_OWNER_ID:
        raise ValueError(f"owner_id out of range: {owner_id}")


def _normalize_namespace(namespace: str) -> str:
    """Strip surrounding delimiters and reject empty inner segments."""
    stripped = namespace.strip(DELIMITER)
    if not stripped:
        return ""
    if any(not segment for segment in stripped.split(DELIMITER)):
        raise ValueError(f"namespace contains an empty segment: {namespace!r}")
    return stripped + DELIMITER


class PrefixCodec(ABC):
    """Derives folder-emulating prefixes from owner identifiers.

    Subclasses only decide how ``prefix`` is formatted; it must be injective
    across owner ids and end with the delimiter.
    """

    @abstractmethod
    def prefix(self, owner_id: int) -> str:
        """Return the namespace prefix for an owner, ending with ``/``."""
        ...

    def join(self, owner_id: int, name: str) -> str:
        """Return the full key of ``name`` inside the owner's namespace."""
        return self.prefix(owner_id) + name

    def strip(self, owner_id: int, key: str) -> str:
        """Remove the owner's prefix from the start of ``key``.

        Keys that do not start with the prefix are returned unchanged.
        """
        owner_prefix = self.prefix(owner_id)
        if key.startswith(owner_prefix):
            return key[len(owner_prefix) :]
        return key


class NamespacePrefixCodec(PrefixCodec):
    """Formats prefixes as ``{namespace}/{owner_id}/``."""

    def __init__(self, namespace: str = "") -> None:
        self._namespace = _normalize_namespace(namespace)

    @property
    def namespace(self) -> str:
        return self._namespace

    def prefix(self, owner_id: int) -> str:
        _validate_owner_id(owner_id)
        return f"{self._namespace}{owner_id}{DELIMITER}"

    def __repr__(self) -> str:
        return f"NamespacePrefixCodec(namespace={self._namespace!r})"


class ShardedPrefixCodec(PrefixCodec):
    """Formats prefixes as ``{namespace}/{shard}/{owner_id}/``.

    The shard is the leading hex characters of the SHA-256 of the decimal
    owner id, spreading owners over key-space partitions. The owner id stays
    verbatim in the prefix, so the mapping remains injective.
    """

    def __init__(self, namespace: str = "", shard_chars: int = 2) -> None:
        if not 1 <= shard_chars <= 64:
            raise ValueError(f"shard_chars must be between 1 and 64, got {shard_chars}")
        self._namespace = _normalize_namespace(namespace)
        self._shard_chars = shard_chars

    def shard(self, owner_id: int) -> str:
        digest = hashlib.sha256(str(owner_id).encode("ascii")).hexdigest()
        return digest[: self._shard_chars]

    def prefix(self, owner_id: int) -> str:
        _validate_owner_id(owner_id)
        return f"{self._namespace}{self.shard(owner_id)}{DELIMITER}{owner_id}{DELIMITER}"

    def __repr__(self) -> str:
        return (
            f"ShardedPrefixCodec(namespace={self._namespace!r}, "
            f"shard_chars={self._shard_chars})"
        )
