"""Resource store: the resource lifecycle over an object store gateway.

ResourceStore is a stateless facade. It resolves owner-scoped names to keys
with a PrefixCodec, delegates to the gateway and lets gateway errors reach
the caller unchanged. The only translation it performs is turning a missing
object on read into ``None``.

Conditional writes are check-then-write and not atomic: two concurrent
creates of the same key can both pass the existence check, and the last
write wins at the backend. Callers needing strict exclusivity must
coordinate outside the store.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable
from datetime import timedelta
from typing import BinaryIO

from resource_storage.errors import (
    MalformedContentError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from resource_storage.gateway import ObjectStoreGateway
from resource_storage.models import ContentFileType, FileItem, ObjectSummary, ResourceContent
from resource_storage.pagination import ListingPaginator
from resource_storage.prefix import DELIMITER, NamespacePrefixCodec, PrefixCodec
from resource_storage.resolver import ResourceStorageResolver

logger = logging.getLogger(__name__)


def decode_base64_payload(payload: str, *, key: str | None = None) -> bytes:
    """Decode base64 text, accepting a data URL such as ``data:image/png;base64,...``.

    Everything up to the first comma is discarded; whitespace is ignored and
    missing padding is restored.

    Raises:
        MalformedContentError: If the payload is not valid base64.
    """
    encoded = "".join(payload[payload.find(",") + 1 :].split())
    encoded += "=" * (-len(encoded) % 4)
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedContentError(
            message=f"Invalid base64 payload: {e}",
            key=key,
            cause=e,
        ) from e


def _join_path(*parts: str | None) -> str:
    return DELIMITER.join(p.strip(DELIMITER) for p in parts if p and p.strip(DELIMITER))


class ResourceStore(ResourceStorageResolver):
    """Stores, fetches, lists and deletes resources under emulated folders.

    Example:
        >>> store = ResourceStore(gateway, NamespacePrefixCodec("venues"))
        >>> store.put("report.pdf", data, "application/pdf", owner_id=42)
        >>> store.list_names(42)
        ['report.pdf']
    """

    def __init__(
        self,
        gateway: ObjectStoreGateway,
        codec: PrefixCodec | None = None,
    ) -> None:
        self._gateway = gateway
        self._codec = codec if codec is not None else NamespacePrefixCodec()
        self._paginator = ListingPaginator(gateway)

    @property
    def gateway(self) -> ObjectStoreGateway:
        return self._gateway

    @property
    def codec(self) -> PrefixCodec:
        return self._codec

    def resolve_key(self, name: str, owner_id: int | None = None) -> str:
        """Return the full key for ``name``, scoped to ``owner_id`` when given."""
        if owner_id is None:
            return name
        return self._codec.join(owner_id, name)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def exists(self, name: str, *, owner_id: int | None = None) -> bool:
        return self._gateway.exists(self.resolve_key(name, owner_id))

    def get(self, name: str, *, owner_id: int | None = None) -> ResourceContent | None:
        key = self.resolve_key(name, owner_id)
        try:
            return self._gateway.get(key)
        except ResourceNotFoundError:
            logger.debug("Resource not found: key=%s", key)
            return None

    def _create(
        self,
        key: str,
        owner_id: int | None,
        content_type: str | None,
        load: Callable[[], bytes],
    ) -> bool:
        if self._gateway.exists(key):
            raise ResourceAlreadyExistsError(key=key, owner_id=owner_id)

        try:
            payload = load()
        except MalformedContentError as e:
            logger.warning(
                "Skipping write, failed to get the content of key=%s: %s", key, e.message
            )
            return False

        self._gateway.put(key, payload, content_type)
        return True

    def put(
        self,
        name: str,
        data: bytes | BinaryIO,
        content_type: str | None,
        *,
        owner_id: int | None = None,
    ) -> bool:
        key = self.resolve_key(name, owner_id)

        def load() -> bytes:
            if isinstance(data, (bytes, bytearray, memoryview)):
                return bytes(data)
            try:
                payload = data.read()
            except (OSError, ValueError) as e:
                raise MalformedContentError(
                    message=f"Failed to read stream: {e}", key=key, cause=e
                ) from e
            if not isinstance(payload, bytes):
                raise TypeError(f"stream must yield bytes, got {type(payload).__name__}")
            return payload

        return self._create(key, owner_id, content_type, load)

    def put_base64(
        self,
        name: str,
        payload: str,
        content_type: str | None,
        *,
        owner_id: int | None = None,
    ) -> bool:
        key = self.resolve_key(name, owner_id)
        return self._create(
            key, owner_id, content_type, lambda: decode_base64_payload(payload, key=key)
        )

    def store_marker(self, name: str, *, owner_id: int | None = None) -> bool:
        return self.put(name, b"", None, owner_id=owner_id)

    def delete(self, name: str, *, owner_id: int | None = None) -> None:
        self._gateway.delete(self.resolve_key(name, owner_id))

    def delete_resources_in_directory(self, prefix: str) -> int:
        if not prefix:
            raise ValueError("prefix must not be empty")
        keys = [summary.key for summary in self._paginator.list_all(prefix)]
        if not keys:
            return 0
        deleted = self._gateway.delete_many(keys)
        logger.info("Deleted %d resources under prefix=%s", deleted, prefix)
        return deleted

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------
    def list_summaries(self, owner_id: int) -> list[ObjectSummary]:
        """Return summaries of every object in the owner's namespace."""
        return self._paginator.list_all(self._codec.prefix(owner_id))

    def list_summaries_by_prefix(self, prefix: str) -> list[ObjectSummary]:
        """Return summaries of every object under a raw key prefix."""
        return self._paginator.list_all(prefix)

    def list_names(self, owner_id: int) -> list[str]:
        """Return the owner's resource names with the owner prefix removed."""
        return [
            self._codec.strip(owner_id, summary.key) for summary in self.list_summaries(owner_id)
        ]

    def get_summarized_resources(self, path: str) -> list[FileItem]:
        if path and not path.endswith(DELIMITER):
            path += DELIMITER
        items = []
        for summary in self._paginator.list_all(path):
            name = summary.key[len(path) :] if summary.key.startswith(path) else summary.key
            if not name:
                # the directory marker itself
                continue
            items.append(
                FileItem(
                    name=name,
                    key=summary.key,
                    size_bytes=summary.size_bytes,
                    last_modified=summary.last_modified,
                )
            )
        return items

    def get_resources_summary(
        self, content_type: ContentFileType, directory: str
    ) -> list[FileItem]:
        prefix = self.construct_relative_path(content_type, directory)
        return self.get_summarized_resources(prefix)

    # ------------------------------------------------------------------
    # Paths, copies and links
    # ------------------------------------------------------------------
    def construct_relative_path(self, content_type: ContentFileType, path: str) -> str:
        return _join_path(content_type.directory, path)

    def construct_relative_path_with_file_name(
        self,
        content_type: ContentFileType,
        name: str,
        sub_dir: str | None = None,
    ) -> str:
        if not name.strip(DELIMITER):
            raise ValueError("name must not be empty")
        return _join_path(content_type.directory, sub_dir, name)

    def copy_resource(self, content_type: ContentFileType, source: str, dest: str) -> None:
        source_key = self.construct_relative_path(content_type, source)
        dest_key = self.construct_relative_path(content_type, dest)
        if self._gateway.exists(dest_key):
            raise ResourceAlreadyExistsError(key=dest_key)
        self._gateway.copy(source_key, dest_key)

    def shareable_url(
        self,
        name: str,
        *,
        owner_id: int | None = None,
        ttl: timedelta | None = None,
    ) -> str:
        """Return a presigned read URL; ``ttl`` is clamped to the backend limit."""
        return self._gateway.presign(self.resolve_key(name, owner_id), ttl)

    def get_resource_url(
        self,
        name: str,
        *,
        owner_id: int | None = None,
        ttl: timedelta | None = None,
    ) -> str:
        return self.shareable_url(name, owner_id=owner_id, ttl=ttl)
