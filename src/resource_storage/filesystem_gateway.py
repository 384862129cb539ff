"""Filesystem object store gateway.

Local stand-in for the object store, used in development and tests. It
keeps the flat key space of the real backend:

    {base_dir}/{safe_key}_{key_hash}/
        content.data    # object bytes
        meta.json       # key, size, content type, last modified, sha256

Listings are lexicographic by key; the continuation token is the last key
of the previous page.

Environment Variables:
    RESOURCE_STORAGE_BASE_DIR: Base directory for storage
        (default: tempfile.gettempdir() / resource_storage)
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import shutil
import tempfile
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path
from urllib.parse import urlencode

from resource_storage.config import BASE_DIR_ENV
from resource_storage.errors import (
    PathTraversalError,
    ResourceNotFoundError,
    StorageUnavailableError,
)
from resource_storage.gateway import ObjectStoreGateway, clamp_presign_ttl
from resource_storage.models import ListPage, ObjectSummary, ResourceContent
from resource_storage.tracing import traced_gateway_operation

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000

_CONTENT_FILE = "content.data"
_METADATA_FILE = "meta.json"


def _is_path_traversal(key: str) -> bool:
    """Check if a key contains path traversal sequences.

    Detects empty keys, null bytes, backslashes, absolute paths, drive
    letters, ".." segments and control characters. Any other character is
    allowed; the object directory name is sanitized separately.
    """
    if not key:
        return True
    if "\x00" in key or "\\" in key:
        return True
    if key.startswith("/") or key.startswith("~"):
        return True
    if len(key) >= 2 and key[1] == ":":
        return True
    if any(segment == ".." for segment in key.split("/")):
        return True
    return not key.isprintable()


def _validate_key(key: str) -> None:
    """Validate object key and raise if unsafe."""
    if _is_path_traversal(key):
        raise PathTraversalError(
            message="Invalid key: path traversal detected",
            key=key,
        )


class FilesystemObjectStoreGateway(ObjectStoreGateway):
    """Filesystem-based gateway implementation.

    Object directories are named from a sanitised key plus a hash of the
    key, so nested keys never collide with directories of other keys.
    """

    def __init__(
        self,
        base_dir: str | Path | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize filesystem storage.

        Args:
            base_dir: Base directory for storage. If None, uses
                RESOURCE_STORAGE_BASE_DIR or the OS temp directory.
            page_size: Maximum number of summaries per listing page.
        """
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")

        if base_dir is None:
            base_dir = os.environ.get(BASE_DIR_ENV) or None

        if base_dir is None:
            base_dir = Path(tempfile.gettempdir()) / "resource_storage"
        else:
            base_dir = Path(base_dir)

        self._base_dir = base_dir.resolve()
        self._page_size = page_size
        logger.debug("FilesystemObjectStoreGateway initialized with base_dir=%s", self._base_dir)

    @property
    def backend_name(self) -> str:
        return "filesystem"

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _object_dir(self, key: str) -> Path:
        _validate_key(key)
        key_hash = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        safe_key = re.sub(r"[^a-zA-Z0-9_\-]", "_", key)[:64]
        obj_dir = self._base_dir / f"{safe_key}_{key_hash}"
        try:
            obj_dir.resolve().relative_to(self._base_dir)
        except ValueError as e:
            raise PathTraversalError(
                message="Path resolves outside storage base directory",
                key=key,
            ) from e
        return obj_dir

    def _unavailable(self, operation: str, key: str, error: OSError) -> StorageUnavailableError:
        logger.error("Filesystem %s failed: key=%s error=%s", operation, key, error)
        return StorageUnavailableError(
            message=f"Filesystem {operation} failed: {error}",
            key=key,
            cause=error,
        )

    def _write_atomic(self, target: Path, data: bytes) -> None:
        tmp_file = target.with_name(f"{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp_file.write_bytes(data)
            tmp_file.replace(target)
        except OSError:
            tmp_file.unlink(missing_ok=True)
            raise

    def _read_metadata(self, obj_dir: Path) -> dict[str, object] | None:
        meta_file = obj_dir / _METADATA_FILE
        try:
            return json.loads(meta_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read metadata %s: %s", meta_file.name, e)
            return None

    def _iter_summaries(self) -> list[ObjectSummary]:
        summaries: list[ObjectSummary] = []
        if not self._base_dir.exists():
            return summaries
        for obj_dir in self._base_dir.iterdir():
            if not obj_dir.is_dir():
                continue
            meta = self._read_metadata(obj_dir)
            if meta is None:
                continue
            summaries.append(
                ObjectSummary(
                    key=str(meta["key"]),
                    size_bytes=int(meta["size_bytes"]),  # type: ignore[arg-type]
                    last_modified=datetime.fromisoformat(str(meta["last_modified"])),
                    etag=str(meta["sha256"]) if meta.get("sha256") else None,
                )
            )
        return summaries

    @traced_gateway_operation("list_page")
    def list_page(self, prefix: str, continuation_token: str | None = None) -> ListPage:
        try:
            matching = sorted(
                (s for s in self._iter_summaries() if s.key.startswith(prefix)),
                key=lambda s: s.key,
            )
        except OSError as e:
            raise self._unavailable("list", prefix, e) from e

        if continuation_token is not None:
            matching = [s for s in matching if s.key > continuation_token]

        page = matching[: self._page_size]
        next_token = page[-1].key if len(matching) > self._page_size else None
        return ListPage(summaries=page, next_token=next_token)

    @traced_gateway_operation("get")
    def get(self, key: str) -> ResourceContent:
        obj_dir = self._object_dir(key)
        meta = self._read_metadata(obj_dir)
        if meta is None:
            raise ResourceNotFoundError(key=key)

        try:
            body = (obj_dir / _CONTENT_FILE).open("rb")
        except FileNotFoundError as e:
            raise ResourceNotFoundError(message="Resource content not found", key=key) from e
        except OSError as e:
            raise self._unavailable("get", key, e) from e

        content_type = meta.get("content_type")
        return ResourceContent(
            key=key,
            content_type=str(content_type) if content_type else None,
            body=body,
            size_bytes=int(meta["size_bytes"]),  # type: ignore[arg-type]
        )

    @traced_gateway_operation("put")
    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        obj_dir = self._object_dir(key)
        metadata = {
            "key": key,
            "size_bytes": len(data),
            "content_type": content_type,
            "last_modified": datetime.now(UTC).isoformat(),
            "sha256": hashlib.sha256(data).hexdigest(),
        }

        try:
            obj_dir.mkdir(parents=True, exist_ok=True)
            self._write_atomic(obj_dir / _CONTENT_FILE, data)
            self._write_atomic(
                obj_dir / _METADATA_FILE,
                json.dumps(metadata, indent=2).encode("utf-8"),
            )
        except OSError as e:
            raise self._unavailable("put", key, e) from e

        logger.debug("Stored object: key=%s size=%d", key, len(data))

    @traced_gateway_operation("delete")
    def delete(self, key: str) -> None:
        obj_dir = self._object_dir(key)
        try:
            shutil.rmtree(obj_dir)
        except FileNotFoundError:
            return
        except OSError as e:
            raise self._unavailable("delete", key, e) from e

        logger.debug("Deleted object: key=%s", key)

    @traced_gateway_operation("exists")
    def exists(self, key: str) -> bool:
        obj_dir = self._object_dir(key)
        return (obj_dir / _METADATA_FILE).is_file()

    @traced_gateway_operation("presign")
    def presign(self, key: str, ttl: timedelta | None = None) -> str:
        """Return a ``file://`` URI carrying an ``expires`` timestamp.

        The expiry is informational; nothing enforces it on local files.
        """
        expires_at = datetime.now(UTC) + clamp_presign_ttl(ttl)
        uri = (self._object_dir(key) / _CONTENT_FILE).as_uri()
        return f"{uri}?{urlencode({'expires': int(expires_at.timestamp())})}"

    @traced_gateway_operation("copy")
    def copy(self, source_key: str, dest_key: str) -> None:
        source = self.get(source_key)
        with source:
            try:
                data = source.read()
            except OSError as e:
                raise self._unavailable("copy", source_key, e) from e
        self.put(dest_key, data, source.content_type)
