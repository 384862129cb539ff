"""Pytest configuration and fixtures for resource storage tests.

Provides an isolated environment, a filesystem gateway rooted in a temp
directory and a paging in-memory gateway for listing and failure tests.
"""

from __future__ import annotations

import io
import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from resource_storage.errors import ResourceNotFoundError, StorageUnavailableError
from resource_storage.filesystem_gateway import FilesystemObjectStoreGateway
from resource_storage.gateway import ObjectStoreGateway, clamp_presign_ttl
from resource_storage.models import ListPage, ObjectSummary, ResourceContent
from resource_storage.prefix import NamespacePrefixCodec
from resource_storage.store import ResourceStore


class InMemoryGateway(ObjectStoreGateway):
    """Dict-backed gateway with a fixed page size and call accounting."""

    def __init__(self, page_size: int = 100) -> None:
        self.page_size = page_size
        self.objects: dict[str, tuple[bytes, str | None, datetime]] = {}
        self.list_calls: list[tuple[str, str | None]] = []
        self.put_calls: list[str] = []
        self.failing: set[str] = set()

    @property
    def backend_name(self) -> str:
        return "memory"

    def _check(self, operation: str, key: str) -> None:
        if operation in self.failing:
            raise StorageUnavailableError(message=f"memory {operation} failed", key=key)

    def list_page(self, prefix: str, continuation_token: str | None = None) -> ListPage:
        self._check("list", prefix)
        self.list_calls.append((prefix, continuation_token))
        keys = sorted(k for k in self.objects if k.startswith(prefix))
        offset = int(continuation_token) if continuation_token else 0
        page_keys = keys[offset : offset + self.page_size]
        summaries = []
        for k in page_keys:
            data, _, modified = self.objects[k]
            summaries.append(ObjectSummary(key=k, size_bytes=len(data), last_modified=modified))
        end = offset + self.page_size
        return ListPage(summaries=summaries, next_token=str(end) if end < len(keys) else None)

    def get(self, key: str) -> ResourceContent:
        self._check("get", key)
        if key not in self.objects:
            raise ResourceNotFoundError(key=key)
        data, content_type, _ = self.objects[key]
        return ResourceContent(
            key=key, content_type=content_type, body=io.BytesIO(data), size_bytes=len(data)
        )

    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        self._check("put", key)
        self.put_calls.append(key)
        self.objects[key] = (data, content_type, datetime.now(UTC))

    def delete(self, key: str) -> None:
        self._check("delete", key)
        self.objects.pop(key, None)

    def exists(self, key: str) -> bool:
        self._check("exists", key)
        return key in self.objects

    def presign(self, key: str, ttl: timedelta | None = None) -> str:
        seconds = int(clamp_presign_ttl(ttl).total_seconds())
        return f"https://memory.invalid/{key}?expires_in={seconds}"

    def copy(self, source_key: str, dest_key: str) -> None:
        self._check("copy", source_key)
        if source_key not in self.objects:
            raise ResourceNotFoundError(key=source_key)
        data, content_type, _ = self.objects[source_key]
        self.objects[dest_key] = (data, content_type, datetime.now(UTC))


@pytest.fixture(autouse=True)
def clean_storage_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove RESOURCE_STORAGE_* variables so tests never see host settings."""
    for key in list(os.environ):
        if key.startswith("RESOURCE_STORAGE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_storage_dir(tmp_path: Path) -> Path:
    """Return a fresh directory for filesystem storage."""
    storage_dir = tmp_path / "objects"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def fs_gateway(temp_storage_dir: Path) -> FilesystemObjectStoreGateway:
    """Create a FilesystemObjectStoreGateway with a temp directory."""
    return FilesystemObjectStoreGateway(base_dir=temp_storage_dir)


@pytest.fixture
def memory_gateway() -> InMemoryGateway:
    """Create an in-memory gateway with pages of 100 objects."""
    return InMemoryGateway(page_size=100)


@pytest.fixture
def make_memory_gateway() -> Callable[[int], InMemoryGateway]:
    """Return a factory for in-memory gateways with a chosen page size."""
    return lambda page_size: InMemoryGateway(page_size=page_size)


@pytest.fixture
def store(fs_gateway: FilesystemObjectStoreGateway) -> ResourceStore:
    """Create a ResourceStore over the filesystem gateway."""
    return ResourceStore(fs_gateway, NamespacePrefixCodec("venues"))


@pytest.fixture
def memory_store(memory_gateway: InMemoryGateway) -> ResourceStore:
    """Create a ResourceStore over the in-memory gateway."""
    return ResourceStore(memory_gateway, NamespacePrefixCodec("venues"))
