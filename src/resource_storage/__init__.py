"""Resource storage on key-addressed object stores.

Stores, fetches, lists and deletes named byte blobs, emulating folders with
owner-derived key prefixes.

Gateways:
- S3ObjectStoreGateway: AWS S3 and S3-compatible services
- FilesystemObjectStoreGateway: local filesystem (dev/test)

Environment Variables:
    RESOURCE_STORAGE_BACKEND: "s3" or "filesystem" (default: "s3")
    See resource_storage.config for the full list.
"""

from resource_storage.config import StorageSettings
from resource_storage.errors import (
    MalformedContentError,
    PathTraversalError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    ResourceStorageError,
    StorageConfigError,
    StorageUnavailableError,
)
from resource_storage.factory import build_codec, build_gateway, build_resource_store
from resource_storage.gateway import ObjectStoreGateway, clamp_presign_ttl
from resource_storage.models import (
    ContentFileType,
    FileItem,
    ListPage,
    ObjectSummary,
    ResourceContent,
)
from resource_storage.pagination import ListingPaginator
from resource_storage.prefix import NamespacePrefixCodec, PrefixCodec, ShardedPrefixCodec
from resource_storage.resolver import ResourceStorageResolver
from resource_storage.store import ResourceStore

__all__ = [
    "ContentFileType",
    "FileItem",
    "ListPage",
    "ListingPaginator",
    "MalformedContentError",
    "NamespacePrefixCodec",
    "ObjectStoreGateway",
    "ObjectSummary",
    "PathTraversalError",
    "PrefixCodec",
    "ResourceAlreadyExistsError",
    "ResourceContent",
    "ResourceNotFoundError",
    "ResourceStorageError",
    "ResourceStorageResolver",
    "ResourceStore",
    "ShardedPrefixCodec",
    "StorageConfigError",
    "StorageSettings",
    "StorageUnavailableError",
    "build_codec",
    "build_gateway",
    "build_resource_store",
    "clamp_presign_ttl",
]
