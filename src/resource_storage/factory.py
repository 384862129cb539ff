"""Configuration-time selection of gateway, codec and store.

The backend client is created here exactly once per call and handed to the
gateway; callers keep the returned store for the life of the process.
"""

from __future__ import annotations

import logging

from resource_storage.config import StorageSettings
from resource_storage.gateway import ObjectStoreGateway
from resource_storage.prefix import NamespacePrefixCodec, PrefixCodec, ShardedPrefixCodec
from resource_storage.store import ResourceStore

logger = logging.getLogger(__name__)


def build_gateway(settings: StorageSettings) -> ObjectStoreGateway:
    """Create the gateway selected by ``settings.backend``."""
    settings.validate()

    if settings.backend == "filesystem":
        from resource_storage.filesystem_gateway import FilesystemObjectStoreGateway

        return FilesystemObjectStoreGateway(base_dir=settings.base_dir)

    from resource_storage.s3_gateway import S3ObjectStoreGateway, create_s3_client

    return S3ObjectStoreGateway(create_s3_client(settings), settings.bucket)


def build_codec(settings: StorageSettings) -> PrefixCodec:
    """Create the prefix codec selected by ``settings.prefix_strategy``."""
    if settings.prefix_strategy == "sharded":
        return ShardedPrefixCodec(settings.namespace)
    return NamespacePrefixCodec(settings.namespace)


def build_resource_store(settings: StorageSettings | None = None) -> ResourceStore:
    """Create a ResourceStore from settings, reading the environment when omitted."""
    if settings is None:
        settings = StorageSettings.from_env()

    gateway = build_gateway(settings)
    codec = build_codec(settings)
    logger.info(
        "Resource store ready: backend=%s codec=%r",
        gateway.backend_name,
        codec,
    )
    return ResourceStore(gateway, codec)
