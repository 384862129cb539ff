"""Resource storage settings.

Settings are read from a key-value lookup with defaults. The default lookup
is the process environment; any ``(key, default) -> str`` callable works.

Environment Variables:
    RESOURCE_STORAGE_BACKEND: "s3" or "filesystem" (default: "s3")
    RESOURCE_STORAGE_S3_BUCKET: Bucket name (required for the s3 backend)
    RESOURCE_STORAGE_S3_REGION: Bucket region (default: "us-east-2")
    RESOURCE_STORAGE_S3_ACCESS_KEY_ID: Access key id (default: boto3 credential chain)
    RESOURCE_STORAGE_S3_SECRET_ACCESS_KEY: Secret key (default: boto3 credential chain)
    RESOURCE_STORAGE_S3_ENDPOINT_URL: Endpoint for S3-compatible services (optional)
    RESOURCE_STORAGE_S3_TIMEOUT_SECONDS: Connect/read timeout (default: 60)
    RESOURCE_STORAGE_BASE_DIR: Base directory for the filesystem backend
        (default: OS temp dir / resource_storage)
    RESOURCE_STORAGE_NAMESPACE: Leading namespace for owner prefixes (default: "")
    RESOURCE_STORAGE_PREFIX_STRATEGY: "namespace" or "sharded" (default: "namespace")
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field

from resource_storage.errors import StorageConfigError

ENV_PREFIX = "RESOURCE_STORAGE_"

BACKEND_ENV = "RESOURCE_STORAGE_BACKEND"
S3_BUCKET_ENV = "RESOURCE_STORAGE_S3_BUCKET"
S3_REGION_ENV = "RESOURCE_STORAGE_S3_REGION"
S3_ACCESS_KEY_ID_ENV = "RESOURCE_STORAGE_S3_ACCESS_KEY_ID"
S3_SECRET_ACCESS_KEY_ENV = "RESOURCE_STORAGE_S3_SECRET_ACCESS_KEY"
S3_ENDPOINT_URL_ENV = "RESOURCE_STORAGE_S3_ENDPOINT_URL"
S3_TIMEOUT_SECONDS_ENV = "RESOURCE_STORAGE_S3_TIMEOUT_SECONDS"
BASE_DIR_ENV = "RESOURCE_STORAGE_BASE_DIR"
NAMESPACE_ENV = "RESOURCE_STORAGE_NAMESPACE"
PREFIX_STRATEGY_ENV = "RESOURCE_STORAGE_PREFIX_STRATEGY"

DEFAULT_REGION = "us-east-2"
DEFAULT_TIMEOUT_SECONDS = 60.0

VALID_BACKENDS = frozenset({"s3", "filesystem"})
VALID_PREFIX_STRATEGIES = frozenset({"namespace", "sharded"})

Lookup = Callable[[str, str], str]


def env_lookup(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default).strip()


@dataclass(frozen=True)
class StorageSettings:
    """Settings for building a gateway, codec and store.

    Credentials are excluded from repr so they never reach logs.
    """

    backend: str = "s3"
    bucket: str = ""
    region: str = DEFAULT_REGION
    access_key_id: str = field(default="", repr=False)
    secret_access_key: str = field(default="", repr=False)
    endpoint_url: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    base_dir: str | None = None
    namespace: str = ""
    prefix_strategy: str = "namespace"

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    @classmethod
    def from_lookup(cls, lookup: Lookup) -> StorageSettings:
        """Build settings from a ``(key, default) -> str`` lookup."""
        backend = lookup(BACKEND_ENV, "s3").lower() or "s3"
        prefix_strategy = lookup(PREFIX_STRATEGY_ENV, "namespace").lower() or "namespace"

        timeout_raw = lookup(S3_TIMEOUT_SECONDS_ENV, "")
        try:
            timeout_seconds = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS
        except ValueError as e:
            raise StorageConfigError(
                f"{S3_TIMEOUT_SECONDS_ENV} must be a number, got {timeout_raw!r}"
            ) from e

        settings = cls(
            backend=backend,
            bucket=lookup(S3_BUCKET_ENV, ""),
            region=lookup(S3_REGION_ENV, DEFAULT_REGION) or DEFAULT_REGION,
            access_key_id=lookup(S3_ACCESS_KEY_ID_ENV, ""),
            secret_access_key=lookup(S3_SECRET_ACCESS_KEY_ENV, ""),
            endpoint_url=lookup(S3_ENDPOINT_URL_ENV, "") or None,
            timeout_seconds=timeout_seconds,
            base_dir=lookup(BASE_DIR_ENV, "") or None,
            namespace=lookup(NAMESPACE_ENV, ""),
            prefix_strategy=prefix_strategy,
        )
        settings.validate()
        return settings

    @classmethod
    def from_env(cls) -> StorageSettings:
        """Build settings from RESOURCE_STORAGE_* environment variables."""
        return cls.from_lookup(env_lookup)

    def validate(self) -> None:
        """Check settings for consistency.

        Raises:
            StorageConfigError: If a value is unknown or a required value is missing.
        """
        if self.backend not in VALID_BACKENDS:
            raise StorageConfigError(
                f"Unknown storage backend: {self.backend!r}. "
                f"Valid options: {sorted(VALID_BACKENDS)}"
            )
        if self.prefix_strategy not in VALID_PREFIX_STRATEGIES:
            raise StorageConfigError(
                f"Unknown prefix strategy: {self.prefix_strategy!r}. "
                f"Valid options: {sorted(VALID_PREFIX_STRATEGIES)}"
            )
        if self.backend == "s3" and not self.bucket:
            raise StorageConfigError(f"{S3_BUCKET_ENV} is not configured")
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise StorageConfigError(
                f"{S3_ACCESS_KEY_ID_ENV} and {S3_SECRET_ACCESS_KEY_ENV} must be set together"
            )
        if self.timeout_seconds <= 0:
            raise StorageConfigError(f"{S3_TIMEOUT_SECONDS_ENV} must be positive")
