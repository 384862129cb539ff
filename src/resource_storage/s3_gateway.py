"""S3 object store gateway.

Supports AWS S3 and S3-compatible services (MinIO, LocalStack) through a
boto3 client. The client is built once by create_s3_client() and injected;
boto3 clients are safe to share across threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from resource_storage.errors import ResourceNotFoundError, StorageUnavailableError
from resource_storage.gateway import ObjectStoreGateway, clamp_presign_ttl
from resource_storage.models import ListPage, ObjectSummary, ResourceContent
from resource_storage.tracing import traced_gateway_operation

if TYPE_CHECKING:
    from resource_storage.config import StorageSettings

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})

# DeleteObjects accepts at most 1000 keys per request
_DELETE_BATCH_SIZE = 1000


def _error_code(error: BaseException) -> str:
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return ""


def _is_not_found(error: BaseException) -> bool:
    return _error_code(error) in _NOT_FOUND_CODES


def create_s3_client(settings: StorageSettings) -> Any:
    """Create the S3 client described by ``settings``.

    Static credentials are used when both are configured; otherwise boto3's
    default credential chain applies.
    """
    client_kwargs: dict[str, Any] = {
        "region_name": settings.region,
        "config": BotoConfig(
            signature_version="s3v4",
            connect_timeout=settings.timeout_seconds,
            read_timeout=settings.timeout_seconds,
        ),
    }
    if settings.endpoint_url:
        client_kwargs["endpoint_url"] = settings.endpoint_url
    if settings.has_static_credentials:
        client_kwargs["aws_access_key_id"] = settings.access_key_id
        client_kwargs["aws_secret_access_key"] = settings.secret_access_key

    session = boto3.Session()
    logger.info(
        "Creating S3 client: bucket=%s region=%s endpoint=%s",
        settings.bucket,
        settings.region,
        settings.endpoint_url or "aws",
    )
    return session.client("s3", **client_kwargs)


class S3ObjectStoreGateway(ObjectStoreGateway):
    """Gateway over one S3 bucket.

    Example:
        >>> settings = StorageSettings.from_env()
        >>> gateway = S3ObjectStoreGateway(create_s3_client(settings), settings.bucket)
        >>> gateway.put("42/report.pdf", data, "application/pdf")
        >>> url = gateway.presign("42/report.pdf", timedelta(hours=1))
    """

    def __init__(self, client: Any, bucket: str, *, page_size: int | None = None) -> None:
        """Initialize the gateway.

        Args:
            client: boto3 S3 client.
            bucket: Bucket holding every key this gateway addresses.
            page_size: MaxKeys for listings. None leaves page size to the
                backend (1000 for S3).
        """
        if not bucket:
            raise ValueError("bucket is required")
        if page_size is not None and page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._client = client
        self._bucket = bucket
        self._page_size = page_size

    @property
    def backend_name(self) -> str:
        return "s3"

    @property
    def bucket(self) -> str:
        return self._bucket

    def _unavailable(self, operation: str, key: str, error: Exception) -> StorageUnavailableError:
        """Log a backend failure and wrap it for the caller."""
        logger.error(
            "S3 %s failed: bucket=%s key=%s code=%s error=%s",
            operation,
            self._bucket,
            key,
            _error_code(error) or type(error).__name__,
            error,
        )
        return StorageUnavailableError(
            message=f"S3 {operation} failed: {error}",
            key=key,
            cause=error,
        )

    @traced_gateway_operation("list_page")
    def list_page(self, prefix: str, continuation_token: str | None = None) -> ListPage:
        params: dict[str, Any] = {"Bucket": self._bucket, "Prefix": prefix}
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        if self._page_size is not None:
            params["MaxKeys"] = self._page_size

        try:
            response = self._client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as e:
            raise self._unavailable("list", prefix, e) from e

        summaries = []
        for item in response.get("Contents", []):
            etag = item.get("ETag")
            summaries.append(
                ObjectSummary(
                    key=item["Key"],
                    size_bytes=int(item.get("Size", 0)),
                    last_modified=item["LastModified"],
                    etag=etag.strip('"') if etag else None,
                )
            )

        next_token = response.get("NextContinuationToken") if response.get("IsTruncated") else None
        return ListPage(summaries=summaries, next_token=next_token)

    @traced_gateway_operation("get")
    def get(self, key: str) -> ResourceContent:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise ResourceNotFoundError(key=key) from e
            raise self._unavailable("get", key, e) from e
        except BotoCoreError as e:
            raise self._unavailable("get", key, e) from e

        size = response.get("ContentLength")
        return ResourceContent(
            key=key,
            content_type=response.get("ContentType"),
            body=response["Body"],
            size_bytes=int(size) if size is not None else None,
        )

    @traced_gateway_operation("put")
    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": key,
            "Body": data,
            "ContentLength": len(data),
        }
        if content_type:
            params["ContentType"] = content_type

        try:
            self._client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise self._unavailable("put", key, e) from e

        logger.debug("Stored object: bucket=%s key=%s size=%d", self._bucket, key, len(data))

    @traced_gateway_operation("delete")
    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return
            raise self._unavailable("delete", key, e) from e
        except BotoCoreError as e:
            raise self._unavailable("delete", key, e) from e

        logger.debug("Deleted object: bucket=%s key=%s", self._bucket, key)

    @traced_gateway_operation("exists")
    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise self._unavailable("head", key, e) from e
        except BotoCoreError as e:
            raise self._unavailable("head", key, e) from e
        return True

    @traced_gateway_operation("presign")
    def presign(self, key: str, ttl: timedelta | None = None) -> str:
        expires_in = int(clamp_presign_ttl(ttl).total_seconds())
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._unavailable("presign", key, e) from e

    @traced_gateway_operation("copy")
    def copy(self, source_key: str, dest_key: str) -> None:
        try:
            self._client.copy_object(
                Bucket=self._bucket,
                Key=dest_key,
                CopySource={"Bucket": self._bucket, "Key": source_key},
            )
        except ClientError as e:
            if _is_not_found(e):
                raise ResourceNotFoundError(key=source_key) from e
            raise self._unavailable("copy", source_key, e) from e
        except BotoCoreError as e:
            raise self._unavailable("copy", source_key, e) from e

        logger.debug(
            "Copied object: bucket=%s source=%s dest=%s", self._bucket, source_key, dest_key
        )

    def delete_many(self, keys: Iterable[str]) -> int:
        pending = list(keys)
        for start in range(0, len(pending), _DELETE_BATCH_SIZE):
            batch = pending[start : start + _DELETE_BATCH_SIZE]
            try:
                response = self._client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                raise self._unavailable("delete_objects", batch[0], e) from e

            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                logger.error(
                    "S3 delete_objects reported %d failures: bucket=%s first_key=%s code=%s",
                    len(errors),
                    self._bucket,
                    first.get("Key"),
                    first.get("Code"),
                )
                raise StorageUnavailableError(
                    message=(
                        f"S3 delete_objects failed for {len(errors)} keys: "
                        f"{first.get('Code')} {first.get('Message')}"
                    ),
                    key=first.get("Key"),
                )

        logger.debug("Deleted %d objects: bucket=%s", len(pending), self._bucket)
        return len(pending)
