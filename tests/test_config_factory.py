"""Tests for storage settings and configuration-time construction."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from resource_storage.config import (
    BACKEND_ENV,
    BASE_DIR_ENV,
    NAMESPACE_ENV,
    PREFIX_STRATEGY_ENV,
    S3_ACCESS_KEY_ID_ENV,
    S3_BUCKET_ENV,
    S3_SECRET_ACCESS_KEY_ENV,
    S3_TIMEOUT_SECONDS_ENV,
    StorageSettings,
)
from resource_storage.errors import StorageConfigError
from resource_storage.factory import build_codec, build_gateway, build_resource_store
from resource_storage.filesystem_gateway import FilesystemObjectStoreGateway
from resource_storage.prefix import NamespacePrefixCodec, ShardedPrefixCodec
from resource_storage.s3_gateway import S3ObjectStoreGateway


def _lookup(values: dict[str, str]):
    return lambda key, default="": values.get(key, default)


class TestStorageSettings:
    """Tests for StorageSettings."""

    def test_defaults_from_lookup(self) -> None:
        """Only the bucket is required for the default s3 backend."""
        settings = StorageSettings.from_lookup(_lookup({S3_BUCKET_ENV: "bucket"}))

        assert settings.backend == "s3"
        assert settings.bucket == "bucket"
        assert settings.region == "us-east-2"
        assert settings.timeout_seconds == 60.0
        assert settings.endpoint_url is None
        assert settings.prefix_strategy == "namespace"
        assert not settings.has_static_credentials

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Environment variables are read and normalised."""
        monkeypatch.setenv(BACKEND_ENV, " Filesystem ")
        monkeypatch.setenv(BASE_DIR_ENV, str(tmp_path))
        monkeypatch.setenv(NAMESPACE_ENV, "venues")
        monkeypatch.setenv(PREFIX_STRATEGY_ENV, "SHARDED")
        monkeypatch.setenv(S3_TIMEOUT_SECONDS_ENV, "2.5")

        settings = StorageSettings.from_env()

        assert settings.backend == "filesystem"
        assert settings.base_dir == str(tmp_path)
        assert settings.namespace == "venues"
        assert settings.prefix_strategy == "sharded"
        assert settings.timeout_seconds == 2.5

    def test_missing_bucket_rejected(self) -> None:
        """The s3 backend needs a bucket."""
        with pytest.raises(StorageConfigError, match=S3_BUCKET_ENV):
            StorageSettings.from_lookup(_lookup({}))

    @pytest.mark.parametrize(
        "values",
        [
            {BACKEND_ENV: "cdn"},
            {BACKEND_ENV: "filesystem", PREFIX_STRATEGY_ENV: "random"},
            {S3_BUCKET_ENV: "b", S3_TIMEOUT_SECONDS_ENV: "soon"},
            {S3_BUCKET_ENV: "b", S3_TIMEOUT_SECONDS_ENV: "0"},
            {S3_BUCKET_ENV: "b", S3_ACCESS_KEY_ID_ENV: "AKID"},
        ],
        ids=["backend", "strategy", "timeout-text", "timeout-zero", "half-credentials"],
    )
    def test_invalid_values_rejected(self, values: dict[str, str]) -> None:
        """Unknown or inconsistent values raise StorageConfigError."""
        with pytest.raises(StorageConfigError):
            StorageSettings.from_lookup(_lookup(values))

    def test_repr_hides_credentials(self) -> None:
        """Secrets never appear in repr."""
        settings = StorageSettings.from_lookup(
            _lookup(
                {
                    S3_BUCKET_ENV: "b",
                    S3_ACCESS_KEY_ID_ENV: "AKIDSECRET",
                    S3_SECRET_ACCESS_KEY_ENV: "very-secret",
                }
            )
        )

        assert settings.has_static_credentials
        assert "AKIDSECRET" not in repr(settings)
        assert "very-secret" not in repr(settings)


class TestFactory:
    """Tests for build_gateway, build_codec and build_resource_store."""

    def test_filesystem_gateway(self, tmp_path: Path) -> None:
        """The filesystem backend is rooted in base_dir."""
        settings = StorageSettings(backend="filesystem", base_dir=str(tmp_path))

        gateway = build_gateway(settings)

        assert isinstance(gateway, FilesystemObjectStoreGateway)
        assert gateway.base_dir == tmp_path.resolve()

    def test_s3_gateway_uses_injected_client(self) -> None:
        """The s3 backend wraps a client created once from the settings."""
        settings = StorageSettings(bucket="bucket")
        client = MagicMock()

        with patch(
            "resource_storage.s3_gateway.create_s3_client", return_value=client
        ) as create:
            gateway = build_gateway(settings)

        create.assert_called_once_with(settings)
        assert isinstance(gateway, S3ObjectStoreGateway)
        assert gateway.bucket == "bucket"

    def test_invalid_settings_rejected(self) -> None:
        """Settings built directly are validated too."""
        with pytest.raises(StorageConfigError):
            build_gateway(StorageSettings(backend="s3", bucket=""))

    def test_codecs(self) -> None:
        """The prefix strategy selects the codec."""
        namespace = build_codec(StorageSettings(backend="filesystem", namespace="venues"))
        sharded = build_codec(
            StorageSettings(backend="filesystem", namespace="venues", prefix_strategy="sharded")
        )

        assert isinstance(namespace, NamespacePrefixCodec)
        assert namespace.prefix(42) == "venues/42/"
        assert isinstance(sharded, ShardedPrefixCodec)
        assert sharded.prefix(42).endswith("/42/")

    def test_store_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """build_resource_store reads the environment when no settings are given."""
        monkeypatch.setenv(BACKEND_ENV, "filesystem")
        monkeypatch.setenv(BASE_DIR_ENV, str(tmp_path))
        monkeypatch.setenv(NAMESPACE_ENV, "venues")

        store = build_resource_store()
        store.put("a.txt", b"a", "text/plain", owner_id=1)

        assert store.gateway.backend_name == "filesystem"
        assert store.list_names(1) == ["a.txt"]
