# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Configuration Tests.

Configuration is validated once at startup; every invalid combination must
be rejected before the server accepts a request.
"""

from pathlib import Path

import pytest

from s3dump.config import MIN_PART_SIZE, CompressionCodec, DumpConfig
from s3dump.env import create_config_from_env
from s3dump.exceptions import ConfigurationError

REQUIRED = {"bucket": "test-bucket", "region": "us-east-1", "secret_id": "dump-credentials"}

ENV_VARS = (
    "SECRET_ID",
    "REGION",
    "BUCKET",
    "S3_ENDPOINT",
    "SECRETS_ENDPOINT",
    "DUMP_ROOT",
    "DUMP_KEY_PREFIX",
    "DUMP_COMPRESSION",
    "DUMP_PART_SIZE_MB",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SECRET_ID", "dump-credentials")
    monkeypatch.setenv("REGION", "eu-west-1")
    monkeypatch.setenv("BUCKET", "dump-bucket")
    return monkeypatch


def test_defaults():
    config = DumpConfig(**REQUIRED)

    assert config.root_path == Path("/")
    assert config.key_prefix == "go"
    assert config.compression == CompressionCodec.GZIP
    assert config.compression_level == 1
    assert config.part_size == MIN_PART_SIZE
    assert config.presign_ttl_seconds == 900
    assert config.archive_suffix == "tar.gz"


@pytest.mark.parametrize(
    "overrides",
    [
        {"bucket": "Invalid_Bucket"},
        {"bucket": "ab"},
        {"region": ""},
        {"secret_id": ""},
        {"key_prefix": "/go"},
        {"key_prefix": ""},
        {"compression_level": 0},
        {"compression_level": 10},
        {"compression": CompressionCodec.ZSTD, "compression_level": 23},
        {"part_size": MIN_PART_SIZE - 1},
        {"pipe_buffer_size": 0},
        {"presign_ttl_seconds": 0},
        {"presign_ttl_seconds": 8 * 24 * 60 * 60},
        {"access_key_name": ""},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ConfigurationError):
        DumpConfig(**{**REQUIRED, **overrides})


def test_all_errors_are_reported_together():
    with pytest.raises(ConfigurationError) as exc_info:
        DumpConfig(bucket="X", region="", secret_id="")

    assert len(exc_info.value.details["errors"]) == 3


def test_with_updates_returns_validated_copy():
    config = DumpConfig(**REQUIRED)
    updated = config.with_updates(compression=CompressionCodec.ZSTD, compression_level=19)

    assert updated.archive_suffix == "tar.zst"
    assert config.compression == CompressionCodec.GZIP

    with pytest.raises(ConfigurationError):
        config.with_updates(part_size=1024)


def test_config_is_frozen():
    config = DumpConfig(**REQUIRED)

    with pytest.raises(AttributeError):
        config.bucket = "other-bucket"


def test_env_minimal(clean_env):
    config = create_config_from_env()

    assert config.secret_id == "dump-credentials"
    assert config.region == "eu-west-1"
    assert config.bucket == "dump-bucket"
    assert config.endpoint_url is None
    assert config.root_path == Path("/")


def test_env_optional_values(clean_env):
    clean_env.setenv("S3_ENDPOINT", "http://localhost:9000")
    clean_env.setenv("SECRETS_ENDPOINT", "http://localhost:4566")
    clean_env.setenv("DUMP_ROOT", "/srv/data")
    clean_env.setenv("DUMP_KEY_PREFIX", "backups")
    clean_env.setenv("DUMP_COMPRESSION", "ZSTD")
    clean_env.setenv("DUMP_PART_SIZE_MB", "16")

    config = create_config_from_env()

    assert config.endpoint_url == "http://localhost:9000"
    assert config.secrets_endpoint_url == "http://localhost:4566"
    assert config.root_path == Path("/srv/data")
    assert config.key_prefix == "backups"
    assert config.compression == CompressionCodec.ZSTD
    assert config.part_size == 16 * 1024 * 1024


@pytest.mark.parametrize("name", ["SECRET_ID", "REGION", "BUCKET"])
def test_env_required_values(clean_env, name):
    clean_env.delenv(name)

    with pytest.raises(ConfigurationError, match=name):
        create_config_from_env()


@pytest.mark.parametrize(
    "name, value",
    [
        ("DUMP_COMPRESSION", "brotli"),
        ("DUMP_PART_SIZE_MB", "four"),
        ("DUMP_PART_SIZE_MB", "4"),
    ],
)
def test_env_invalid_values(clean_env, name, value):
    clean_env.setenv(name, value)

    with pytest.raises(ConfigurationError, match=name):
        create_config_from_env()
