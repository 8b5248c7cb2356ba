# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3dump Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation and validated once,
so request handlers never read the environment mid-request.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List
import re


# S3 rejects non-final multipart parts smaller than this
MIN_PART_SIZE = 5 * 1024 * 1024

# SigV4 presigned URLs expire after at most 7 days
MAX_PRESIGN_TTL_SECONDS = 7 * 24 * 60 * 60


class CompressionCodec(str, Enum):
    """Streaming compressor applied to the tar stream."""

    GZIP = "gzip"
    ZSTD = "zstd"


def _validate_bucket_name(bucket: str) -> bool:
    """
    Validate S3 bucket name according to AWS rules.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens
    - Must start and end with letter or number
    - No consecutive periods
    - Not formatted as IP address
    """
    if not bucket or len(bucket) < 3 or len(bucket) > 63:
        return False

    if not re.match(r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$", bucket):
        return False

    if ".." in bucket:
        return False

    if re.match(r"^\d+\.\d+\.\d+\.\d+$", bucket):
        return False

    return True


def _validate_key_prefix(prefix: str) -> bool:
    """Prefix must be non-empty and must not start or end with a slash."""
    return bool(prefix) and not prefix.startswith("/") and not prefix.endswith("/")


@dataclass(frozen=True)
class DumpConfig:
    """
    Immutable configuration for filesystem dumps.

    Built once at startup and handed to the application factory.
    """

    # Required: bucket receiving the archives
    bucket: str

    # Region used for both the secret store and the object storage
    region: str

    # Identifier of the secret holding the storage credentials
    secret_id: str

    # S3-compatible endpoint (None: AWS default for the region)
    endpoint_url: str | None = None

    # Secret store endpoint (None: AWS default for the region)
    secrets_endpoint_url: str | None = None

    # Directory to archive
    root_path: Path = Path("/")

    # Object key is <key_prefix>/<RFC3339 start time>/dump.tar.<ext>
    key_prefix: str = "go"

    # Streaming compressor and its level (1 = fastest)
    compression: CompressionCodec = CompressionCodec.GZIP
    compression_level: int = 1

    # Multipart upload part size
    part_size: int = MIN_PART_SIZE

    # Bytes the producer may run ahead of the uploader
    pipe_buffer_size: int = 1024 * 1024

    # Lifetime of the returned download link
    presign_ttl_seconds: int = 15 * 60

    # Names of the credential entries inside the secret
    access_key_name: str = "AWS_ACCESS_KEY"
    secret_key_name: str = "AWS_SECRET_KEY"

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not _validate_bucket_name(self.bucket):
            errors.append(f"Invalid bucket name: {self.bucket}")

        if not self.region:
            errors.append("region must not be empty")

        if not self.secret_id:
            errors.append("secret_id must not be empty")

        if not _validate_key_prefix(self.key_prefix):
            errors.append(f"Invalid key_prefix: {self.key_prefix!r}")

        if not isinstance(self.compression, CompressionCodec):
            errors.append(f"Unknown compression codec: {self.compression!r}")
        elif self.compression == CompressionCodec.GZIP and not 1 <= self.compression_level <= 9:
            errors.append(
                f"gzip compression_level must be 1-9, got {self.compression_level}"
            )
        elif self.compression == CompressionCodec.ZSTD and not 1 <= self.compression_level <= 22:
            errors.append(
                f"zstd compression_level must be 1-22, got {self.compression_level}"
            )

        if self.part_size < MIN_PART_SIZE:
            errors.append(f"part_size must be >= {MIN_PART_SIZE}, got {self.part_size}")

        if self.pipe_buffer_size < 1:
            errors.append(f"pipe_buffer_size must be >= 1, got {self.pipe_buffer_size}")

        if not 1 <= self.presign_ttl_seconds <= MAX_PRESIGN_TTL_SECONDS:
            errors.append(
                f"presign_ttl_seconds must be 1-{MAX_PRESIGN_TTL_SECONDS}, "
                f"got {self.presign_ttl_seconds}"
            )

        if not self.access_key_name or not self.secret_key_name:
            errors.append("access_key_name and secret_key_name must not be empty")

        if errors:
            from s3dump.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    @property
    def archive_suffix(self) -> str:
        """File name suffix matching the configured codec."""
        if self.compression == CompressionCodec.ZSTD:
            return "tar.zst"
        return "tar.gz"

    def with_updates(self, **kwargs) -> "DumpConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return DumpConfig(**current)
