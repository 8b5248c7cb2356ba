# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

Reads the environment once at startup and produces a validated DumpConfig.
"""

from __future__ import annotations

import os
from pathlib import Path

from s3dump.config import MIN_PART_SIZE, CompressionCodec, DumpConfig
from s3dump.errors import (
    explain_invalid_compression_env,
    explain_invalid_part_size_env,
    explain_missing_env,
)
from s3dump.exceptions import ConfigurationError


def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(explain_missing_env(name))
    return value


def _parse_compression(value: str | None) -> CompressionCodec:
    if not value:
        return CompressionCodec.GZIP
    try:
        return CompressionCodec(value.lower())
    except ValueError as exc:
        raise ConfigurationError(explain_invalid_compression_env(value)) from exc


def _parse_part_size(value: str | None) -> int:
    if not value:
        return MIN_PART_SIZE
    try:
        megabytes = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_part_size_env(value)) from exc
    part_size = megabytes * 1024 * 1024
    if part_size < MIN_PART_SIZE:
        raise ConfigurationError(explain_invalid_part_size_env(value))
    return part_size


def create_config_from_env() -> DumpConfig:
    """
    Create a DumpConfig from environment variables.

    Required:
        - SECRET_ID: Identifier of the secret holding storage credentials
        - REGION: Region of the secret store and the bucket
        - BUCKET: Bucket receiving the archives

    Optional environment variables:
        - S3_ENDPOINT: S3-compatible endpoint URL (default: AWS)
        - SECRETS_ENDPOINT: Secret store endpoint URL (default: AWS)
        - DUMP_ROOT: Directory to archive (default: /)
        - DUMP_KEY_PREFIX: First segment of the object key (default: go)
        - DUMP_COMPRESSION: 'gzip' | 'zstd' (default: gzip)
        - DUMP_PART_SIZE_MB: Multipart part size in MiB (default: 5)
    """

    secret_id = _require("SECRET_ID")
    region = _require("REGION")
    bucket = _require("BUCKET")

    return DumpConfig(
        bucket=bucket,
        region=region,
        secret_id=secret_id,
        endpoint_url=os.getenv("S3_ENDPOINT") or None,
        secrets_endpoint_url=os.getenv("SECRETS_ENDPOINT") or None,
        root_path=Path(os.getenv("DUMP_ROOT") or "/"),
        key_prefix=os.getenv("DUMP_KEY_PREFIX") or "go",
        compression=_parse_compression(os.getenv("DUMP_COMPRESSION")),
        part_size=_parse_part_size(os.getenv("DUMP_PART_SIZE_MB")),
    )
