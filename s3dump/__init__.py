# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3dump - Stream a filesystem snapshot to S3 on request.

Walks a directory tree, streams it as a compressed tar archive into an S3
object while the archive is still being produced, and answers with a
time-limited download link. Credentials are read from a managed secret
store on every request.
"""

__version__ = "0.1.0"

# Configuration
from s3dump.config import CompressionCodec, DumpConfig
from s3dump.env import create_config_from_env

# Core pipeline
from s3dump.core import (
    DumpResult,
    object_key_for,
    run_dump_pipeline,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "DumpConfig",
    "CompressionCodec",
    "create_config_from_env",
    # Core pipeline
    "run_dump_pipeline",
    "object_key_for",
    "DumpResult",
]
