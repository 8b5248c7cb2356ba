# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive Engine - Tree walk, tar production and streaming compression.
"""

from s3dump.archive.compressor import (
    ARCHIVE_CONTENT_TYPE,
    content_encoding_for,
    discard_compressor,
    open_compressor,
)
from s3dump.archive.fserrors import FsErrorKind, classify_os_error
from s3dump.archive.producer import (
    PERMISSION_DENIED_TARGET,
    ArchiveStats,
    build_entry,
    is_virtual_path,
    produce_archive,
)
from s3dump.archive.walker import Decision, walk_tree

__all__ = [
    # Producer
    "produce_archive",
    "build_entry",
    "is_virtual_path",
    "ArchiveStats",
    "PERMISSION_DENIED_TARGET",
    # Walker
    "walk_tree",
    "Decision",
    # Filesystem errors
    "FsErrorKind",
    "classify_os_error",
    # Compressor
    "open_compressor",
    "discard_compressor",
    "content_encoding_for",
    "ARCHIVE_CONTENT_TYPE",
]
