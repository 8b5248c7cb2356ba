# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Structured filesystem error kinds.

The walk decides what to do with a failed syscall by switching on one of
these kinds instead of comparing errno values at every call site.
"""

from enum import Enum


class FsErrorKind(str, Enum):
    """Closed set of filesystem failure kinds the walk distinguishes."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"


def classify_os_error(exc: OSError) -> FsErrorKind:
    """Map an OSError onto an FsErrorKind."""
    if isinstance(exc, FileNotFoundError):
        return FsErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return FsErrorKind.PERMISSION_DENIED
    return FsErrorKind.OTHER
