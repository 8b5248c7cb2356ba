# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
S3 Dump Exceptions - Custom exceptions for the s3dump package.
"""


class S3DumpError(Exception):
    """Base exception for all s3dump errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(S3DumpError):
    """Raised when configuration is invalid."""

    pass


class ArchiveError(S3DumpError):
    """Raised when the archive as a whole can no longer be trusted."""

    pass


class DumpCancelled(ArchiveError):
    """Raised when the walk is stopped because the other side failed."""

    pass


class PipeClosedError(S3DumpError):
    """Raised when writing to or reading from a closed pipe end."""

    pass


class UploadError(S3DumpError):
    """Raised when S3 upload operations fail."""

    pass


class SessionError(S3DumpError):
    """Raised when the cloud session cannot be created."""

    pass


class SecretsError(S3DumpError):
    """Raised when the credential bundle cannot be retrieved."""

    pass


class StorageError(S3DumpError):
    """Raised when the storage client cannot be built or used."""

    pass
