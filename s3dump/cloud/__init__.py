# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Cloud Collaborators - Session, secret store and object storage access.
"""

from s3dump.cloud.secrets import (
    CredentialBundle,
    create_session,
    fetch_credential_bundle,
    parse_secret_payload,
)
from s3dump.cloud.storage import connect_storage, presign_download_url

__all__ = [
    # Secrets
    "CredentialBundle",
    "create_session",
    "fetch_credential_bundle",
    "parse_secret_payload",
    # Storage
    "connect_storage",
    "presign_download_url",
]
