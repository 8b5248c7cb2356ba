# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Object storage client construction and presigned download links.
"""

from contextlib import AsyncExitStack
from typing import Any

import structlog
from aiobotocore.config import AioConfig
from botocore.exceptions import BotoCoreError, ClientError

from s3dump.cloud.secrets import CredentialBundle
from s3dump.config import DumpConfig
from s3dump.errors import explain_missing_secret_key
from s3dump.exceptions import StorageError

logger = structlog.get_logger()


async def connect_storage(
    stack: AsyncExitStack,
    session: Any,
    config: DumpConfig,
    bundle: CredentialBundle,
) -> Any:
    """
    Build an S3 client from the credential bundle.

    The client lives as long as stack.

    Args:
        stack: Exit stack owning the client
        session: aiobotocore session
        config: Dump configuration (region, endpoint, key names)
        bundle: Credential bundle holding the access and secret keys

    Returns:
        aiobotocore S3 client

    Raises:
        StorageError: If a key is missing or the client cannot be built
    """
    access_key = bundle.get(config.access_key_name)
    secret_key = bundle.get(config.secret_key_name)

    for name, value in (
        (config.access_key_name, access_key),
        (config.secret_key_name, secret_key),
    ):
        if not value:
            raise StorageError(
                explain_missing_secret_key(name, bundle.secret_id),
                details={"secret_id": bundle.secret_id},
            )

    try:
        client = await stack.enter_async_context(
            session.create_client(
                "s3",
                region_name=config.region,
                endpoint_url=config.endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=AioConfig(signature_version="s3v4"),
            )
        )
    except (BotoCoreError, ValueError) as e:
        raise StorageError(
            f"Failed to create S3 client: {e}",
            details={"region": config.region, "endpoint_url": config.endpoint_url},
        ) from e

    logger.debug("storage_client_created", region=config.region, endpoint_url=config.endpoint_url)
    return client


async def presign_download_url(
    s3_client: Any,
    bucket: str,
    key: str,
    ttl_seconds: int,
) -> str:
    """
    Mint a time-limited GET URL for a stored object.

    Raises:
        StorageError: If the URL cannot be generated
    """
    try:
        return await s3_client.generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=ttl_seconds,
        )
    except (BotoCoreError, ClientError) as e:
        raise StorageError(
            f"{e}",
            details={"bucket": bucket, "key": key},
        ) from e
