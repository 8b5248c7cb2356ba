# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3dump Uploader - Chunked upload of an indeterminate-length stream.

The stream is read in fixed-size parts and sent as an S3 multipart upload,
so memory use is one part regardless of the total size. A stream shorter
than a single part is stored with a plain put_object.
"""

import asyncio
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, List

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from s3dump.exceptions import UploadError
from s3dump.transfer.pipe import PipeReader

logger = structlog.get_logger()

DEFAULT_READ_SIZE = 64 * 1024


@dataclass
class UploadResult:
    """Stored-object metadata returned by an upload."""

    bucket: str
    key: str
    etag: str | None
    version_id: str | None
    size: int
    parts: int


async def read_part(
    reader: PipeReader,
    part_size: int,
    read_size: int = DEFAULT_READ_SIZE,
    executor: Executor | None = None,
) -> bytes:
    """
    Read up to part_size bytes from the pipe.

    Fewer bytes than part_size are returned only at end-of-stream. Pipe reads
    block, so they run in a worker thread of executor (default: the loop's
    pool).
    """
    loop = asyncio.get_running_loop()
    part = bytearray()
    while len(part) < part_size:
        data = await loop.run_in_executor(
            executor, reader.read, min(read_size, part_size - len(part))
        )
        if not data:
            break
        part.extend(data)
    return bytes(part)


async def upload_stream(
    s3_client: Any,
    bucket: str,
    key: str,
    reader: PipeReader,
    part_size: int,
    content_type: str,
    content_encoding: str,
    read_size: int = DEFAULT_READ_SIZE,
    executor: Executor | None = None,
) -> UploadResult:
    """
    Upload everything readable from reader to bucket/key.

    Errors raised by the pipe (the producer's error) propagate unchanged;
    S3 failures are wrapped in UploadError. An open multipart upload is
    aborted before any error, including cancellation, propagates.

    Args:
        s3_client: aiobotocore S3 client
        bucket: Target bucket
        key: Target object key
        reader: Read end of the archive pipe
        part_size: Multipart part size in bytes
        content_type: Content-Type stored on the object
        content_encoding: Content-Encoding stored on the object
        read_size: Maximum bytes per pipe read
        executor: Runs the blocking pipe reads (default: the loop's pool)

    Returns:
        UploadResult for the stored object
    """
    first = await read_part(reader, part_size, read_size, executor)

    if len(first) < part_size:
        try:
            response = await s3_client.put_object(
                Bucket=bucket,
                Key=key,
                Body=first,
                ContentType=content_type,
                ContentEncoding=content_encoding,
            )
        except (BotoCoreError, ClientError) as e:
            raise UploadError(
                f"Failed to upload object: {e}",
                details={"bucket": bucket, "key": key},
            ) from e

        logger.info("object_uploaded", bucket=bucket, key=key, size=len(first), parts=1)
        return UploadResult(
            bucket=bucket,
            key=key,
            etag=response.get("ETag"),
            version_id=response.get("VersionId"),
            size=len(first),
            parts=1,
        )

    try:
        created = await s3_client.create_multipart_upload(
            Bucket=bucket,
            Key=key,
            ContentType=content_type,
            ContentEncoding=content_encoding,
        )
    except (BotoCoreError, ClientError) as e:
        raise UploadError(
            f"Failed to start multipart upload: {e}",
            details={"bucket": bucket, "key": key},
        ) from e

    upload_id = created["UploadId"]
    parts: List[Dict[str, Any]] = []
    total = 0

    try:
        data = first
        while data:
            part_number = len(parts) + 1
            try:
                response = await s3_client.upload_part(
                    Bucket=bucket,
                    Key=key,
                    UploadId=upload_id,
                    PartNumber=part_number,
                    Body=data,
                )
            except (BotoCoreError, ClientError) as e:
                raise UploadError(
                    f"Failed to upload part {part_number}: {e}",
                    details={"bucket": bucket, "key": key, "part_number": part_number},
                ) from e

            parts.append({"ETag": response["ETag"], "PartNumber": part_number})
            total += len(data)
            logger.debug("part_uploaded", key=key, part_number=part_number, size=len(data))

            data = await read_part(reader, part_size, read_size, executor)

        try:
            response = await s3_client.complete_multipart_upload(
                Bucket=bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
        except (BotoCoreError, ClientError) as e:
            raise UploadError(
                f"Failed to complete multipart upload: {e}",
                details={"bucket": bucket, "key": key, "parts": len(parts)},
            ) from e

    except BaseException:
        await _abort_multipart_upload(s3_client, bucket, key, upload_id)
        raise

    logger.info("object_uploaded", bucket=bucket, key=key, size=total, parts=len(parts))
    return UploadResult(
        bucket=bucket,
        key=key,
        etag=response.get("ETag"),
        version_id=response.get("VersionId"),
        size=total,
        parts=len(parts),
    )


async def _abort_multipart_upload(s3_client: Any, bucket: str, key: str, upload_id: str) -> None:
    """Abort a multipart upload so no orphaned parts are billed."""
    try:
        await s3_client.abort_multipart_upload(Bucket=bucket, Key=key, UploadId=upload_id)
        logger.info("multipart_upload_aborted", bucket=bucket, key=key, upload_id=upload_id)
    except (BotoCoreError, ClientError) as e:
        logger.warning(
            "multipart_abort_failed",
            bucket=bucket,
            key=key,
            upload_id=upload_id,
            error=str(e),
        )
