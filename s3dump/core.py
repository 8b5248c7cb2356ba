# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3dump Core - The produce/compress/upload pipeline.

The archive producer runs in a worker thread and writes through a
streaming compressor into a bounded pipe; the uploader reads the other end
of the pipe and sends it to S3 in parts. Both run at the same time, so the
archive is never held in memory, and a failure on either side stops the
other.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import Any

import structlog

from s3dump.archive import (
    ARCHIVE_CONTENT_TYPE,
    ArchiveStats,
    content_encoding_for,
    discard_compressor,
    open_compressor,
    produce_archive,
)
from s3dump.config import CompressionCodec, DumpConfig
from s3dump.transfer import (
    BytePipe,
    PipeWriter,
    UploadResult,
    run_concurrently,
    run_in_thread,
    upload_stream,
)

logger = structlog.get_logger()


@dataclass
class DumpResult:
    """Result of one dump."""

    key: str
    upload: UploadResult
    archive: ArchiveStats
    duration_seconds: float


def object_key_for(config: DumpConfig, started_at: datetime) -> str:
    """
    Build the object key for a dump started at started_at.

    Format: <key_prefix>/<RFC3339 UTC timestamp>/dump.tar.gz
    """
    timestamp = started_at.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
    return f"{config.key_prefix}/{timestamp}/dump.{config.archive_suffix}"


def produce_into_pipe(
    writer: PipeWriter,
    root_path: Path,
    codec: CompressionCodec,
    level: int,
    cancel: threading.Event,
) -> ArchiveStats:
    """
    Produce the compressed archive into the pipe's write end.

    On success the compressor is finished and the pipe closed cleanly. On
    failure the compressor is closed first and the pipe is then closed with
    the error, which the uploader raises on its next read.
    """
    compressor = open_compressor(writer, codec, level)

    try:
        stats = produce_archive(compressor, root_path, cancel)
    except BaseException as exc:
        discard_compressor(compressor)
        writer.close_with_error(exc)
        raise

    try:
        compressor.close()
    except BaseException as exc:
        writer.close_with_error(exc)
        raise

    writer.close()
    return stats


async def run_dump_pipeline(
    config: DumpConfig,
    s3_client: Any,
    key: str,
    root_path: Path | None = None,
) -> DumpResult:
    """
    Archive a directory tree straight into an S3 object.

    Args:
        config: Dump configuration
        s3_client: aiobotocore S3 client
        key: Target object key in config.bucket
        root_path: Directory to archive (default: config.root_path)

    Returns:
        DumpResult with the stored object and archive statistics

    Raises:
        The first error raised by either the producer or the uploader
    """
    root = Path(root_path) if root_path is not None else config.root_path
    encoding = content_encoding_for(config.compression)
    pipe = BytePipe(max_buffer=config.pipe_buffer_size)
    cancel = threading.Event()
    start = time.perf_counter()

    def on_failure(exc: BaseException) -> None:
        cancel.set()
        pipe.reader.close_with_error(exc)
        pipe.writer.close_with_error(exc)

    logger.info(
        "dump_started",
        bucket=config.bucket,
        key=key,
        root=str(root),
        compression=encoding,
    )

    # One thread for the producer, one for the uploader's pipe reads. The
    # producer blocks on the pipe for the whole dump, so sharing the loop's
    # pool would let concurrent dumps starve each other's readers.
    workers = ThreadPoolExecutor(max_workers=2, thread_name_prefix="s3dump")

    try:
        stats, upload = await run_concurrently(
            run_in_thread(
                produce_into_pipe,
                pipe.writer,
                root,
                config.compression,
                config.compression_level,
                cancel,
                executor=workers,
            ),
            upload_stream(
                s3_client,
                config.bucket,
                key,
                pipe.reader,
                part_size=config.part_size,
                content_type=ARCHIVE_CONTENT_TYPE,
                content_encoding=encoding,
                executor=workers,
            ),
            on_failure=on_failure,
        )
    except Exception as e:
        logger.error("dump_failed", key=key, error=str(e))
        raise
    finally:
        # Both sides have returned or been unblocked by on_failure
        workers.shutdown(wait=False)

    duration = time.perf_counter() - start
    logger.info(
        "dump_completed",
        key=key,
        size=upload.size,
        parts=upload.parts,
        entries=stats.entries,
        duration=duration,
    )

    return DumpResult(
        key=key,
        upload=upload,
        archive=stats,
        duration_seconds=duration,
    )
