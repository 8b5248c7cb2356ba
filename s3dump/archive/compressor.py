# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3dump Compressor - Streaming compression filters for the tar stream.

gzip at level 1 is the default: the dump runs inside a request, so CPU time
matters more than archive size. zstd is available as a drop-in alternative.
"""

import gzip
from typing import BinaryIO

import structlog
import zstandard as zstd

from s3dump.config import CompressionCodec

logger = structlog.get_logger()

ARCHIVE_CONTENT_TYPE = "application/x-tar"

DEFAULT_COMPRESSION_LEVEL = 1  # Fastest


def content_encoding_for(codec: CompressionCodec) -> str:
    """
    Get the Content-Encoding value for a codec.

    Args:
        codec: Compression codec

    Returns:
        HTTP content-coding token
    """
    return codec.value


def open_compressor(
    sink: BinaryIO,
    codec: CompressionCodec = CompressionCodec.GZIP,
    level: int = DEFAULT_COMPRESSION_LEVEL,
) -> BinaryIO:
    """
    Wrap sink in a streaming compressor.

    Closing the returned stream finishes the compressed stream but leaves
    sink open.

    Args:
        sink: Writable binary stream receiving compressed bytes
        codec: Compression codec
        level: Compression level for the codec

    Returns:
        Writable binary stream accepting uncompressed bytes
    """
    if codec == CompressionCodec.GZIP:
        # mtime=0 keeps the gzip header identical between runs
        return gzip.GzipFile(fileobj=sink, mode="wb", compresslevel=level, mtime=0)

    if codec == CompressionCodec.ZSTD:
        cctx = zstd.ZstdCompressor(level=level)
        return cctx.stream_writer(sink, closefd=False)

    raise ValueError(f"Unsupported compression codec: {codec!r}")


def discard_compressor(compressor: BinaryIO) -> None:
    """
    Close a compressor on a failure path.

    The sink is usually failing too, so errors from the final flush are
    logged rather than raised over the original error.
    """
    try:
        compressor.close()
    except Exception as e:
        logger.debug("compressor_close_failed", error=str(e))
