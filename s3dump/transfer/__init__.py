# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Transfer Engine - Bounded pipe, chunked upload and task supervision.
"""

from s3dump.transfer.pipe import BytePipe, PipeReader, PipeWriter
from s3dump.transfer.supervisor import run_concurrently, run_in_thread
from s3dump.transfer.uploader import UploadResult, read_part, upload_stream

__all__ = [
    # Pipe
    "BytePipe",
    "PipeReader",
    "PipeWriter",
    # Uploader
    "upload_stream",
    "read_part",
    "UploadResult",
    # Supervision
    "run_concurrently",
    "run_in_thread",
]
