# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
In-memory byte pipe with a bounded buffer.

One thread writes, one thread reads. A writer that gets max_buffer bytes
ahead of the reader blocks until the reader catches up, so memory stays
bounded no matter how large the stream is. Either end can be closed with
an error, which the other end then raises on its next operation.
"""

import threading

from s3dump.exceptions import PipeClosedError

DEFAULT_PIPE_BUFFER = 1024 * 1024


class BytePipe:
    """Bounded single-writer, single-reader FIFO byte pipe."""

    def __init__(self, max_buffer: int = DEFAULT_PIPE_BUFFER):
        if max_buffer < 1:
            raise ValueError(f"max_buffer must be >= 1, got {max_buffer}")

        self._max_buffer = max_buffer
        self._cond = threading.Condition()
        self._buffer = bytearray()
        self._bytes_written = 0

        self._writer_closed = False
        self._writer_error: BaseException | None = None
        self._reader_closed = False
        self._reader_error: BaseException | None = None

        self.writer = PipeWriter(self)
        self.reader = PipeReader(self)

    @property
    def buffered(self) -> int:
        """Bytes written but not yet read."""
        with self._cond:
            return len(self._buffer)

    def _write(self, data) -> int:
        view = memoryview(data).cast("B")
        written = 0

        with self._cond:
            while written < len(view):
                while (
                    not self._reader_closed
                    and not self._writer_closed
                    and len(self._buffer) >= self._max_buffer
                ):
                    self._cond.wait()

                if self._reader_closed:
                    raise self._reader_error or PipeClosedError("read end of pipe is closed")
                if self._writer_closed:
                    raise PipeClosedError("write to closed pipe")

                room = self._max_buffer - len(self._buffer)
                chunk = view[written:written + room]
                self._buffer.extend(chunk)
                written += len(chunk)
                self._cond.notify_all()

            self._bytes_written += written

        return written

    def _read(self, size: int) -> bytes:
        with self._cond:
            while not self._buffer and not self._writer_closed and not self._reader_closed:
                self._cond.wait()

            if self._reader_closed:
                raise PipeClosedError("read from closed pipe")

            # A failed writer fails the reader immediately, buffered bytes
            # belong to an archive that will never be complete
            if self._writer_error is not None:
                raise self._writer_error

            if not self._buffer:
                return b""

            n = len(self._buffer) if size < 0 else min(size, len(self._buffer))
            data = bytes(self._buffer[:n])
            del self._buffer[:n]
            self._cond.notify_all()
            return data

    def _close_writer(self, error: BaseException | None) -> None:
        with self._cond:
            if self._writer_closed:
                return
            self._writer_closed = True
            self._writer_error = error
            self._cond.notify_all()

    def _close_reader(self, error: BaseException | None) -> None:
        with self._cond:
            if self._reader_closed:
                return
            self._reader_closed = True
            self._reader_error = error
            self._buffer.clear()
            self._cond.notify_all()


class PipeWriter:
    """Write end of a BytePipe; a minimal binary file-like object."""

    def __init__(self, pipe: BytePipe):
        self._pipe = pipe

    def write(self, data) -> int:
        """Write all of data, blocking while the buffer is full."""
        return self._pipe._write(data)

    def flush(self) -> None:
        pass

    def tell(self) -> int:
        return self._pipe._bytes_written

    def close(self) -> None:
        """Close cleanly; the reader sees end-of-stream after the buffer drains."""
        self._pipe._close_writer(None)

    def close_with_error(self, error: BaseException) -> None:
        """Close with error; the reader raises error on its next read."""
        self._pipe._close_writer(error)


class PipeReader:
    """Read end of a BytePipe."""

    def __init__(self, pipe: BytePipe):
        self._pipe = pipe

    def read(self, size: int = -1) -> bytes:
        """
        Read up to size bytes, blocking until data or end-of-stream.

        Returns b"" at end-of-stream.
        """
        return self._pipe._read(size)

    def close(self) -> None:
        self._pipe._close_reader(None)

    def close_with_error(self, error: BaseException) -> None:
        """Close with error; the writer raises error on its next write."""
        self._pipe._close_reader(error)
