"""Cancellable object streams over byte buffers and joined pairs of streams."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Protocol

__all__ = [
    "OperationCancelledError",
    "CancellableStream",
    "ByteArrayInputStream",
    "ByteArrayOutputStream",
    "FixedSizeOutputStream",
    "MemoryOutputStream",
    "JoinedInputStreamBase",
    "JoinedInputStream",
    "JoinedOutputStreamBase",
    "JoinedOutputStream",
]


class _InputStream(Protocol):
    @property
    def size(self) -> int: ...

    def read(self, size: int) -> bytes: ...


class _OutputStream(Protocol):
    def write(self, data: bytes) -> int: ...


class OperationCancelledError(RuntimeError):
    """Raised when an operation on a cancelled stream is attempted."""

    def __init__(self) -> None:
        super().__init__("operation cancelled")


class CancellableStream:
    """Stream that can be cancelled from another thread."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Mark the stream cancelled; later transfers raise."""
        self._cancelled.set()

    def check_cancelled(self) -> None:
        """Raise OperationCancelledError if the stream was cancelled."""
        if self._cancelled.is_set():
            raise OperationCancelledError()


class ByteArrayInputStream(CancellableStream):
    """Input stream reading from a fixed byte buffer."""

    def __init__(self, data: bytes = b"") -> None:
        super().__init__()
        self._data = bytes(data)
        self._offset = 0

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def size(self) -> int:
        return len(self._data)

    def read(self, size: int) -> bytes:
        """Return up to size bytes from the current position."""
        self.check_cancelled()
        chunk = self._data[self._offset : self._offset + size]
        self._offset += len(chunk)
        return chunk


class ByteArrayOutputStream(CancellableStream):
    """Output stream collecting everything written into a growing buffer."""

    def __init__(self) -> None:
        super().__init__()
        self._data = bytearray()

    @property
    def data(self) -> bytes:
        return bytes(self._data)

    def write(self, data: bytes) -> int:
        """Append all of data and return its length."""
        self.check_cancelled()
        self._data += data
        return len(data)


class FixedSizeOutputStream(CancellableStream):
    """Output stream filling a buffer of fixed size, dropping what does not fit."""

    def __init__(self, size: int) -> None:
        super().__init__()
        self._data = bytearray(size)
        self._offset = 0

    @property
    def data(self) -> bytes:
        return bytes(self._data)

    def write(self, data: bytes) -> int:
        """Store as much of data as fits and return how many bytes were taken."""
        self.check_cancelled()
        n = min(len(data), len(self._data) - self._offset)
        self._data[self._offset : self._offset + n] = data[:n]
        self._offset += n
        return n


class MemoryOutputStream(CancellableStream):
    """Output stream appending into a shared bytearray."""

    def __init__(self) -> None:
        super().__init__()
        self._data = bytearray()

    @property
    def data(self) -> bytearray:
        return self._data

    def write(self, data: bytes) -> int:
        """Append all of data and return its length."""
        self._data += data
        return len(data)


class JoinedInputStreamBase(CancellableStream, ABC):
    """Input stream reading a first stream to its end, then a second one."""

    def __init__(self) -> None:
        super().__init__()
        self._first_exhausted = False

    @abstractmethod
    def _first_stream(self) -> _InputStream: ...

    @abstractmethod
    def _second_stream(self) -> _InputStream: ...

    def _on_first_exhausted(self) -> None:
        """Called once when the first stream returns a short read."""

    def read(self, size: int) -> bytes:
        """Read up to size bytes, crossing from the first stream into the second."""
        self.check_cancelled()
        if self._first_exhausted:
            return self._second_stream().read(size)
        chunk = self._first_stream().read(size)
        if len(chunk) < size:
            self._first_exhausted = True
            self._on_first_exhausted()
            chunk += self._second_stream().read(size - len(chunk))
        return chunk


class JoinedInputStream(JoinedInputStreamBase):
    """Input stream made of two consecutive streams."""

    def __init__(self, first: _InputStream, second: _InputStream) -> None:
        super().__init__()
        self._first = first
        self._second = second
        self._size = first.size + second.size

    def _first_stream(self) -> _InputStream:
        return self._first

    def _second_stream(self) -> _InputStream:
        return self._second

    @property
    def size(self) -> int:
        return self._size


class JoinedOutputStreamBase(CancellableStream, ABC):
    """Output stream filling a first stream until it refuses data, then a second one."""

    def __init__(self) -> None:
        super().__init__()
        self._first_exhausted = False

    @abstractmethod
    def _first_stream(self) -> _OutputStream: ...

    @abstractmethod
    def _second_stream(self) -> _OutputStream: ...

    def _on_first_exhausted(self) -> None:
        """Called when the first stream takes less than it was given."""

    def write(self, data: bytes) -> int:
        """Write data, spilling into the second stream; return bytes taken."""
        self.check_cancelled()
        if self._first_exhausted:
            return self._second_stream().write(data)
        written = self._first_stream().write(data)
        if written < len(data):
            self._first_exhausted = True
            self._on_first_exhausted()
            written += self._second_stream().write(data[written:])
        return written


class JoinedOutputStream(JoinedOutputStreamBase):
    """Output stream made of two consecutive streams."""

    def __init__(self, first: _OutputStream, second: _OutputStream) -> None:
        super().__init__()
        self._first = first
        self._second = second

    def _first_stream(self) -> _OutputStream:
        return self._first

    def _second_stream(self) -> _OutputStream:
        return self._second