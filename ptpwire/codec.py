"""Little-endian encoding and decoding of MTP data sets."""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

__all__ = ["InputStream", "OutputStream", "read_single_integer", "read_single_string"]

T = TypeVar("T")

_MAX_STRING_CHARS = 255


class InputStream:
    """Sequential reader of little-endian MTP values from a byte buffer."""

    def __init__(self, data: bytes | bytearray, offset: int = 0) -> None:
        self._data = bytes(data)
        self._offset = offset

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def skip(self, size: int) -> None:
        """Advance the read position by size bytes."""
        self._offset += size

    def _take(self, size: int) -> int:
        end = self._offset + size
        if self._offset < 0 or end > len(self._data):
            raise EOFError(f"cannot read {size} bytes at offset {self._offset}")
        value = int.from_bytes(self._data[self._offset : end], "little")
        self._offset = end
        return value

    def read8(self) -> int:
        return self._take(1)

    def read16(self) -> int:
        return self._take(2)

    def read32(self) -> int:
        return self._take(4)

    def read64(self) -> int:
        return self._take(8)

    def read_string(self, length: int | None = None) -> str:
        """Read a UTF-16 string; without length, a leading count byte gives it."""
        if length is None:
            length = self.read8()
        chars = (self.read16() for _ in range(length))
        return "".join(chr(ch) for ch in chars if ch != 0)

    def read_array(self, reader: Callable[[], T]) -> list[T]:
        """Read a 32-bit count followed by that many elements, each by reader()."""
        if self.at_end:
            return []
        count = self.read32()
        return [reader() for _ in range(count)]


class OutputStream:
    """Writer of little-endian MTP values, appending to a bytearray."""

    def __init__(self, data: bytearray | None = None) -> None:
        self._data = data if data is not None else bytearray()

    @property
    def data(self) -> bytearray:
        return self._data

    def _put(self, value: int, size: int) -> None:
        mask = (1 << (8 * size)) - 1
        self._data += (value & mask).to_bytes(size, "little")

    def write8(self, value: int) -> None:
        self._put(value, 1)

    def write16(self, value: int) -> None:
        self._put(value, 2)

    def write32(self, value: int) -> None:
        self._put(value, 4)

    def write64(self, value: int) -> None:
        self._put(value, 8)

    @staticmethod
    def utf8_length(value: str | bytes) -> int:
        """Count the characters of a UTF-8 string (its non-continuation bytes)."""
        raw = value.encode("utf-8", "surrogatepass") if isinstance(value, str) else value
        return sum(1 for byte in raw if (byte & 0xC0) != 0x80)

    def write_string(self, value: str) -> None:
        """Write a counted, null-terminated UTF-16 string (at most 255 units)."""
        if not value:
            self.write8(0)
            return
        length = 1 + self.utf8_length(value)
        if length > _MAX_STRING_CHARS:
            raise ValueError(
                "string is too big (only 255 chars allowed, including null terminator)"
            )
        self.write8(length)
        for ch in value:
            code = ord(ch)
            self.write16(code if code <= 0xFFFF else ord("?"))
        self.write16(0)

    def write_array(self, values: Iterable[T], writer: Callable[[T], None]) -> None:
        """Write a 32-bit count followed by each element through writer."""
        items = list(values)
        self.write32(len(items))
        for item in items:
            writer(item)


def read_single_integer(data: bytes | bytearray) -> int:
    """Decode an integer property whose width is the length of data."""
    stream = InputStream(data)
    readers = {8: stream.read64, 4: stream.read32, 2: stream.read16, 1: stream.read8}
    try:
        reader = readers[len(data)]
    except KeyError:
        raise ValueError("unexpected length for numeric property") from None
    return reader()


def read_single_string(data: bytes | bytearray) -> str:
    """Decode a counted string property."""
    return InputStream(data).read_string()