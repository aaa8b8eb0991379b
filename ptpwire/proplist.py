"""Parsing of object property lists returned by GetObjectPropList."""

from __future__ import annotations

from typing import Callable, Iterator, TypeVar

from ptpwire.codec import InputStream
from ptpwire.codes import DataTypeCode, ObjectProperty
from ptpwire.ids import ObjectId

__all__ = ["parse_integer_property", "parse_string_property", "parse_object_property_list"]

T = TypeVar("T")


def parse_integer_property(stream: InputStream, data_type: int) -> int:
    """Read an integer value of the given data type (as unsigned)."""
    readers = {
        DataTypeCode.Uint8: stream.read8,
        DataTypeCode.Uint16: stream.read16,
        DataTypeCode.Uint32: stream.read32,
        DataTypeCode.Uint64: stream.read64,
        DataTypeCode.Int8: stream.read8,
        DataTypeCode.Int16: stream.read16,
        DataTypeCode.Int32: stream.read32,
        DataTypeCode.Int64: stream.read64,
    }
    try:
        reader = readers[data_type]
    except KeyError:
        raise ValueError("got invalid type") from None
    return reader()


def parse_string_property(stream: InputStream, data_type: int) -> str:
    """Read a string value; the data type must be String."""
    if data_type != DataTypeCode.String:
        raise ValueError("got invalid type")
    return stream.read_string()


def parse_object_property_list(
    data: bytes | bytearray,
    value_parser: Callable[[InputStream, int], T],
) -> Iterator[tuple[ObjectId, int, T]]:
    """Yield (object, property, value) for each element of a property list."""
    stream = InputStream(data)
    count = stream.read32()
    for _ in range(count):
        object_id = ObjectId(stream.read32())
        code = stream.read16()
        try:
            prop: int = ObjectProperty(code)
        except ValueError:
            prop = code
        data_type = stream.read16()
        yield object_id, prop, value_parser(stream, data_type)