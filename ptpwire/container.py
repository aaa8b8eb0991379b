"""Operation and data requests, response headers and USB container framing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Protocol

from ptpwire.codec import InputStream, OutputStream
from ptpwire.codes import ContainerType, ResponseType

from ptpwire.objectformat import MAX_OBJECT_SIZE

__all__ = ["RequestBase", "OperationRequest", "DataRequest", "ResponseHeader", "container_bytes"]

_MAX_PARAMETERS = 5
_CONTAINER_HEADER_SIZE = 6


class _Message(Protocol):
    TYPE: ClassVar[ContainerType]

    @property
    def data(self) -> bytearray: ...


class RequestBase:
    """Request payload starting with the operation code and transaction id."""

    def __init__(self, opcode: int, transaction: int) -> None:
        self.data = bytearray()
        stream = OutputStream(self.data)
        stream.write16(opcode)
        stream.write32(transaction)

    def append(self, data: bytes | bytearray) -> None:
        """Append raw bytes to the request payload."""
        self.data += data


class OperationRequest(RequestBase):
    """Command request carrying up to five 32-bit parameters."""

    TYPE: ClassVar[ContainerType] = ContainerType.Command

    def __init__(self, opcode: int, transaction: int, *params: int) -> None:
        if len(params) > _MAX_PARAMETERS:
            raise ValueError(f"at most {_MAX_PARAMETERS} parameters allowed, got {len(params)}")
        super().__init__(opcode, transaction)
        stream = OutputStream(self.data)
        for param in params:
            stream.write32(param)


class DataRequest(RequestBase):
    """Data phase request; its payload follows the header."""

    TYPE: ClassVar[ContainerType] = ContainerType.Data


@dataclass(frozen=True)
class ResponseHeader:
    """Container type, response code and transaction id of a message."""

    SIZE: ClassVar[int] = 8

    container_type: int
    response_type: int
    transaction: int

    @classmethod
    def read(cls, stream: InputStream) -> ResponseHeader:
        raw_container = stream.read16()
        raw_response = stream.read16()
        transaction = stream.read32()
        try:
            container_type: int = ContainerType(raw_container)
        except ValueError:
            container_type = raw_container
        try:
            response_type: int = ResponseType(raw_response)
        except ValueError:
            response_type = raw_response
        return cls(container_type, response_type, transaction)


def container_bytes(message: _Message, payload_size: int = 0) -> bytes:
    """Frame a request with its size and container type; payload_size counts data sent after."""
    out = OutputStream()
    size = len(message.data) + _CONTAINER_HEADER_SIZE + payload_size
    out.write32(min(size, MAX_OBJECT_SIZE))
    out.write16(message.TYPE)
    out.data.extend(message.data)
    return bytes(out.data)