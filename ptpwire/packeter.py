"""Message framing over a bulk pipe: sends requests and splits replies into data and response."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from ptpwire.codec import InputStream
from ptpwire.codes import ContainerType, OperationCode
from ptpwire.container import OperationRequest, ResponseHeader
from ptpwire.streams import (
    ByteArrayInputStream,
    ByteArrayOutputStream,
    CancellableStream,
    FixedSizeOutputStream,
    JoinedOutputStreamBase,
)
from ptpwire.usbrequest import RequestType

__all__ = ["PipePacketer"]

log = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10000
_SIZE_FIELD = 4
_CANCEL_REQUEST = 0x64
_CANCEL_REQUEST_TYPE = RequestType.HostToDevice | RequestType.Class | RequestType.Interface


class _Pipe(Protocol):
    device: Any

    def read(self, output_stream: Any, timeout: int) -> None: ...

    def write(self, input_stream: Any, timeout: int) -> None: ...

    def read_interrupt(self) -> bytes: ...

    def cancel(self) -> None: ...


class _DiscardStream(CancellableStream):
    """Output stream swallowing everything written to it."""

    def write(self, data: bytes) -> int:
        return len(data)


class _MessageParsingStream(JoinedOutputStreamBase):
    """Strips and checks the leading 32-bit size of a container, passing the rest on."""

    def __init__(self, stream: Any) -> None:
        super().__init__()
        self._header = FixedSizeOutputStream(_SIZE_FIELD)
        self._stream = stream
        self._offset = 0
        self.size = _SIZE_FIELD

    def _first_stream(self) -> FixedSizeOutputStream:
        return self._header

    def _second_stream(self) -> Any:
        return self._stream

    def _on_first_exhausted(self) -> None:
        self._first_exhausted = True
        size = InputStream(self._header.data).read32()
        if size < _SIZE_FIELD:
            raise ValueError("invalid size/malformed message")
        self.size = size

    def write(self, data: bytes) -> int:
        written = super().write(data)
        self._offset += written
        if not self._first_exhausted and self._offset == _SIZE_FIELD:
            self._on_first_exhausted()
        return written


class _HeaderParserStream(JoinedOutputStreamBase):
    """Reads the container header and routes the payload to data, response or nowhere."""

    def __init__(self, transaction: int, data_output: Any) -> None:
        super().__init__()
        self._offset = 0
        self._transaction = transaction
        self._header = FixedSizeOutputStream(ResponseHeader.SIZE)
        self._response = ByteArrayOutputStream()
        self._data_output = data_output
        self._output: Any = None
        self.valid = True
        self.finished = False
        self.response_code: int | None = None

    @property
    def response(self) -> bytes:
        return self._response.data

    def _first_stream(self) -> FixedSizeOutputStream:
        return self._header

    def _second_stream(self) -> Any:
        if self._output is None:
            raise RuntimeError("no data stream")
        return self._output

    def _on_first_exhausted(self) -> None:
        self._first_exhausted = True
        header = ResponseHeader.read(InputStream(self._header.data))
        if self._transaction and self._transaction != header.transaction:
            log.error(
                "drop message %04x, response: %04x, transaction: %08x, expected transaction: %08x",
                int(header.container_type),
                int(header.response_type),
                header.transaction,
                self._transaction,
            )
            self.valid = False
            self._output = _DiscardStream()
            return

        if header.container_type == ContainerType.Data:
            self._output = self._data_output
        elif header.container_type == ContainerType.Response:
            self._output = self._response
            self.response_code = header.response_type
            self.finished = True
        else:
            self.valid = False
            self._output = _DiscardStream()

    def write(self, data: bytes) -> int:
        written = super().write(data)
        self._offset += written
        if not self._first_exhausted and self._offset == ResponseHeader.SIZE:
            self._on_first_exhausted()
        return written


class PipePacketer:
    """Packs requests into bulk transfers and collects data and response phases."""

    def __init__(self, pipe: _Pipe) -> None:
        self._pipe = pipe

    @property
    def pipe(self) -> _Pipe:
        return self._pipe

    def write(self, data: Any, timeout: int = _DEFAULT_TIMEOUT) -> None:
        """Send raw bytes or an input stream over the pipe."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            data = ByteArrayInputStream(bytes(data))
        self._pipe.write(data, timeout)

    def _read_message(self, output_stream: Any, timeout: int) -> None:
        self._pipe.read(_MessageParsingStream(output_stream), timeout)

    def poll_event(self) -> int | None:
        """Read a pending interrupt event and return its code, or None if there is none."""
        data = self._pipe.read_interrupt()
        if not data:
            return None
        log.debug("interrupt: %s", bytes(data).hex(" "))
        stream = InputStream(data)
        stream.read32()  # size
        container_type = stream.read16()
        event_code = stream.read16()
        stream.read32()  # session id
        stream.read32()  # transaction id
        if container_type != ContainerType.Event:
            raise ValueError("not an event")
        log.debug("event %08x", event_code)
        return event_code

    def read(
        self, transaction: int, output_stream: Any, timeout: int = _DEFAULT_TIMEOUT
    ) -> tuple[int, bytes]:
        """Read messages until the response of transaction; data goes to output_stream.

        Returns the response code and the response parameters. Transaction 0 accepts any.
        """
        try:
            self.poll_event()
        except Exception as ex:
            log.error("exception in interrupt: %s", ex)

        while True:
            parser = _HeaderParserStream(transaction, output_stream)
            self._read_message(parser, timeout)
            if parser.finished:
                assert parser.response_code is not None
                return parser.response_code, parser.response

    def read_data(
        self, transaction: int, timeout: int = _DEFAULT_TIMEOUT
    ) -> tuple[bytes, int, bytes]:
        """Like read, collecting the data phase; returns data, response code and parameters."""
        stream = ByteArrayOutputStream()
        code, response = self.read(transaction, stream, timeout)
        return stream.data, code, response

    def abort(self, transaction: int, timeout: int = _DEFAULT_TIMEOUT) -> None:
        """Cancel the current transfer and send a class-specific cancel request."""
        self._pipe.cancel()
        request = OperationRequest(OperationCode.CancelTransaction, transaction)
        log.debug("abort control message: %s", bytes(request.data).hex(" "))
        self._pipe.device.write_control(
            int(_CANCEL_REQUEST_TYPE), _CANCEL_REQUEST, 0, 0, bytes(request.data), timeout
        )