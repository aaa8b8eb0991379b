import struct

import pytest

from ptpwire.codes import ContainerType, ResponseType
from ptpwire.packeter import PipePacketer
from ptpwire.streams import ByteArrayInputStream, ByteArrayOutputStream


class FakeDevice:
    def __init__(self):
        self.controls = []

    def write_control(self, request_type, request, value, index, data, timeout):
        self.controls.append((request_type, request, value, index, data, timeout))


class FakePipe:
    def __init__(self, messages=(), chunk=None, interrupt=b""):
        self.messages = list(messages)
        self.chunk = chunk
        self.interrupt = interrupt
        self.written = []
        self.cancelled = 0
        self.device = FakeDevice()

    def read(self, output_stream, timeout):
        if not self.messages:
            raise LookupError("no more messages")
        msg = self.messages.pop(0)
        step = self.chunk or len(msg)
        for start in range(0, len(msg), step):
            output_stream.write(msg[start : start + step])

    def write(self, input_stream, timeout):
        self.written.append((input_stream, timeout))

    def read_interrupt(self):
        data, self.interrupt = self.interrupt, b""
        return data

    def cancel(self):
        self.cancelled += 1


def message(container_type, code, transaction, payload=b""):
    return struct.pack("<IHHI", 12 + len(payload), container_type, code, transaction) + payload


def test_write_bytes_wraps_into_stream():
    pipe = FakePipe()
    PipePacketer(pipe).write(b"\x01\x02\x03", 500)
    stream, timeout = pipe.written[0]
    assert timeout == 500
    assert stream.read(10) == b"\x01\x02\x03"


def test_write_stream_is_passed_through():
    pipe = FakePipe()
    source = ByteArrayInputStream(b"abc")
    PipePacketer(pipe).write(source, 100)
    assert pipe.written == [(source, 100)]


@pytest.mark.parametrize("chunk", [None, 1, 3, 5, 7])
def test_read_data_collects_data_and_response(chunk):
    params = struct.pack("<II", 10, 20)
    pipe = FakePipe(
        [
            message(ContainerType.Data, 0x1009, 5, b"payload"),
            message(ContainerType.Response, ResponseType.OK, 5, params),
        ],
        chunk=chunk,
    )
    data, code, response = PipePacketer(pipe).read_data(5)
    assert data == b"payload"
    assert code == ResponseType.OK
    assert response == params


def test_messages_of_other_transactions_are_dropped():
    pipe = FakePipe(
        [
            message(ContainerType.Data, 0x1009, 7, b"stale"),
            message(ContainerType.Response, ResponseType.GeneralError, 7),
            message(ContainerType.Data, 0x1009, 5, b"fresh"),
            message(ContainerType.Response, ResponseType.OK, 5),
        ]
    )
    out = ByteArrayOutputStream()
    code, response = PipePacketer(pipe).read(5, out)
    assert out.data == b"fresh"
    assert code == ResponseType.OK
    assert response == b""
    assert pipe.messages == []


def test_transaction_zero_accepts_any():
    pipe = FakePipe([message(ContainerType.Response, ResponseType.SessionNotOpen, 42)])
    data, code, _ = PipePacketer(pipe).read_data(0)
    assert data == b""
    assert code == ResponseType.SessionNotOpen


def test_event_container_does_not_finish_read():
    pipe = FakePipe(
        [
            message(ContainerType.Event, 0x4002, 3),
            message(ContainerType.Response, ResponseType.OK, 3),
        ]
    )
    _, code, _ = PipePacketer(pipe).read_data(3)
    assert code == ResponseType.OK
    assert pipe.messages == []


def test_missing_response_keeps_reading():
    pipe = FakePipe([message(ContainerType.Data, 0x1009, 3, b"x")])
    with pytest.raises(LookupError):
        PipePacketer(pipe).read_data(3)


def test_too_small_size_is_rejected():
    bad = struct.pack("<I", 2) + b"\x00" * 8
    pipe = FakePipe([bad])
    with pytest.raises(ValueError, match="invalid size"):
        PipePacketer(pipe).read_data(1)


def test_poll_event_without_interrupt_data():
    assert PipePacketer(FakePipe()).poll_event() is None


def test_read_ignores_interrupt_errors():
    pipe = FakePipe(
        [message(ContainerType.Response, ResponseType.OK, 2)],
        interrupt=message(ContainerType.Data, 0, 1),
    )
    _, code, _ = PipePacketer(pipe).read_data(2)
    assert code == ResponseType.OK
    assert pipe.interrupt == b""


def test_abort_cancels_and_sends_control_request():
    pipe = FakePipe()
    PipePacketer(pipe).abort(5, 250)
    assert pipe.cancelled == 1
    assert pipe.device.controls == [(0x21, 0x64, 0, 0, b"\x01\x40\x05\x00\x00\x00", 250)]


def test_pipe_property_returns_pipe():
    pipe = FakePipe()
    assert PipePacketer(pipe).pipe is pipe