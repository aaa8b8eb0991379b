import struct
from collections import deque
from dataclasses import dataclass

import pytest

from ptpwire.codec import InputStream, OutputStream, read_single_string
from ptpwire.codes import (
    ContainerType,
    DeviceProperty,
    ObjectProperty,
    OperationCode,
    ResponseType,
)
from ptpwire.errors import InvalidResponseError
from ptpwire.ids import ObjectId, StorageId
from ptpwire.messages import ObjectInfo
from ptpwire.objectformat import AssociationType, ObjectFormat, parse_datetime
from ptpwire.session import NewObjectInfo, Session
from ptpwire.streams import ByteArrayInputStream, ByteArrayOutputStream

SESSION_ID = 1


def _container(ctype, code, tid, payload=b""):
    return struct.pack("<IHHI", 12 + len(payload), ctype, code, tid) + payload


def _encoded_string(text):
    out = OutputStream()
    out.write_string(text)
    return bytes(out.data)


def _device_info_bytes(operations, model="Phone"):
    out = OutputStream()
    out.write16(100)
    out.write32(6)
    out.write16(100)
    out.write_string("vendor")
    out.write16(0)
    out.write_array(operations, out.write16)
    for _ in range(4):
        out.write_array([], out.write16)
    for text in ("Acme", model, "1.0", "0000"):
        out.write_string(text)
    return bytes(out.data)


@dataclass
class Command:
    opcode: int
    transaction: int
    params: list
    data: bytes = None


class FakePipe:
    def __init__(self, handlers=None, operations=()):
        self.handlers = dict(handlers or {})
        self.handlers.setdefault(
            OperationCode.GetDeviceInfo,
            lambda cmd: (_device_info_bytes(list(operations)), ResponseType.OK, []),
        )
        self.commands = []
        self.containers = []
        self.queue = deque()
        self.control = []
        self.cancelled = 0
        self.device = self

    def write(self, stream, timeout):
        raw = bytearray()
        while chunk := stream.read(4096):
            raw += chunk
        self.containers.append(bytes(raw))
        _, ctype, code, tid = struct.unpack_from("<IHHI", raw)
        payload = bytes(raw[12:])
        if ctype == ContainerType.Command:
            params = [value for (value,) in struct.iter_unpack("<I", payload)]
            self.commands.append(Command(code, tid, params))
        else:
            self.commands[-1].data = payload

    def read(self, out, timeout):
        if not self.queue:
            cmd = self.commands[-1]
            handler = self.handlers.get(cmd.opcode, lambda c: (None, ResponseType.OK, []))
            payload, code, params = handler(cmd)
            if payload is not None:
                self.queue.append(
                    _container(ContainerType.Data, cmd.opcode, cmd.transaction, payload)
                )
            packed = b"".join(struct.pack("<I", p) for p in params)
            self.queue.append(_container(ContainerType.Response, code, cmd.transaction, packed))
        out.write(self.queue.popleft())

    def read_interrupt(self):
        return b""

    def cancel(self):
        self.cancelled += 1

    def write_control(self, *args):
        self.control.append(args)


def make_session(handlers=None, operations=()):
    pipe = FakePipe(handlers, operations)
    return Session(pipe, SESSION_ID), pipe


def test_construction_reads_device_info():
    session, pipe = make_session()
    assert session.device_info.model == "Phone"
    first = pipe.commands[0]
    assert first.opcode == OperationCode.GetDeviceInfo
    assert first.transaction == 1
    assert first.params == []


def test_edit_support_depends_on_operations():
    session, _ = make_session()
    assert session.edit_object_supported is False
    ops = [
        OperationCode.BeginEditObject,
        OperationCode.EndEditObject,
        OperationCode.TruncateObject,
        OperationCode.SendPartialObject,
        OperationCode.GetObjectPropList,
    ]
    session2, _ = make_session(operations=ops)
    assert session2.edit_object_supported is True
    assert session2.object_property_list_supported is True


def test_transaction_ids_increase():
    session, pipe = make_session()
    session.delete_object(ObjectId(4))
    session.delete_object(ObjectId(5))
    ids = [cmd.transaction for cmd in pipe.commands]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_get_object_handles_default_parameters():
    handles = [ObjectId(7), ObjectId(8)]

    def handler(cmd):
        out = OutputStream()
        out.write_array([int(h) for h in handles], out.write32)
        return bytes(out.data), ResponseType.OK, []

    session, pipe = make_session({OperationCode.GetObjectHandles: handler})
    result = session.get_object_handles()
    assert result.object_handles == handles
    assert pipe.commands[-1].params == [int(Session.ALL_STORAGES), 0, 0]


def test_get_storage_ids_and_info():
    def ids_handler(cmd):
        return struct.pack("<II", 1, 0x10001), ResponseType.OK, []

    def info_handler(cmd):
        out = OutputStream()
        out.write16(3)
        out.write16(2)
        out.write16(0)
        out.write64(1000)
        out.write64(500)
        out.write32(0)
        out.write_string("Internal")
        out.write_string("")
        return bytes(out.data), ResponseType.OK, []

    session, pipe = make_session(
        {OperationCode.GetStorageIDs: ids_handler, OperationCode.GetStorageInfo: info_handler}
    )
    assert session.get_storage_ids().storage_ids == [StorageId(0x10001)]
    info = session.get_storage_info(StorageId(0x10001))
    assert info.name == "Internal"
    assert pipe.commands[-1].params == [0x10001]


def test_error_response_raises():
    session, _ = make_session(
        {OperationCode.GetObjectInfo: lambda c: (None, ResponseType.InvalidObjectHandle, [])}
    )
    with pytest.raises(InvalidResponseError) as info:
        session.get_object_info(ObjectId(3))
    assert info.value.response_type == ResponseType.InvalidObjectHandle


def test_session_already_open_is_accepted():
    session, pipe = make_session(
        {OperationCode.DeleteObject: lambda c: (None, ResponseType.SessionAlreadyOpen, [])}
    )
    session.delete_object(ObjectId(3))
    assert pipe.commands[-1].params == [3, 0]


def test_get_partial_object_64():
    offset = 0x100000020

    def handler(cmd):
        return b"chunk", ResponseType.OK, []

    session, pipe = make_session(
        {OperationCode.GetPartialObject64: handler},
        operations=[OperationCode.GetPartialObject64],
    )
    assert session.get_partial_object(ObjectId(2), offset, 5) == b"chunk"
    params = pipe.commands[-1].params
    assert params[0] == 2
    assert params[1] | (params[2] << 32) == offset
    assert params[3] == 5


def test_get_partial_object_32_bit_overflow():
    session, _ = make_session()
    with pytest.raises(OverflowError):
        session.get_partial_object(ObjectId(2), 0xFFFFFFF0, 0x20)


def test_get_partial_object_32():
    session, pipe = make_session(
        {OperationCode.GetPartialObject: lambda c: (b"abc", ResponseType.OK, [])}
    )
    assert session.get_partial_object(ObjectId(2), 10, 3) == b"abc"
    assert pipe.commands[-1].params == [2, 10, 3]


def test_send_object_info_returns_new_ids():
    session, pipe = make_session(
        {OperationCode.SendObjectInfo: lambda c: (None, ResponseType.OK, [1, 2, 3])}
    )
    info = ObjectInfo(filename="song.mp3", object_format=ObjectFormat.Mp3)
    result = session.send_object_info(info, StorageId(1), ObjectId(2))
    assert result == NewObjectInfo(StorageId(1), ObjectId(2), ObjectId(3))
    cmd = pipe.commands[-1]
    assert cmd.params == [1, 2]
    sent = ObjectInfo.read(InputStream(cmd.data))
    assert sent.filename == "song.mp3"
    assert sent.object_format == ObjectFormat.Mp3


def test_send_object_info_requires_filename():
    session, _ = make_session()
    with pytest.raises(ValueError):
        session.send_object_info(ObjectInfo())


def test_create_directory_sends_association():
    session, pipe = make_session(
        {OperationCode.SendObjectInfo: lambda c: (None, ResponseType.OK, [1, 5, 9])}
    )
    result = session.create_directory("Music", ObjectId(5), StorageId(1))
    assert result.object_id == ObjectId(9)
    sent = ObjectInfo.read(InputStream(pipe.commands[-1].data))
    assert sent.filename == "Music"
    assert sent.object_format == ObjectFormat.Association
    assert sent.association_type == AssociationType.GenericFolder
    assert sent.parent_object == ObjectId(5)


def test_send_object_streams_content():
    data = b"file contents"
    session, pipe = make_session()
    session.send_object(ByteArrayInputStream(data))
    cmd = pipe.commands[-1]
    assert cmd.opcode == OperationCode.SendObject
    assert cmd.data == data
    assert struct.unpack_from("<I", pipe.containers[-1])[0] == 12 + len(data)


def test_get_object_into_stream():
    session, pipe = make_session(
        {OperationCode.GetObject: lambda c: (b"content", ResponseType.OK, [])}
    )
    out = ByteArrayOutputStream()
    session.get_object(ObjectId(3), out)
    assert out.data == b"content"
    assert pipe.commands[-1].params == [3]


def test_get_thumb_into_stream():
    session, _ = make_session({OperationCode.GetThumb: lambda c: (b"thumb", ResponseType.OK, [])})
    out = ByteArrayOutputStream()
    session.get_thumb(ObjectId(3), out)
    assert out.data == b"thumb"


def test_set_integer_property_widths():
    session, pipe = make_session()
    session.set_object_property(ObjectId(1), ObjectProperty.Hidden, 1)
    assert pipe.commands[-1].data == b"\x01\x00\x00\x00"
    assert pipe.commands[-1].params == [1, ObjectProperty.Hidden]
    big = 0x100000000
    session.set_object_property(ObjectId(1), ObjectProperty.ObjectSize, big)
    assert pipe.commands[-1].data == big.to_bytes(8, "little")


def test_set_string_and_raw_property():
    session, pipe = make_session()
    session.set_object_property(ObjectId(1), ObjectProperty.ObjectFilename, "name.txt")
    assert read_single_string(pipe.commands[-1].data) == "name.txt"
    session.set_object_property(ObjectId(1), ObjectProperty.Keywords, b"\x01\x02")
    assert pipe.commands[-1].data == b"\x01\x02"


def test_set_property_rejects_unsupported_type():
    session, _ = make_session()
    with pytest.raises(TypeError):
        session.set_object_property(ObjectId(1), ObjectProperty.Hidden, 1.5)


def test_object_storage_and_parent():
    def handler(cmd):
        value = 0x10001 if cmd.params[1] == ObjectProperty.StorageId else 42
        return struct.pack("<I", value), ResponseType.OK, []

    session, _ = make_session({OperationCode.GetObjectPropValue: handler})
    assert session.get_object_storage(ObjectId(3)) == StorageId(0x10001)
    assert session.get_object_parent(ObjectId(3)) == ObjectId(42)


def test_object_storage_wildcard_rejected():
    session, _ = make_session(
        {OperationCode.GetObjectPropValue: lambda c: (struct.pack("<I", 0xFFFFFFFF), ResponseType.OK, [])}
    )
    with pytest.raises(ValueError):
        session.get_object_storage(ObjectId(3))


def test_modification_time_from_property():
    stamp = "20200102T030405"
    session, _ = make_session(
        {OperationCode.GetObjectPropValue: lambda c: (_encoded_string(stamp), ResponseType.OK, [])}
    )
    assert session.get_object_modification_time(ObjectId(3)) == parse_datetime(stamp)


def test_modification_time_falls_back_to_object_info():
    stamp = "20210304T050607"

    def info_handler(cmd):
        out = OutputStream()
        ObjectInfo(filename="a", modification_date=stamp).write(out)
        return bytes(out.data), ResponseType.OK, []

    session, pipe = make_session(
        {
            OperationCode.GetObjectPropValue: lambda c: (_encoded_string("garbage"), ResponseType.OK, []),
            OperationCode.GetObjectInfo: info_handler,
        }
    )
    assert session.get_object_modification_time(ObjectId(3)) == parse_datetime(stamp)
    assert session.get_object_modification_time(ObjectId(3)) == parse_datetime(stamp)
    prop_queries = [c for c in pipe.commands if c.opcode == OperationCode.GetObjectPropValue]
    assert len(prop_queries) == 1


def test_object_property_list_maps_root_and_all():
    session, pipe = make_session(
        {OperationCode.GetObjectPropList: lambda c: (b"\x00\x00\x00\x00", ResponseType.OK, [])}
    )
    result = session.get_object_property_list(
        Session.ROOT, ObjectFormat.Any, ObjectProperty.All, 0, 1
    )
    assert result == b"\x00\x00\x00\x00"
    assert pipe.commands[-1].params == [0, 0, 0xFFFFFFFF, 0, 1]


def test_device_properties():
    def handler(cmd):
        if cmd.params[0] == DeviceProperty.BatteryLevel:
            return b"\x50", ResponseType.OK, []
        return _encoded_string("My Phone"), ResponseType.OK, []

    session, pipe = make_session({OperationCode.GetDevicePropValue: handler})
    assert session.get_device_integer_property(DeviceProperty.BatteryLevel) == 0x50
    assert session.get_device_string_property(DeviceProperty.DeviceFriendlyName) == "My Phone"
    assert pipe.commands[-1].params == [DeviceProperty.DeviceFriendlyName]


def test_object_properties_supported():
    def handler(cmd):
        out = OutputStream()
        out.write_array([ObjectProperty.ObjectFilename], out.write16)
        return bytes(out.data), ResponseType.OK, []

    session, _ = make_session({OperationCode.GetObjectPropsSupported: handler})
    result = session.get_object_properties_supported(ObjectFormat.Mp3)
    assert result.object_property_codes == [ObjectProperty.ObjectFilename]


def test_edit_object_sequence():
    session, pipe = make_session()
    offset = 0x100000010
    with session.edit_object(ObjectId(9)) as edit:
        edit.send(offset, b"abc")
        edit.truncate(5)
    opcodes = [c.opcode for c in pipe.commands[1:]]
    assert opcodes == [
        OperationCode.BeginEditObject,
        OperationCode.SendPartialObject,
        OperationCode.TruncateObject,
        OperationCode.EndEditObject,
    ]
    send = pipe.commands[2]
    assert send.params[1] | (send.params[2] << 32) == offset
    assert send.params[3] == 3
    assert send.data == b"abc"
    assert pipe.commands[3].params == [9, 5, 0]


def test_abort_without_transaction_raises():
    session, _ = make_session()
    with pytest.raises(RuntimeError):
        session.abort_current_transaction()


def test_abort_during_transaction_sends_cancel():
    holder = {}

    def handler(cmd):
        holder["session"].abort_current_transaction()
        return None, ResponseType.OK, []

    session, pipe = make_session({OperationCode.DeleteObject: handler})
    holder["session"] = session
    session.delete_object(ObjectId(5))
    assert pipe.cancelled == 1
    _, request, _, _, data, _ = pipe.control[0]
    assert request == 0x64
    expected = struct.pack("<HI", OperationCode.CancelTransaction, pipe.commands[-1].transaction)
    assert data == expected


def test_close_sends_close_session():
    session, pipe = make_session()
    session.close()
    cmd = pipe.commands[-1]
    assert cmd.opcode == OperationCode.CloseSession
    assert cmd.transaction == 0
    assert cmd.params == [SESSION_ID]


def test_context_manager_closes():
    pipe = FakePipe()
    with Session(pipe, SESSION_ID) as session:
        session.delete_object(ObjectId(1))
    assert pipe.commands[-1].opcode == OperationCode.CloseSession