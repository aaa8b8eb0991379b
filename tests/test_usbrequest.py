import pytest

from ptpwire.usbrequest import (
    BaseRequest,
    DescriptorType,
    DeviceRequest,
    EndpointDirection,
    EndpointRequest,
    EndpointType,
    InterfaceRequest,
    RequestType,
)


class FakeDevice:
    def __init__(self, reply=b""):
        self.reply = reply
        self.reads = []
        self.writes = []

    def read_control(self, request_type, request, value, index, length, timeout):
        self.reads.append((request_type, request, value, index, length, timeout))
        return self.reply

    def write_control(self, request_type, request, value, index, data, timeout):
        self.writes.append((request_type, request, value, index, data, timeout))


def test_request_type_combination_for_class_interface():
    assert RequestType(0x20) is RequestType.Class
    assert RequestType(0x01) is RequestType.Interface
    combined = RequestType.HostToDevice | RequestType.Class | RequestType.Interface
    assert combined == 0x21


def test_request_direction_types():
    device = FakeDevice(b"\x00\x00")
    DeviceRequest(device).get_status()
    assert device.reads[0][0] == 0x80

    device = FakeDevice(b"\x00")
    InterfaceRequest(device, 0).set_interface(0)
    assert device.writes[0][0] == 0x01

    device = FakeDevice(b"\x00\x00")
    EndpointRequest(device, 0).get_status()
    assert device.reads[0][0] == 0x82


def test_endpoint_enums():
    assert EndpointType(2) is EndpointType.Bulk
    assert EndpointType(3) is EndpointType.Interrupt
    assert EndpointDirection(EndpointDirection.Out.value) is EndpointDirection.Out
    assert EndpointDirection.Out != EndpointDirection.In


def test_default_timeout_used():
    device = FakeDevice(b"\x00\x00")
    DeviceRequest(device).get_status()
    assert device.reads[0][-1] == BaseRequest.DEFAULT_TIMEOUT == 1000


def test_device_get_status_little_endian():
    device = FakeDevice(b"\x01\x02")
    status = DeviceRequest(device, timeout=5).get_status()
    assert status == int.from_bytes(b"\x01\x02", "little")
    assert device.reads == [
        (int(DeviceRequest.Type.DeviceIn), int(DeviceRequest.Request.GetStatus), 0, 0, 2, 5)
    ]


def test_short_reply_is_zero_padded():
    device = FakeDevice(b"\x07")
    assert DeviceRequest(device).get_status() == 7


def test_device_features_and_address():
    device = FakeDevice()
    req = DeviceRequest(device, timeout=3)
    req.clear_feature(1)
    req.set_feature(2)
    req.set_address(9)
    out = int(DeviceRequest.Type.DeviceOut)
    assert device.writes == [
        (out, int(DeviceRequest.Request.ClearFeature), 1, 0, b"", 3),
        (out, int(DeviceRequest.Request.SetFeature), 2, 0, b"", 3),
        (out, int(DeviceRequest.Request.SetAddress), 9, 0, b"", 3),
    ]


def test_get_descriptor_value_and_buffer():
    device = FakeDevice(b"\x12\x01")
    data = DeviceRequest(device).get_descriptor(DescriptorType.String, 2, 0x409)
    assert len(data) == 255
    assert data[:2] == b"\x12\x01"
    assert set(data[2:]) == {0}
    _, request, value, index, length, _ = device.reads[0]
    assert request == DeviceRequest.Request.GetDescriptor
    assert value >> 8 == DescriptorType.String
    assert value & 0xFF == 2
    assert index == 0x409
    assert length == 255


def test_set_descriptor_sends_data():
    device = FakeDevice()
    DeviceRequest(device).set_descriptor(DescriptorType.Device, 0, 0, b"abc")
    assert device.writes[0][4] == b"abc"
    assert device.writes[0][2] >> 8 == DescriptorType.Device


def test_configuration_round():
    device = FakeDevice(b"\x04")
    req = DeviceRequest(device)
    assert req.get_configuration() == 4
    req.set_configuration(4)
    assert device.writes[0][1:3] == (int(DeviceRequest.Request.SetConfiguration), 4)


def test_interface_requests_use_interface_index():
    device = FakeDevice(b"\x03\x00")
    req = InterfaceRequest(device, 5)
    assert req.get_status() == 3
    assert req.get_interface() == 3
    req.set_interface(1)
    req.clear_feature(0)
    req.set_feature(0)
    assert all(call[3] == 5 for call in device.reads + device.writes)
    assert device.writes[0][1] == InterfaceRequest.Request.SetInterface
    assert device.writes[0][2] == 1


def test_endpoint_requests_use_endpoint_index():
    device = FakeDevice(b"\x01\x00")
    req = EndpointRequest(device, 0x81)
    assert req.get_status() == 1
    req.clear_feature(0)
    req.set_feature(0)
    req.synch_frame(10)
    assert all(call[3] == 0x81 for call in device.reads + device.writes)
    assert device.writes[-1][1] == EndpointRequest.Request.SynchFrame
    assert device.writes[-1][4] == b""


def test_synch_frame_rejects_large_index():
    with pytest.raises(ValueError):
        EndpointRequest(FakeDevice(), 1).synch_frame(0x10000)