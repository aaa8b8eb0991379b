"""USB standard control requests addressed to a device, an interface or an endpoint."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Protocol

__all__ = [
    "RequestType",
    "DescriptorType",
    "EndpointType",
    "EndpointDirection",
    "BaseRequest",
    "DeviceRequest",
    "InterfaceRequest",
    "EndpointRequest",
]


class _ControlDevice(Protocol):
    def read_control(
        self, request_type: int, request: int, value: int, index: int, length: int, timeout: int
    ) -> bytes: ...

    def write_control(
        self, request_type: int, request: int, value: int, index: int, data: bytes, timeout: int
    ) -> None: ...


class RequestType(IntEnum):
    """Bits of the bmRequestType field; combine members with "|"."""

    HostToDevice = 0x00
    DeviceToHost = 0x80

    Standard = 0x00
    Class = 0x20
    Vendor = 0x40

    Device = 0x00
    Interface = 0x01
    Endpoint = 0x02
    Other = 0x03


class DescriptorType(IntEnum):
    """Type of a USB descriptor."""

    Device = 1
    Configuration = 2
    String = 3
    Interface = 4
    Endpoint = 5
    DeviceQualifier = 6
    OtherSpeedConfiguration = 7
    InterfacePower = 8
    OnTheGo = 9


class EndpointType(IntEnum):
    """Transfer type of an endpoint."""

    Control = 0
    Isochronous = 1
    Bulk = 2
    Interrupt = 3


class EndpointDirection(Enum):
    """Direction of an endpoint."""

    In = 0
    Out = 1
    Both = 2


def _padded(data: bytes, length: int) -> bytes:
    """Return data cut or zero-padded to exactly length bytes."""
    return bytes(data[:length]).ljust(length, b"\0")


def _status(data: bytes) -> int:
    return int.from_bytes(_padded(data, 2), "little")


class BaseRequest:
    """Common state of standard requests: target device and timeout in milliseconds."""

    DEFAULT_TIMEOUT = 1000

    def __init__(self, device: _ControlDevice, timeout: int = DEFAULT_TIMEOUT) -> None:
        self.device = device
        self.timeout = timeout

    def _read(self, request_type: int, request: int, value: int, index: int, length: int) -> bytes:
        data = self.device.read_control(
            int(request_type), int(request), value, index, length, self.timeout
        )
        return _padded(data, length)

    def _write(
        self, request_type: int, request: int, value: int, index: int, data: bytes = b""
    ) -> None:
        self.device.write_control(
            int(request_type), int(request), value, index, bytes(data), self.timeout
        )


class DeviceRequest(BaseRequest):
    """Standard requests addressed to the device."""

    class Type(IntEnum):
        DeviceOut = RequestType.HostToDevice | RequestType.Standard | RequestType.Device
        DeviceIn = RequestType.DeviceToHost | RequestType.Standard | RequestType.Device

    class Request(IntEnum):
        GetStatus = 0
        ClearFeature = 1
        SetFeature = 3
        SetAddress = 5
        GetDescriptor = 6
        SetDescriptor = 7
        GetConfiguration = 8
        SetConfiguration = 9

    def get_status(self) -> int:
        data = self._read(self.Type.DeviceIn, self.Request.GetStatus, 0, 0, 2)
        return _status(data)

    def clear_feature(self, feature: int) -> None:
        self._write(self.Type.DeviceOut, self.Request.ClearFeature, feature, 0)

    def set_feature(self, feature: int) -> None:
        self._write(self.Type.DeviceOut, self.Request.SetFeature, feature, 0)

    def set_address(self, address: int) -> None:
        self._write(self.Type.DeviceOut, self.Request.SetAddress, address, 0)

    def get_descriptor(self, descriptor_type: int, index: int, lang: int = 0) -> bytes:
        """Read a descriptor into a 255-byte buffer."""
        value = ((int(descriptor_type) << 8) | index) & 0xFFFF
        return self._read(self.Type.DeviceIn, self.Request.GetDescriptor, value, lang, 255)

    def set_descriptor(self, descriptor_type: int, index: int, lang: int, data: bytes) -> None:
        value = ((int(descriptor_type) << 8) | index) & 0xFFFF
        self._write(self.Type.DeviceOut, self.Request.SetDescriptor, value, lang, data)

    def get_configuration(self) -> int:
        data = self._read(self.Type.DeviceIn, self.Request.GetConfiguration, 0, 0, 1)
        return data[0]

    def set_configuration(self, index: int) -> None:
        self._write(self.Type.DeviceOut, self.Request.SetConfiguration, index, 0)


class InterfaceRequest(BaseRequest):
    """Standard requests addressed to one interface."""

    class Type(IntEnum):
        InterfaceOut = RequestType.HostToDevice | RequestType.Standard | RequestType.Interface
        InterfaceIn = RequestType.DeviceToHost | RequestType.Standard | RequestType.Interface

    class Request(IntEnum):
        GetStatus = 0
        ClearFeature = 1
        SetFeature = 3
        GetInterface = 10
        SetInterface = 17

    def __init__(
        self, device: _ControlDevice, interface: int, timeout: int = BaseRequest.DEFAULT_TIMEOUT
    ) -> None:
        super().__init__(device, timeout)
        self.interface = interface

    def get_status(self) -> int:
        data = self._read(self.Type.InterfaceIn, self.Request.GetStatus, 0, self.interface, 2)
        return _status(data)

    def clear_feature(self, feature: int) -> None:
        self._write(self.Type.InterfaceOut, self.Request.ClearFeature, feature, self.interface)

    def set_feature(self, feature: int) -> None:
        self._write(self.Type.InterfaceOut, self.Request.SetFeature, feature, self.interface)

    def get_interface(self) -> int:
        data = self._read(self.Type.InterfaceIn, self.Request.GetInterface, 0, self.interface, 1)
        return data[0]

    def set_interface(self, alt: int) -> None:
        self._write(self.Type.InterfaceOut, self.Request.SetInterface, alt, self.interface)


class EndpointRequest(BaseRequest):
    """Standard requests addressed to one endpoint."""

    class Type(IntEnum):
        EndpointOut = RequestType.HostToDevice | RequestType.Standard | RequestType.Endpoint
        EndpointIn = RequestType.DeviceToHost | RequestType.Standard | RequestType.Endpoint

    class Request(IntEnum):
        GetStatus = 0
        ClearFeature = 1
        SetFeature = 3
        SynchFrame = 18

    def __init__(
        self, device: _ControlDevice, endpoint: int, timeout: int = BaseRequest.DEFAULT_TIMEOUT
    ) -> None:
        super().__init__(device, timeout)
        self.endpoint = endpoint

    def get_status(self) -> int:
        data = self._read(self.Type.EndpointIn, self.Request.GetStatus, 0, self.endpoint, 2)
        return _status(data)

    def clear_feature(self, feature: int) -> None:
        self._write(self.Type.EndpointOut, self.Request.ClearFeature, feature, self.endpoint)

    def set_feature(self, feature: int) -> None:
        self._write(self.Type.EndpointOut, self.Request.SetFeature, feature, self.endpoint)

    def synch_frame(self, frame_index: int) -> None:
        """Issue SYNCH_FRAME; the frame index is validated but sent with no data stage."""
        if not 0 <= frame_index <= 0xFFFF:
            raise ValueError(f"frame index {frame_index} does not fit in 16 bits")
        self._write(self.Type.EndpointOut, self.Request.SynchFrame, 0, self.endpoint)