# ptpwire

A pure-Python implementation of the Picture Transfer Protocol / Media Transfer
Protocol (PTP/MTP) that cameras and Android phones speak. It covers the wire
format, container framing over a USB bulk pipe, and a session object for
listing, reading, writing and editing objects on a device.

The package has no runtime dependencies and needs Python 3.10 or newer.

## What it does not do

- It does not talk to USB itself. You supply a device object that performs
  bulk and control transfers (see "The device object" below).
- It does not find or open devices, claim interfaces or send `OpenSession`.
  `Session` assumes the session with the given id is already open on the
  device; creating it runs `GetDeviceInfo` straight away.
- It does not receive device events. `BulkPipe.read_interrupt` always returns
  empty bytes, so `PipePacketer.poll_event` returns `None`.
- There is no command-line program.

## Modules

- `ptpwire.codes`: `OperationCode`, `ResponseType`, `ContainerType`,
  `ObjectProperty`, `DeviceProperty`, `DataTypeCode` (all `IntEnum`).
- `ptpwire.ids`: `ObjectId` and `StorageId`, frozen and ordered 32-bit
  identifiers. `int()` gives the raw value.
- `ptpwire.objectformat`: `ObjectFormat`, `AssociationType`, `MAX_OBJECT_SIZE`,
  `object_format_from_filename`, `parse_datetime` and `format_datetime`.
- `ptpwire.codec`: `InputStream` and `OutputStream` for little-endian
  integers, PTP strings and arrays, plus `read_single_integer` and
  `read_single_string`.
- `ptpwire.messages`: the datasets `DeviceInfo`, `ObjectHandles`, `StorageIDs`,
  `StorageInfo`, `ObjectInfo` and `ObjectPropertiesSupported`.
- `ptpwire.proplist`: `parse_object_property_list`, with the value parsers
  `parse_integer_property` and `parse_string_property`.
- `ptpwire.container`: `OperationRequest`, `DataRequest`, `ResponseHeader` and
  `container_bytes`.
- `ptpwire.streams`: cancellable streams `ByteArrayInputStream`,
  `ByteArrayOutputStream`, `FixedSizeOutputStream`, `MemoryOutputStream`,
  `JoinedInputStream` and `JoinedOutputStream`. A cancelled stream raises
  `OperationCancelledError` on its next read or write.
- `ptpwire.usbrequest`: the standard USB control requests `DeviceRequest`,
  `InterfaceRequest` and `EndpointRequest`, and the enums `RequestType`,
  `DescriptorType`, `EndpointType` and `EndpointDirection`.
- `ptpwire.bulkpipe`: `BulkPipe`, which groups the bulk in, bulk out and
  interrupt endpoints of one interface.
- `ptpwire.packeter`: `PipePacketer`, which sends requests and splits replies
  into a data phase and a response.
- `ptpwire.session`: `Session`, `ObjectEditSession` and `NewObjectInfo`.
- `ptpwire.errors`: `InvalidResponseError`, `UsbTimeoutError`,
  `DeviceNotFoundError`, `DeviceBusyError` and `response_name`.

## Encoding and decoding

```python
from ptpwire.codec import InputStream, OutputStream

out = OutputStream()
out.write32(0x12345678)
out.write_string("Music")

stream = InputStream(out.data)
assert stream.read32() == 0x12345678
assert stream.read_string() == "Music"
```

Strings are a count byte followed by UTF-16 code units and a null terminator.
The count includes the terminator and may not exceed 255, otherwise
`write_string` raises `ValueError`. Characters outside the Basic Multilingual
Plane are written as `?`.

Reading past the end of the buffer raises `EOFError`.

## Parsing property lists

```python
from ptpwire.proplist import parse_object_property_list, parse_integer_property

for object_id, prop, value in parse_object_property_list(data, parse_integer_property):
    print(object_id, prop, value)
```

`data` is the raw reply of `Session.get_object_property_list`. A value whose
data type does not suit the parser raises `ValueError`.

## The device object

`BulkPipe` calls the following on the device object you give it:

- `get_configuration()` and `set_configuration(index)`
- `clear_halt(endpoint)`
- `read_bulk(endpoint, output_stream, timeout)`: write the received bytes to
  `output_stream.write(data)`.
- `write_bulk(endpoint, input_stream, timeout)`: take bytes from
  `input_stream.read(size)`. The total length is `input_stream.size`.

`PipePacketer.abort` also calls
`write_control(request_type, request, value, index, data, timeout)`. The USB
request classes call that method and
`read_control(request_type, request, value, index, length, timeout)`.

`BulkPipe.create(device, configuration, interface, claim_token)` reads
`configuration.index` and `interface.endpoints`. Each endpoint needs a
`direction` (`EndpointDirection`) and a `type` (`EndpointType`). If the bulk
in, bulk out or interrupt endpoint is missing, `create` raises `ValueError`.

## Working with a session

```python
from ptpwire.bulkpipe import BulkPipe
from ptpwire.session import Session
from ptpwire.streams import ByteArrayOutputStream

pipe = BulkPipe.create(device, configuration, interface, claim_token)

with Session(pipe, 1) as session:
    for storage in session.get_storage_ids().storage_ids:
        info = session.get_storage_info(storage)
        print(info.name, info.free_space_in_bytes)

    for object_id in session.get_object_handles().object_handles:
        out = ByteArrayOutputStream()
        session.get_object(object_id, out)
```

Leaving the `with` block sends `CloseSession`. You can also call
`session.close()` directly.

To upload a file, call `send_object_info` with an `ObjectInfo`, then call
`send_object` with an input stream such as `ByteArrayInputStream`.
`create_directory` makes a folder.

Partial writes need a device that supports the edit operations; check
`session.edit_object_supported` first:

```python
with session.edit_object(object_id) as edit:
    edit.truncate(0)
    edit.send(0, b"new content")
```

`set_object_property` accepts raw bytes, a string, or an unsigned integer. An
integer is sent as 4 bytes, or as 8 bytes if it needs more than 32.
`get_object_modification_time` returns a POSIX timestamp.
`abort_current_transaction` cancels a running transfer from another thread.

A response code other than `OK` or `SessionAlreadyOpen` raises
`InvalidResponseError`. Its `response_type` attribute holds the code, and its
message includes the code's name.