"""MTP session: runs transactions against a device and manipulates its objects."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from ptpwire.codec import InputStream, OutputStream, read_single_integer, read_single_string
from ptpwire.codes import OperationCode, ResponseType
from ptpwire.container import DataRequest, OperationRequest, container_bytes
from ptpwire.errors import InvalidResponseError
from ptpwire.ids import ObjectId, StorageId
from ptpwire.messages import (
    DeviceInfo,
    ObjectHandles,
    ObjectInfo,
    ObjectPropertiesSupported,
    StorageIDs,
    StorageInfo,
)
from ptpwire.objectformat import AssociationType, ObjectFormat, parse_datetime
from ptpwire.packeter import PipePacketer
from ptpwire.streams import ByteArrayInputStream, JoinedInputStream

__all__ = ["NewObjectInfo", "ObjectEditSession", "Session"]

log = logging.getLogger(__name__)

_U32_MAX = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF
_ALL_PROPERTIES = 0xFFFF


def _check_response(where: str, code: int) -> None:
    if code not in (ResponseType.OK, ResponseType.SessionAlreadyOpen):
        raise InvalidResponseError(where, code)


def _encode_integer(value: int) -> bytes:
    """Encode an integer property as 4 bytes, or 8 when it needs more than 32 bits."""
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"integer property value {value} does not fit in 64 bits")
    width = 4 if value <= _U32_MAX else 8
    return value.to_bytes(width, "little")


@dataclass(frozen=True)
class NewObjectInfo:
    """Identifiers the device assigned to a newly announced object."""

    storage_id: StorageId
    parent_object_id: ObjectId
    object_id: ObjectId


class ObjectEditSession:
    """Partial writes and truncation of one object, between begin and end of editing."""

    def __init__(self, session: Session, object_id: ObjectId) -> None:
        self._session = session
        self._object_id = object_id
        self._closed = False
        session._begin_edit_object(object_id)

    def truncate(self, size: int) -> None:
        """Truncate the object to size bytes."""
        self._session._truncate_object(self._object_id, size)

    def send(self, offset: int, data: bytes) -> None:
        """Write data into the object at offset."""
        self._session._send_partial_object(self._object_id, offset, data)

    def close(self) -> None:
        """Finish editing; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self._session._end_edit_object(self._object_id)

    def __enter__(self) -> ObjectEditSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class Session:
    """An open MTP session on a device, serialising transactions over one pipe."""

    DEFAULT_TIMEOUT = 10000
    LONG_TIMEOUT = 30000

    ANY_STORAGE = StorageId(0)
    ALL_STORAGES = StorageId(_U32_MAX)
    DEVICE = ObjectId(0)
    ROOT = ObjectId(_U32_MAX)

    def __init__(self, pipe: Any, session_id: int) -> None:
        self._packeter = PipePacketer(pipe)
        self._session_id = session_id
        self._lock = threading.Lock()
        self._transaction_lock = threading.Lock()
        self._next_transaction_id = 1
        self._current_transaction: int | None = None
        self._modification_time_buggy = False
        self._default_timeout = self.DEFAULT_TIMEOUT

        self._device_info = self._get_device_info()
        info = self._device_info
        self._partial_object64_supported = info.supports(OperationCode.GetPartialObject64)
        self._object_property_list_supported = info.supports(OperationCode.GetObjectPropList)
        self._edit_object_supported = all(
            info.supports(code)
            for code in (
                OperationCode.BeginEditObject,
                OperationCode.EndEditObject,
                OperationCode.TruncateObject,
                OperationCode.SendPartialObject,
            )
        )

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc: object) -> None:
        try:
            self.close()
        except Exception as ex:
            log.debug("closing session: %s", ex)

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    @property
    def edit_object_supported(self) -> bool:
        return self._edit_object_supported

    @property
    def object_property_list_supported(self) -> bool:
        return self._object_property_list_supported

    @contextmanager
    def _transaction(self) -> Iterator[int]:
        with self._transaction_lock:
            transaction_id = self._next_transaction_id
            self._next_transaction_id = (transaction_id + 1) & _U32_MAX
            self._current_transaction = transaction_id
        try:
            yield transaction_id
        finally:
            with self._transaction_lock:
                self._current_transaction = None

    def _send(self, request: OperationRequest, timeout: int = 0) -> None:
        if timeout <= 0:
            timeout = self._default_timeout
        self._packeter.write(container_bytes(request), timeout)

    def _get(self, transaction: int, where: str, timeout: int = 0) -> bytes:
        if timeout <= 0:
            timeout = self._default_timeout
        data, code, _ = self._packeter.read_data(transaction, timeout)
        _check_response(where, code)
        return data

    def _run_transaction(
        self, timeout: int, code: OperationCode, *params: int, input_stream: Any = None
    ) -> bytes:
        with self._lock, self._transaction() as transaction_id:
            self._send(OperationRequest(code, transaction_id, *params), timeout)
            if input_stream is not None:
                header = container_bytes(DataRequest(code, transaction_id), input_stream.size)
                joined = JoinedInputStream(ByteArrayInputStream(header), input_stream)
                self._packeter.write(joined, timeout if timeout > 0 else self._default_timeout)
            return self._get(transaction_id, code.name)

    def _get_device_info(self) -> DeviceInfo:
        data = self._run_transaction(self._default_timeout, OperationCode.GetDeviceInfo)
        return DeviceInfo.read(InputStream(data))

    def get_object_handles(
        self,
        storage_id: StorageId = ALL_STORAGES,
        object_format: int = ObjectFormat.Any,
        parent: ObjectId = DEVICE,
        timeout: int = LONG_TIMEOUT,
    ) -> ObjectHandles:
        data = self._run_transaction(
            timeout, OperationCode.GetObjectHandles, int(storage_id), int(object_format), int(parent)
        )
        return ObjectHandles.read(InputStream(data))

    def get_storage_ids(self) -> StorageIDs:
        data = self._run_transaction(self._default_timeout, OperationCode.GetStorageIDs)
        return StorageIDs.read(InputStream(data))

    def get_storage_info(self, storage_id: StorageId) -> StorageInfo:
        data = self._run_transaction(
            self._default_timeout, OperationCode.GetStorageInfo, int(storage_id)
        )
        return StorageInfo.read(InputStream(data))

    def create_directory(
        self,
        name: str,
        parent_id: ObjectId,
        storage_id: StorageId = ANY_STORAGE,
        association_type: int = AssociationType.GenericFolder,
    ) -> NewObjectInfo:
        """Announce a new folder object and return the identifiers assigned to it."""
        info = ObjectInfo(
            filename=name,
            parent_object=parent_id,
            storage_id=storage_id,
            object_format=ObjectFormat.Association,
            association_type=association_type,
        )
        return self.send_object_info(info, storage_id, parent_id)

    def get_object_info(self, object_id: ObjectId) -> ObjectInfo:
        data = self._run_transaction(
            self._default_timeout, OperationCode.GetObjectInfo, int(object_id)
        )
        return ObjectInfo.read(InputStream(data))

    def get_object_properties_supported(self, object_id: int) -> ObjectPropertiesSupported:
        data = self._run_transaction(
            self._default_timeout, OperationCode.GetObjectPropsSupported, int(object_id)
        )
        return ObjectPropertiesSupported.read(InputStream(data))

    def _read_into(self, code: OperationCode, object_id: ObjectId, output_stream: Any) -> None:
        with self._lock, self._transaction() as transaction_id:
            self._send(OperationRequest(code, transaction_id, int(object_id)))
            response_code, _ = self._packeter.read(
                transaction_id, output_stream, self._default_timeout
            )
            _check_response(code.name, response_code)

    def get_object(self, object_id: ObjectId, output_stream: Any) -> None:
        """Stream the content of an object into output_stream."""
        self._read_into(OperationCode.GetObject, object_id, output_stream)

    def get_thumb(self, object_id: ObjectId, output_stream: Any) -> None:
        """Stream the thumbnail of an object into output_stream."""
        self._read_into(OperationCode.GetThumb, object_id, output_stream)

    def get_partial_object(self, object_id: ObjectId, offset: int, size: int) -> bytes:
        """Read size bytes of an object starting at offset."""
        if self._partial_object64_supported:
            return self._run_transaction(
                self._default_timeout,
                OperationCode.GetPartialObject64,
                int(object_id),
                offset & _U32_MAX,
                (offset >> 32) & _U32_MAX,
                size,
            )
        if offset + size > _U32_MAX:
            raise OverflowError("32 bit overflow for GetPartialObject")
        return self._run_transaction(
            self._default_timeout, OperationCode.GetPartialObject, int(object_id), offset, size
        )

    def send_object_info(
        self,
        object_info: ObjectInfo,
        storage_id: StorageId = ANY_STORAGE,
        parent_object: ObjectId = DEVICE,
    ) -> NewObjectInfo:
        """Announce an object; the next send_object call supplies its content."""
        if not object_info.filename:
            raise ValueError("object filename must not be empty")
        code = OperationCode.SendObjectInfo
        with self._lock, self._transaction() as transaction_id:
            self._send(
                OperationRequest(code, transaction_id, int(storage_id), int(parent_object))
            )
            request = DataRequest(code, transaction_id)
            object_info.write(OutputStream(request.data))
            self._packeter.write(container_bytes(request), self._default_timeout)
            _, response_code, response = self._packeter.read_data(
                transaction_id, self._default_timeout
            )
            _check_response(code.name, response_code)
        stream = InputStream(response)
        return NewObjectInfo(
            storage_id=StorageId(stream.read32()),
            parent_object_id=ObjectId(stream.read32()),
            object_id=ObjectId(stream.read32()),
        )

    def send_object(self, input_stream: Any, timeout: int = LONG_TIMEOUT) -> None:
        """Send the content of the object announced by the last send_object_info."""
        code = OperationCode.SendObject
        with self._lock, self._transaction() as transaction_id:
            self._send(OperationRequest(code, transaction_id))
            header = container_bytes(DataRequest(code, transaction_id), input_stream.size)
            joined = JoinedInputStream(ByteArrayInputStream(header), input_stream)
            self._packeter.write(joined, timeout)
            self._get(transaction_id, code.name)

    def delete_object(self, object_id: ObjectId, timeout: int = LONG_TIMEOUT) -> None:
        self._run_transaction(timeout, OperationCode.DeleteObject, int(object_id), 0)

    def edit_object(self, object_id: ObjectId) -> ObjectEditSession:
        """Begin editing an object in place; use the result as a context manager."""
        return ObjectEditSession(self, object_id)

    def _begin_edit_object(self, object_id: ObjectId) -> None:
        self._run_transaction(self._default_timeout, OperationCode.BeginEditObject, int(object_id))

    def _send_partial_object(self, object_id: ObjectId, offset: int, data: bytes) -> None:
        self._run_transaction(
            self._default_timeout,
            OperationCode.SendPartialObject,
            int(object_id),
            offset & _U32_MAX,
            (offset >> 32) & _U32_MAX,
            len(data),
            input_stream=ByteArrayInputStream(bytes(data)),
        )

    def _truncate_object(self, object_id: ObjectId, size: int) -> None:
        self._run_transaction(
            self._default_timeout,
            OperationCode.TruncateObject,
            int(object_id),
            size & _U32_MAX,
            (size >> 32) & _U32_MAX,
        )

    def _end_edit_object(self, object_id: ObjectId) -> None:
        self._run_transaction(self._default_timeout, OperationCode.EndEditObject, int(object_id))

    def set_object_property(self, object_id: ObjectId, prop: int, value: Any) -> None:
        """Set a property from raw bytes, a string or an unsigned integer."""
        if isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
        elif isinstance(value, str):
            out = OutputStream()
            out.write_string(value)
            data = bytes(out.data)
        elif isinstance(value, int):
            data = _encode_integer(value)
        else:
            raise TypeError(f"unsupported property value type {type(value).__name__}")
        self._run_transaction(
            self._default_timeout,
            OperationCode.SetObjectPropValue,
            int(object_id),
            int(prop) & 0xFFFF,
            input_stream=ByteArrayInputStream(data),
        )

    def get_object_property(self, object_id: ObjectId, prop: int) -> bytes:
        return self._run_transaction(
            self._default_timeout,
            OperationCode.GetObjectPropValue,
            int(object_id),
            int(prop) & 0xFFFF,
        )

    def get_object_integer_property(self, object_id: ObjectId, prop: int) -> int:
        return read_single_integer(self.get_object_property(object_id, prop))

    def get_object_string_property(self, object_id: ObjectId, prop: int) -> str:
        return read_single_string(self.get_object_property(object_id, prop))

    def get_object_storage(self, object_id: ObjectId) -> StorageId:
        """Storage holding the object; wildcard answers are rejected."""
        from ptpwire.codes import ObjectProperty

        storage_id = StorageId(self.get_object_integer_property(object_id, ObjectProperty.StorageId))
        if storage_id in (self.ANY_STORAGE, self.ALL_STORAGES):
            raise ValueError("returned wildcard storage id as storage for object")
        return storage_id

    def get_object_parent(self, object_id: ObjectId) -> ObjectId:
        from ptpwire.codes import ObjectProperty

        return ObjectId(self.get_object_integer_property(object_id, ObjectProperty.ParentObject))

    def get_object_modification_time(self, object_id: ObjectId) -> int:
        """Modification timestamp, from the property or, if that fails, the object info."""
        from ptpwire.codes import ObjectProperty

        if not self._modification_time_buggy:
            try:
                text = self.get_object_string_property(object_id, ObjectProperty.DateModified)
                mtime = parse_datetime(text)
                if mtime != 0:
                    return mtime
            except Exception as ex:
                log.debug("exception while getting mtime: %s", ex)
            self._modification_time_buggy = True
        info = self.get_object_info(object_id)
        return parse_datetime(info.modification_date)

    def get_object_property_list(
        self,
        object_id: ObjectId,
        object_format: int,
        prop: int,
        group_code: int,
        depth: int,
        timeout: int = LONG_TIMEOUT,
    ) -> bytes:
        if object_id == self.ROOT:
            object_id = self.DEVICE
        prop_param = _U32_MAX if int(prop) == _ALL_PROPERTIES else int(prop)
        return self._run_transaction(
            timeout,
            OperationCode.GetObjectPropList,
            int(object_id),
            int(object_format),
            prop_param,
            group_code,
            depth,
        )

    def get_device_property(self, prop: int) -> bytes:
        return self._run_transaction(
            self._default_timeout, OperationCode.GetDevicePropValue, int(prop) & 0xFFFF
        )

    def get_device_integer_property(self, prop: int) -> int:
        return read_single_integer(self.get_device_property(prop))

    def get_device_string_property(self, prop: int) -> str:
        return read_single_string(self.get_device_property(prop))

    def abort_current_transaction(self, timeout: int = DEFAULT_TIMEOUT) -> None:
        """Cancel the transaction in progress from another thread."""
        with self._transaction_lock:
            if self._current_transaction is None:
                raise RuntimeError("no transaction in progress")
            transaction_id = self._current_transaction
        self._packeter.abort(transaction_id, timeout)

    def close(self) -> None:
        """Close the session on the device."""
        with self._lock:
            self._send(OperationRequest(OperationCode.CloseSession, 0, self._session_id))
            self._packeter.read_data(0, self._default_timeout)