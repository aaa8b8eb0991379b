"""Data sets exchanged with the device: device, storage and object information."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TypeVar

from ptpwire.codec import InputStream, OutputStream
from ptpwire.codes import ObjectProperty, OperationCode
from ptpwire.ids import ObjectId, StorageId
from ptpwire.objectformat import MAX_OBJECT_SIZE, AssociationType, ObjectFormat

__all__ = [
    "DeviceInfo",
    "ObjectHandles",
    "StorageIDs",
    "StorageInfo",
    "ObjectInfo",
    "ObjectPropertiesSupported",
]

E = TypeVar("E", bound=IntEnum)


def _enum_or_int(enum: type[E], value: int) -> E | int:
    try:
        return enum(value)
    except ValueError:
        return value


@dataclass
class DeviceInfo:
    """DeviceInfo data set."""

    standard_version: int = 0
    vendor_extension_id: int = 0
    vendor_extension_version: int = 0
    vendor_extension_desc: str = ""
    functional_mode: int = 0
    operations_supported: list[int] = field(default_factory=list)
    events_supported: list[int] = field(default_factory=list)
    device_properties_supported: list[int] = field(default_factory=list)
    capture_formats: list[int] = field(default_factory=list)
    image_formats: list[int] = field(default_factory=list)
    manufacturer: str = ""
    model: str = ""
    device_version: str = ""
    serial_number: str = ""

    @classmethod
    def read(cls, stream: InputStream) -> DeviceInfo:
        return cls(
            standard_version=stream.read16(),
            vendor_extension_id=stream.read32(),
            vendor_extension_version=stream.read16(),
            vendor_extension_desc=stream.read_string(),
            functional_mode=stream.read16(),
            operations_supported=stream.read_array(
                lambda: _enum_or_int(OperationCode, stream.read16())
            ),
            events_supported=stream.read_array(stream.read16),
            device_properties_supported=stream.read_array(stream.read16),
            capture_formats=stream.read_array(stream.read16),
            image_formats=stream.read_array(stream.read16),
            manufacturer=stream.read_string(),
            model=stream.read_string(),
            device_version=stream.read_string(),
            serial_number=stream.read_string(),
        )

    def supports(self, opcode: int) -> bool:
        """Whether the device lists opcode among its supported operations."""
        return opcode in self.operations_supported


@dataclass
class ObjectHandles:
    """List of object handles."""

    object_handles: list[ObjectId] = field(default_factory=list)

    @classmethod
    def read(cls, stream: InputStream) -> ObjectHandles:
        return cls(stream.read_array(lambda: ObjectId(stream.read32())))


@dataclass
class StorageIDs:
    """List of storage identifiers."""

    storage_ids: list[StorageId] = field(default_factory=list)

    @classmethod
    def read(cls, stream: InputStream) -> StorageIDs:
        return cls(stream.read_array(lambda: StorageId(stream.read32())))


@dataclass
class StorageInfo:
    """StorageInfo data set."""

    storage_type: int = 0
    filesystem_type: int = 0
    access_capability: int = 0
    max_capacity: int = 0
    free_space_in_bytes: int = 0
    free_space_in_images: int = 0
    storage_description: str = ""
    volume_label: str = ""

    @property
    def name(self) -> str:
        """The storage description, or the volume label when it is empty."""
        return self.storage_description or self.volume_label

    @classmethod
    def read(cls, stream: InputStream) -> StorageInfo:
        return cls(
            storage_type=stream.read16(),
            filesystem_type=stream.read16(),
            access_capability=stream.read16(),
            max_capacity=stream.read64(),
            free_space_in_bytes=stream.read64(),
            free_space_in_images=stream.read32(),
            storage_description=stream.read_string(),
            volume_label=stream.read_string(),
        )


@dataclass
class ObjectInfo:
    """ObjectInfo data set."""

    storage_id: StorageId = field(default_factory=StorageId)
    object_format: int = ObjectFormat.Any
    protection_status: int = 0
    object_compressed_size: int = 0
    thumb_format: int = 0
    thumb_compressed_size: int = 0
    thumb_pix_width: int = 0
    thumb_pix_height: int = 0
    image_pix_width: int = 0
    image_pix_height: int = 0
    image_bit_depth: int = 0
    parent_object: ObjectId = field(default_factory=ObjectId)
    association_type: int = 0
    association_desc: int = 0
    sequence_number: int = 0
    filename: str = ""
    capture_date: str = ""
    modification_date: str = ""
    keywords: str = ""

    def set_size(self, size: int) -> None:
        """Set the 32-bit object size, clamping larger sizes."""
        self.object_compressed_size = min(size, MAX_OBJECT_SIZE)

    @classmethod
    def read(cls, stream: InputStream) -> ObjectInfo:
        return cls(
            storage_id=StorageId(stream.read32()),
            object_format=_enum_or_int(ObjectFormat, stream.read16()),
            protection_status=stream.read16(),
            object_compressed_size=stream.read32(),
            thumb_format=stream.read16(),
            thumb_compressed_size=stream.read32(),
            thumb_pix_width=stream.read32(),
            thumb_pix_height=stream.read32(),
            image_pix_width=stream.read32(),
            image_pix_height=stream.read32(),
            image_bit_depth=stream.read32(),
            parent_object=ObjectId(stream.read32()),
            association_type=_enum_or_int(AssociationType, stream.read16()),
            association_desc=stream.read32(),
            sequence_number=stream.read32(),
            filename=stream.read_string(),
            capture_date=stream.read_string(),
            modification_date=stream.read_string(),
            keywords=stream.read_string(),
        )

    def write(self, stream: OutputStream) -> None:
        stream.write32(int(self.storage_id))
        stream.write16(self.object_format)
        stream.write16(self.protection_status)
        stream.write32(self.object_compressed_size)
        stream.write16(self.thumb_format)
        stream.write32(self.thumb_compressed_size)
        stream.write32(self.thumb_pix_width)
        stream.write32(self.thumb_pix_height)
        stream.write32(self.image_pix_width)
        stream.write32(self.image_pix_height)
        stream.write32(self.image_bit_depth)
        stream.write32(int(self.parent_object))
        stream.write16(self.association_type)
        stream.write32(self.association_desc)
        stream.write32(self.sequence_number)
        stream.write_string(self.filename)
        stream.write_string(self.capture_date)
        stream.write_string(self.modification_date)
        stream.write_string(self.keywords)


@dataclass
class ObjectPropertiesSupported:
    """List of object property codes supported for a format."""

    object_property_codes: list[int] = field(default_factory=list)

    @classmethod
    def read(cls, stream: InputStream) -> ObjectPropertiesSupported:
        return cls(stream.read_array(lambda: _enum_or_int(ObjectProperty, stream.read16())))