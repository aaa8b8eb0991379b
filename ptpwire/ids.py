"""Typed 32-bit identifiers for objects and storages."""

from dataclasses import dataclass
from typing import ClassVar

__all__ = ["ObjectId", "StorageId"]

_U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True, order=True)
class _Handle:
    CANARY: ClassVar[int] = 0xAAAAAAAA

    id: int = CANARY

    def __post_init__(self) -> None:
        if not 0 <= self.id <= _U32_MAX:
            raise ValueError(f"identifier {self.id} does not fit in 32 bits")

    def __int__(self) -> int:
        return self.id


class ObjectId(_Handle):
    """Handle of an object on the device."""


class StorageId(_Handle):
    """Identifier of a storage on the device."""