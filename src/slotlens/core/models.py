"""Core data models for storage layouts and decode results.

This module defines:
- `DeclaredVariable`: one entry of `storage` (or one struct member).
- Type descriptors: a closed tagged union classified once when the layout is
  loaded (`ScalarType`, `BlobType`, `StructType`, `MappingType`,
  `DynamicArrayType`, `StaticArrayType`, `UnsupportedPrimitive`).
- `StorageLayout`: immutable view over declared variables + type dictionary.
- `DecodedVariable`: `{type, value}` pair returned by the query API.

Design notes
------------
- Slots are plain Python ints (arbitrary precision, may exceed 64 bits).
- Struct member slots stay relative; the walker adds the enclosing slot.
- Byte offsets only locate bytes inside a fetched word.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from slotlens.core.errors import UnknownTypeReference, VariableNotFound

ScalarKind = Literal["uint", "int", "bool", "address", "fixed_bytes", "enum"]
BlobKind = Literal["string", "bytes"]


# === Declared variables ===


@dataclass(slots=True, frozen=True)
class DeclaredVariable:
    """A top-level state variable or struct member."""

    label: str
    slot: int
    offset: int
    type_ref: str


# === Type descriptors ===


@dataclass(slots=True, frozen=True)
class ScalarType:
    label: str
    number_of_bytes: int
    kind: ScalarKind


@dataclass(slots=True, frozen=True)
class BlobType:
    label: str
    number_of_bytes: int
    kind: BlobKind


@dataclass(slots=True, frozen=True)
class StructType:
    label: str
    number_of_bytes: int
    members: tuple[DeclaredVariable, ...]


@dataclass(slots=True, frozen=True)
class MappingType:
    label: str
    number_of_bytes: int
    key_ref: str
    value_ref: str


@dataclass(slots=True, frozen=True)
class DynamicArrayType:
    label: str
    number_of_bytes: int
    base_ref: str


@dataclass(slots=True, frozen=True)
class StaticArrayType:
    label: str
    number_of_bytes: int
    base_ref: str
    length: int


@dataclass(slots=True, frozen=True)
class UnsupportedPrimitive:
    """A primitive whose label is outside the decodable family."""

    label: str
    number_of_bytes: int


TypeDescriptor = (
    ScalarType
    | BlobType
    | StructType
    | MappingType
    | DynamicArrayType
    | StaticArrayType
    | UnsupportedPrimitive
)


def slots_spanned(descriptor: TypeDescriptor) -> int:
    """Number of whole slots one array element of this type occupies.

    Elements of 32 bytes or less take one full slot each.
    """
    return max(1, descriptor.number_of_bytes // 32)


# === Layout ===


@dataclass(slots=True, frozen=True)
class StorageLayout:
    """Declared variables plus the type dictionary they reference."""

    storage: tuple[DeclaredVariable, ...]
    types: Mapping[str, TypeDescriptor]

    def find(self, name: str) -> DeclaredVariable:
        """Return the first declared variable labelled `name`."""
        for item in self.storage:
            if item.label == name:
                return item
        raise VariableNotFound(name)

    def resolve(self, type_ref: str) -> TypeDescriptor:
        try:
            return self.types[type_ref]
        except KeyError:
            raise UnknownTypeReference(type_ref) from None

    def labels(self) -> list[str]:
        return [item.label for item in self.storage]


# === Decode result ===


@dataclass(slots=True, frozen=True)
class DecodedVariable:
    """Decoded value of one variable together with its type label."""

    type: str
    value: Any

    def as_dict(self) -> dict[str, Any]:
        return {"type": self.type, "value": self.value}
