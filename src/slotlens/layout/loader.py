"""Load compiler storage layouts into `StorageLayout`.

This module provides:
- `load_layout(source)` → StorageLayout from a dict, JSON text or file path
- `layout_from_compiler_output(output, source_name, contract_name)` → the
  `storageLayout` section of a solc standard-JSON output
- `classify_type(item)` → the tagged type descriptor for one `types` entry

Each type entry is classified exactly once, here. The walker only ever
dispatches on the resulting descriptor class.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from slotlens.constants import MAX_SLOT, WORD_SIZE
from slotlens.core.errors import LayoutError, UnsupportedType
from slotlens.core.models import (
    BlobType,
    DeclaredVariable,
    DynamicArrayType,
    MappingType,
    ScalarType,
    StaticArrayType,
    StorageLayout,
    StructType,
    TypeDescriptor,
    UnsupportedPrimitive,
)
from slotlens.layout.schema import StorageItem, StorageLayoutJson, TypeItem

logger = logging.getLogger(__name__)

_UINT_RE = re.compile(r"uint(\d*)")
_INT_RE = re.compile(r"int(\d*)")
_FIXED_BYTES_RE = re.compile(r"bytes(\d+)")
_STATIC_LEN_RE = re.compile(r"\[(\d+)\]$")

LayoutSource = StorageLayout | Mapping[str, Any] | str | Path


# ---------- helpers ----------


def _parse_slot(slot: str) -> int:
    s = slot.strip()
    try:
        value = int(s, 16) if s.lower().startswith("0x") else int(s)
    except ValueError:
        raise LayoutError(f"invalid slot {slot!r}") from None
    if not 0 <= value <= MAX_SLOT:
        raise LayoutError(f"slot {slot!r} outside the 256-bit range")
    return value


def _declared(item: StorageItem) -> DeclaredVariable:
    if not 0 <= item.offset < 32:
        raise LayoutError(f"{item.label}: offset {item.offset} outside a 32-byte word")
    return DeclaredVariable(
        label=item.label,
        slot=_parse_slot(item.slot),
        offset=item.offset,
        type_ref=item.type,
    )


def _classify_primitive(label: str, nbytes: int) -> TypeDescriptor:
    if label == "bool":
        return ScalarType(label, nbytes, "bool")
    if label in ("address", "address payable") or label.startswith("contract "):
        return ScalarType(label, nbytes, "address")
    if label.startswith("enum "):
        return ScalarType(label, nbytes, "enum")
    if label in ("string", "bytes"):
        return BlobType(label, nbytes, label)  # type: ignore[arg-type]
    if _UINT_RE.fullmatch(label):
        return ScalarType(label, nbytes, "uint")
    if _INT_RE.fullmatch(label):
        return ScalarType(label, nbytes, "int")
    if _FIXED_BYTES_RE.fullmatch(label):
        return ScalarType(label, nbytes, "fixed_bytes")
    return UnsupportedPrimitive(label, nbytes)


def classify_type(item: TypeItem) -> TypeDescriptor:
    """Turn one `types` entry into its descriptor variant."""
    label = item.label
    try:
        nbytes = int(item.numberOfBytes)
    except ValueError:
        raise LayoutError(f"{label}: invalid numberOfBytes {item.numberOfBytes!r}") from None
    encoding = item.encoding

    if encoding == "mapping" or item.key is not None:
        if item.key is None or item.value is None:
            raise LayoutError(f"mapping type {label} lacks key/value")
        return MappingType(label, nbytes, item.key, item.value)

    if encoding == "dynamic_array" or (encoding is None and item.base is not None):
        if item.base is None:
            raise LayoutError(f"dynamic array type {label} lacks base")
        return DynamicArrayType(label, nbytes, item.base)

    if item.base is not None:
        m = _STATIC_LEN_RE.search(label)
        if m is None:
            raise LayoutError(f"cannot read static array length from {label}")
        return StaticArrayType(label, nbytes, item.base, int(m.group(1)))

    if item.members is not None:
        return StructType(label, nbytes, tuple(_declared(m) for m in item.members))

    descriptor = _classify_primitive(label, nbytes)
    if isinstance(descriptor, ScalarType) and not 1 <= nbytes <= WORD_SIZE:
        raise LayoutError(f"{label}: {nbytes} bytes cannot be a value type")
    return descriptor


# ---------- validation ----------


def _check_packing(variables: Iterable[DeclaredVariable], types: Mapping[str, TypeDescriptor]) -> None:
    for var in variables:
        descriptor = types.get(var.type_ref)
        if isinstance(descriptor, ScalarType) and var.offset + descriptor.number_of_bytes > WORD_SIZE:
            raise LayoutError(
                f"{var.label}: {descriptor.label} at offset {var.offset} does not fit in a 32-byte word"
            )


def _child_refs(descriptor: TypeDescriptor) -> list[str]:
    match descriptor:
        case StructType():
            return [m.type_ref for m in descriptor.members]
        case MappingType():
            return [descriptor.key_ref, descriptor.value_ref]
        case DynamicArrayType() | StaticArrayType():
            return [descriptor.base_ref]
    return []


def validate_layout(layout: StorageLayout) -> None:
    """Eagerly check that every reachable type resolves and is decodable."""
    seen: set[str] = set()
    pending = [item.type_ref for item in layout.storage]
    while pending:
        ref = pending.pop()
        if ref in seen:
            continue
        seen.add(ref)
        descriptor = layout.resolve(ref)
        if isinstance(descriptor, UnsupportedPrimitive):
            raise UnsupportedType(descriptor.label)
        pending.extend(_child_refs(descriptor))


# ---------- public entry points ----------


def _read_source(source: Mapping[str, Any] | str | Path) -> Mapping[str, Any]:
    if isinstance(source, Path):
        source = source.read_text()
    if isinstance(source, str):
        try:
            return json.loads(source)
        except json.JSONDecodeError as e:
            raise LayoutError(f"layout is not valid JSON: {e}") from e
    return source


def load_layout(source: LayoutSource, *, strict: bool = False) -> StorageLayout:
    """Build a `StorageLayout` from compiler JSON.

    With `strict=True` every reachable type reference is checked up front
    (UnknownTypeReference / UnsupportedType); otherwise problems surface when
    the affected variable is decoded.
    """
    if isinstance(source, StorageLayout):
        layout = source
    else:
        try:
            parsed = StorageLayoutJson.model_validate(_read_source(source))
        except ValidationError as e:
            raise LayoutError(f"invalid storage layout: {e}") from e

        types = {ref: classify_type(item) for ref, item in (parsed.types or {}).items()}
        for ref, descriptor in types.items():
            logger.debug("type %s → %s", ref, type(descriptor).__name__)
        layout = StorageLayout(
            storage=tuple(_declared(item) for item in parsed.storage),
            types=types,
        )
        _check_packing(layout.storage, types)
        for descriptor in types.values():
            if isinstance(descriptor, StructType):
                _check_packing(descriptor.members, types)

    if strict:
        validate_layout(layout)
    return layout


def layout_from_compiler_output(
    output: Mapping[str, Any] | str | Path,
    source_name: str,
    contract_name: str,
    *,
    strict: bool = False,
) -> StorageLayout:
    """Extract `contracts[source][contract].storageLayout` from solc standard-JSON output."""
    data = _read_source(output)
    try:
        section = data["contracts"][source_name][contract_name]["storageLayout"]
    except (KeyError, TypeError):
        raise LayoutError(f"no storageLayout for {source_name}:{contract_name} in compiler output") from None
    return load_layout(section, strict=strict)


def load_layout_file(path: Path, *, contract: str | None = None, strict: bool = False) -> StorageLayout:
    """Load a layout file: a bare `storageLayout` or, with `contract="Source.sol:Name"`, compiler output."""
    if contract is None:
        return load_layout(path, strict=strict)
    source_name, sep, contract_name = contract.rpartition(":")
    if not sep or not source_name or not contract_name:
        raise LayoutError(f"expected Source.sol:Name, got {contract!r}")
    return layout_from_compiler_output(path, source_name, contract_name, strict=strict)
