"""Structural walker: recursive, concurrent descent over a storage layout.

`StorageWalker.decode(slot, offset, descriptor)` dispatches on the descriptor
variant produced by the layout loader:

- scalar / blob → one read of the item's own slot, then a leaf decoder
- mapping       → `{}` (keys cannot be enumerated from storage alone)
- dynamic array → read the length, elements at keccak256(slot) + i * stride
- static array  → length from the type; value types are packed
                  `32 // size` per slot, other elements at slot + i * stride
- struct        → members at slot + member.slot, no read of the struct slot

Sibling branches (struct members, array elements) are awaited jointly with
`gather_or_cancel`. A failure in any branch fails the whole decode and
cancels the reads still in flight.
"""

from __future__ import annotations

import logging
from typing import Any

from slotlens.constants import MAX_SLOT, WORD_SIZE
from slotlens.core.config import DecoderConfig
from slotlens.core.errors import DecodeLimitExceeded, UnsupportedType
from slotlens.core.interfaces import IStorageReader
from slotlens.core.models import (
    BlobType,
    DecodedVariable,
    DeclaredVariable,
    DynamicArrayType,
    MappingType,
    ScalarType,
    StaticArrayType,
    StorageLayout,
    StructType,
    TypeDescriptor,
    UnsupportedPrimitive,
    slots_spanned,
)
from slotlens.core.tasks import gather_or_cancel
from slotlens.decoding.scalars import decode_blob, decode_scalar
from slotlens.decoding.slots import from_word, overflow_slot, to_word

logger = logging.getLogger(__name__)


class StorageWalker:
    """Decode values of one layout against one storage reader.

    Parameters
    ----------
    layout : StorageLayout
        Declared variables and the type dictionary.
    reader : IStorageReader
        Read capability over the contract storage snapshot.
    config : DecoderConfig, optional
        Depth / array / blob bounds.
    """

    def __init__(
        self,
        layout: StorageLayout,
        reader: IStorageReader,
        config: DecoderConfig | None = None,
    ) -> None:
        self.layout = layout
        self.reader = reader
        self.config = config or DecoderConfig()

    async def _read(self, slot: int) -> bytes:
        return await self.reader.read(to_word(slot))

    async def decode_variable(self, item: DeclaredVariable) -> DecodedVariable:
        """Decode one declared variable into a `{type, value}` pair."""
        descriptor = self.layout.resolve(item.type_ref)
        value = await self.decode(item.slot, item.offset, descriptor)
        return DecodedVariable(type=descriptor.label, value=value)

    async def decode(
        self,
        slot: int,
        offset: int,
        descriptor: TypeDescriptor,
        depth: int = 0,
    ) -> Any:
        """Decode the value of type `descriptor` stored at absolute `slot`."""
        if depth > self.config.max_depth:
            raise DecodeLimitExceeded("nesting depth", self.config.max_depth)
        logger.debug("decode %s at slot %#x+%d", descriptor.label, slot, offset)

        match descriptor:
            case ScalarType():
                return decode_scalar(await self._read(slot), descriptor, offset)
            case BlobType():
                word = await self._read(slot)
                return await decode_blob(self.reader.read, to_word(slot), word, descriptor, self.config)
            case MappingType():
                return {}
            case DynamicArrayType():
                return await self._decode_dynamic_array(slot, descriptor, depth)
            case StaticArrayType():
                return await self._decode_static_array(slot, descriptor, depth)
            case StructType():
                return await self._decode_struct(slot, descriptor, depth)
            case UnsupportedPrimitive():
                raise UnsupportedType(descriptor.label)
        raise UnsupportedType(descriptor.label)

    async def _decode_dynamic_array(self, slot: int, descriptor: DynamicArrayType, depth: int) -> list[Any]:
        length = from_word(await self._read(slot))
        if length == 0:
            return []
        first = from_word(overflow_slot(to_word(slot)))
        return await self._decode_elements(first, length, descriptor.base_ref, depth)

    async def _decode_static_array(self, slot: int, descriptor: StaticArrayType, depth: int) -> list[Any]:
        base = self.layout.resolve(descriptor.base_ref)
        if not isinstance(base, ScalarType):
            return await self._decode_elements(slot, descriptor.length, descriptor.base_ref, depth)

        # value types share a slot, lowest index in the low-order bytes
        length = descriptor.length
        if length > self.config.max_array_length:
            raise DecodeLimitExceeded(f"array length {length}", self.config.max_array_length)
        if depth + 1 > self.config.max_depth:
            raise DecodeLimitExceeded("nesting depth", self.config.max_depth)
        size = base.number_of_bytes
        per_slot = WORD_SIZE // size
        n_words = (length + per_slot - 1) // per_slot
        words = await gather_or_cancel(self._read((slot + k) & MAX_SLOT) for k in range(n_words))
        return [decode_scalar(words[i // per_slot], base, (i % per_slot) * size) for i in range(length)]

    async def _decode_elements(self, first: int, length: int, base_ref: str, depth: int) -> list[Any]:
        if length > self.config.max_array_length:
            raise DecodeLimitExceeded(f"array length {length}", self.config.max_array_length)
        base = self.layout.resolve(base_ref)
        stride = slots_spanned(base)
        return await gather_or_cancel(
            self.decode((first + i * stride) & MAX_SLOT, 0, base, depth + 1) for i in range(length)
        )

    async def _decode_struct(self, slot: int, descriptor: StructType, depth: int) -> dict[str, Any]:
        members = descriptor.members
        member_types = [self.layout.resolve(member.type_ref) for member in members]
        values = await gather_or_cancel(
            self.decode((slot + member.slot) & MAX_SLOT, member.offset, member_type, depth + 1)
            for member, member_type in zip(members, member_types)
        )
        return {member.label: value for member, value in zip(members, values)}
