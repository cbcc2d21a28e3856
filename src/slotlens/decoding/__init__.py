"""Storage decoding.

This package provides:
- Slot arithmetic (word conversion, keccak-derived overflow and mapping slots)
- Leaf decoders for packed scalars and short/long blobs
- The structural walker that recurses over structs, arrays and mappings
"""

from slotlens.decoding.scalars import (
    decode_address,
    decode_blob,
    decode_bool,
    decode_int,
    decode_scalar,
    decode_uint,
    encode_key,
    extract_packed,
)
from slotlens.decoding.slots import as_hex, from_word, mapping_slot, overflow_slot, slot_add, to_word
from slotlens.decoding.walker import StorageWalker

__all__ = [
    "decode_address",
    "decode_blob",
    "decode_bool",
    "decode_int",
    "decode_scalar",
    "decode_uint",
    "encode_key",
    "extract_packed",
    "as_hex",
    "from_word",
    "mapping_slot",
    "overflow_slot",
    "slot_add",
    "to_word",
    "StorageWalker",
]
