"""Leaf decoders: packed scalars, short/long blobs and mapping key encoding.

Scalars are read from the low-order end of a word: a value of `n` bytes at
byte `offset` occupies `word[32 - offset - n : 32 - offset]`. Slicing it out
is what masks narrow types (uint8, bool, address...) to their declared width.

Blobs (`string`, `bytes`) use one of two encodings, told apart by the parity
of the lowest byte of the blob's own slot word:
- even → short: length is `lsb // 2`, data sits inline at the high-order end.
- odd → long: the word holds `2 * length + 1`; data lives in consecutive slots
  starting at keccak256(slot).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from eth_utils import to_canonical_address, to_checksum_address

from slotlens.constants import SHORT_BLOB_MAX, WORD_SIZE
from slotlens.core.config import DecoderConfig
from slotlens.core.errors import DecodeLimitExceeded, MalformedValue, UnsupportedType
from slotlens.core.models import BlobType, ScalarType, TypeDescriptor
from slotlens.core.tasks import gather_or_cancel
from slotlens.decoding.slots import from_word, overflow_slot, slot_add, to_word

ReadFn = Callable[[bytes], Awaitable[bytes]]


def extract_packed(word: bytes, offset: int, size: int) -> bytes:
    """Return the `size` bytes stored at byte `offset` (counted from the right)."""
    if offset < 0 or size <= 0 or offset + size > WORD_SIZE:
        raise ValueError(f"cannot extract {size} bytes at offset {offset} from a word")
    end = WORD_SIZE - offset
    return word[end - size : end]


def decode_bool(raw: bytes) -> bool:
    return from_word(raw) != 0


def decode_uint(raw: bytes) -> int:
    return from_word(raw)


def decode_int(raw: bytes) -> int:
    """Two's-complement signed integer of `len(raw) * 8` bits."""
    return int.from_bytes(raw, "big", signed=True)


def decode_address(raw: bytes, number_of_bytes: int = 20) -> str:
    """Checksum-cased address from the rightmost `number_of_bytes` bytes."""
    data = raw[-number_of_bytes:].rjust(20, b"\x00")[-20:]
    return to_checksum_address("0x" + data.hex())


def decode_scalar(word: bytes, descriptor: ScalarType, offset: int = 0) -> Any:
    """Decode one value type packed in `word` at byte `offset`."""
    raw = extract_packed(word, offset, descriptor.number_of_bytes)
    kind = descriptor.kind
    if kind == "bool":
        return decode_bool(raw)
    if kind in ("uint", "enum"):
        return decode_uint(raw)
    if kind == "int":
        return decode_int(raw)
    if kind == "address":
        return decode_address(raw, descriptor.number_of_bytes)
    if kind == "fixed_bytes":
        return bytes(raw)
    raise UnsupportedType(descriptor.label)


# ---------- blobs ----------


def blob_length(word: bytes, descriptor: BlobType) -> tuple[int, bool]:
    """Return `(length, is_long)` for the blob whose slot holds `word`."""
    lsb = word[-1]
    if lsb & 1:
        return (from_word(word) - 1) // 2, True
    length = lsb // 2
    if length > SHORT_BLOB_MAX:
        raise MalformedValue(descriptor.label, f"short encoding with length {length}")
    return length, False


def _finish_blob(data: bytes, descriptor: BlobType) -> str | bytes:
    if descriptor.kind == "string":
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedValue(descriptor.label, f"invalid UTF-8 ({e.reason})") from e
    return bytes(data)


async def decode_blob(
    read: ReadFn,
    slot_word: bytes,
    word: bytes,
    descriptor: BlobType,
    config: DecoderConfig,
) -> str | bytes:
    """Decode a `string`/`bytes` value stored at `slot_word` (whose content is `word`)."""
    length, is_long = blob_length(word, descriptor)
    if not is_long:
        return _finish_blob(word[:length], descriptor)

    if length > config.max_blob_length:
        raise DecodeLimitExceeded(f"{descriptor.label} length {length}", config.max_blob_length)

    start = overflow_slot(slot_word)
    n_words = (length + WORD_SIZE - 1) // WORD_SIZE
    chunks = await gather_or_cancel(read(slot_add(start, k)) for k in range(n_words))
    return _finish_blob(b"".join(chunks)[:length], descriptor)


# ---------- mapping keys ----------


def _key_int(key: Any) -> int:
    if isinstance(key, bool):
        return int(key)
    if isinstance(key, int):
        return key
    if isinstance(key, str):
        return int(key, 0)
    raise TypeError(f"cannot use {type(key).__name__} as an integer key")


def _key_bytes(key: Any) -> bytes:
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    if isinstance(key, str) and key.lower().startswith("0x"):
        return bytes.fromhex(key[2:])
    raise TypeError(f"cannot use {key!r} as a bytes key")


def encode_key(key: Any, descriptor: TypeDescriptor) -> bytes:
    """Encode a mapping key the way Solidity hashes it into a slot.

    Value types become one left-padded word (`bytesN` is right-padded);
    `string`/`bytes` keys are hashed as their raw bytes.
    """
    if isinstance(descriptor, BlobType):
        if descriptor.kind == "string" and isinstance(key, str):
            return key.encode("utf-8")
        return _key_bytes(key)
    if not isinstance(descriptor, ScalarType):
        raise UnsupportedType(descriptor.label)

    kind = descriptor.kind
    if kind == "address":
        return to_canonical_address(key).rjust(WORD_SIZE, b"\x00")
    if kind == "fixed_bytes":
        raw = _key_bytes(key)
        if len(raw) > descriptor.number_of_bytes:
            raise ValueError(f"key longer than {descriptor.label}")
        return raw.ljust(WORD_SIZE, b"\x00")
    if kind == "int":
        n = _key_int(key)
        return n.to_bytes(WORD_SIZE, "big", signed=True)
    if kind == "bool":
        if isinstance(key, str):
            key = key.lower() in ("true", "1")
        return to_word(1 if key else 0)
    return to_word(_key_int(key))
