"""Slot arithmetic: word <-> int conversion and keccak-derived slots."""

from __future__ import annotations

from eth_utils import keccak

from slotlens.constants import MAX_SLOT, WORD_SIZE


def to_word(n: int) -> bytes:
    """Return `n` as a 32-byte big-endian word (left zero-padded)."""
    if n < 0 or n > MAX_SLOT:
        raise ValueError(f"{n} does not fit in 256 bits")
    return n.to_bytes(WORD_SIZE, "big")


def from_word(data: bytes) -> int:
    """Interpret up to 32 bytes as a big-endian unsigned integer (empty → 0)."""
    if len(data) > WORD_SIZE:
        raise ValueError(f"expected at most {WORD_SIZE} bytes, got {len(data)}")
    return int.from_bytes(data, "big", signed=False)


def as_hex(word: bytes) -> str:
    """Return a 0x-prefixed hex rendering of a word."""
    return "0x" + word.hex()


def slot_add(slot_word: bytes, k: int) -> bytes:
    """Advance a slot word by `k` slots (wraps modulo 2**256 like the EVM)."""
    return to_word((from_word(slot_word) + k) & MAX_SLOT)


def overflow_slot(slot_word: bytes) -> bytes:
    """First slot of the data region owned by `slot_word` (long blobs, dynamic arrays)."""
    return keccak(slot_word)


def mapping_slot(key_word: bytes, slot_word: bytes) -> bytes:
    """Slot of a mapping value: keccak256(key ++ slot)."""
    return keccak(key_word + slot_word)
