"""In-memory storage snapshot.

`MemoryStorage` implements `IStorageReader` over a fixed `{slot: word}`
mapping. It backs decoding of state dumps (`slotlens snapshot`) and serves as
the fake reader in tests.

Accepted dump shape (JSON object, hex or decimal keys):

    {"0x0": "0x01", "0x290decd9...": "0x..."}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from slotlens.constants import MAX_SLOT, WORD_SIZE, ZERO_WORD
from slotlens.core.errors import StorageReadFailure
from slotlens.decoding.slots import as_hex, from_word, to_word

SlotKey = int | str | bytes
WordValue = int | str | bytes


def _slot_int(key: SlotKey) -> int:
    if isinstance(key, bytes):
        return from_word(key)
    if isinstance(key, str):
        return int(key, 0) if key.lower().startswith("0x") else int(key)
    return key


def _word_bytes(value: WordValue) -> bytes:
    if isinstance(value, int):
        return to_word(value)
    if isinstance(value, str):
        h = value[2:] if value.lower().startswith("0x") else value
        if len(h) % 2:
            h = "0" + h
        value = bytes.fromhex(h)
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"cannot use {type(value).__name__} as a storage word")
    if len(value) > WORD_SIZE:
        raise ValueError(f"storage word longer than {WORD_SIZE} bytes")
    return bytes(value).rjust(WORD_SIZE, b"\x00")


class MemoryStorage:
    """Immutable storage snapshot held in memory."""

    def __init__(self, words: Mapping[SlotKey, WordValue] | None = None) -> None:
        self._words: dict[int, bytes] = {}
        for key, value in (words or {}).items():
            slot = _slot_int(key)
            if not 0 <= slot <= MAX_SLOT:
                raise ValueError(f"slot {key!r} outside the 256-bit range")
            self._words[slot] = _word_bytes(value)

    @classmethod
    def from_json(cls, source: str | Path) -> MemoryStorage:
        """Load a `{slot: word}` JSON dump (file path or JSON text)."""
        text = source.read_text() if isinstance(source, Path) else source
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageReadFailure("<dump>", f"not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StorageReadFailure("<dump>", "expected a JSON object of slot → word")
        try:
            return cls(data)
        except (TypeError, ValueError) as e:
            raise StorageReadFailure("<dump>", str(e)) from e

    def __len__(self) -> int:
        return len(self._words)

    async def read(self, slot: bytes) -> bytes:
        if len(slot) != WORD_SIZE:
            raise StorageReadFailure(as_hex(slot), f"slot must be {WORD_SIZE} bytes")
        return self._words.get(from_word(slot), ZERO_WORD)
