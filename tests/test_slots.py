import pytest
from eth_utils import keccak

from slotlens.decoding.slots import as_hex, from_word, mapping_slot, overflow_slot, slot_add, to_word

MAX = 2**256 - 1


@pytest.mark.parametrize("n", [0, 1, 255, 256, 2**64, 2**64 + 1, 2**128 - 1, 2**255, MAX])
def test_word_round_trip(n: int) -> None:
    word = to_word(n)
    assert len(word) == 32
    assert from_word(word) == n


def test_to_word_is_left_padded_big_endian() -> None:
    assert to_word(1) == b"\x00" * 31 + b"\x01"
    assert to_word(0x0102) == b"\x00" * 30 + b"\x01\x02"


@pytest.mark.parametrize("n", [-1, 2**256, 2**300])
def test_to_word_rejects_out_of_range(n: int) -> None:
    with pytest.raises(ValueError):
        to_word(n)


def test_from_word_short_and_empty_inputs() -> None:
    assert from_word(b"") == 0
    assert from_word(b"\x00" * 32) == 0
    assert from_word(b"\x01\x00") == 256


def test_from_word_rejects_more_than_32_bytes() -> None:
    with pytest.raises(ValueError):
        from_word(b"\x01" * 33)


def test_overflow_slot_of_slot_zero() -> None:
    assert as_hex(overflow_slot(to_word(0))) == "0x290decd9548b62a8d60345a988386fc84ba6bc95484008f6362f93160ef3e563"


def test_slot_add_increments_and_wraps() -> None:
    assert from_word(slot_add(to_word(5), 3)) == 8
    assert slot_add(to_word(MAX), 1) == to_word(0)


def test_mapping_slot_hashes_key_then_slot() -> None:
    key = to_word(0xABC)
    slot = to_word(7)
    assert mapping_slot(key, slot) == keccak(key + slot)
    assert mapping_slot(key, slot) != mapping_slot(slot, key)
