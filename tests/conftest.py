from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest
from eth_utils import keccak

from slotlens.storage.memory import MemoryStorage

ADDR = "0x5BF4be9de72713bFE39A30EbE0691afd5fb7413a"
OTHER_ADDR = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"

S_TYPE = "t_struct(S)14_storage"


def _word(n: int) -> bytes:
    return n.to_bytes(32, "big")


class StorageBuilder:
    """Lays out values the way solc does, into a plain {slot: word} dict."""

    def __init__(self) -> None:
        self.words: dict[int, bytes] = {}

    def put(self, slot: int, word: bytes | int) -> None:
        self.words[slot] = _word(word) if isinstance(word, int) else word

    def data_slot(self, slot: int) -> int:
        return int.from_bytes(keccak(_word(slot)), "big")

    def put_blob(self, slot: int, data: bytes) -> None:
        if len(data) <= 31:
            self.put(slot, data.ljust(31, b"\x00") + bytes([len(data) * 2]))
            return
        self.put(slot, 2 * len(data) + 1)
        start = self.data_slot(slot)
        for k in range(0, len(data), 32):
            self.put(start + k // 32, data[k : k + 32].ljust(32, b"\x00"))

    def put_uint_array(self, slot: int, values: list[int]) -> None:
        self.put(slot, len(values))
        start = self.data_slot(slot)
        for i, v in enumerate(values):
            self.put(start + i, v)

    def put_s(self, base: int, a: int, c: int, nested: str) -> None:
        self.put(base, a)
        self.put(base + 1, c)
        self.put_blob(base + 2, nested.encode())

    def put_s_array(self, slot: int, items: list[tuple[int, int, str]]) -> None:
        self.put(slot, len(items))
        start = self.data_slot(slot)
        for i, (a, c, nested) in enumerate(items):
            self.put_s(start + 3 * i, a, c, nested)

    def reader(self) -> MemoryStorage:
        return MemoryStorage(self.words)


@pytest.fixture
def builder() -> StorageBuilder:
    return StorageBuilder()


@pytest.fixture
def contract_layout() -> dict[str, Any]:
    """storageLayout emitted by solc for:

    contract A {
      struct S { uint256 a; uint256 c; string nestedString; }
      uint x = 1; uint y = 2; bool b = true; S s;
      address addr; mapping(address => bool) map1;
      string s1; bytes b1; S[] sArray; uint256[] array;
    }
    """

    def item(ast_id: int, label: str, slot: int, type_ref: str, offset: int = 0) -> dict[str, Any]:
        return {
            "astId": ast_id,
            "contract": "Storage.sol:A",
            "label": label,
            "offset": offset,
            "slot": str(slot),
            "type": type_ref,
        }

    return {
        "storage": [
            item(16, "x", 0, "t_uint256"),
            item(19, "y", 1, "t_uint256"),
            item(22, "b", 2, "t_bool"),
            item(25, "s", 3, S_TYPE),
            item(28, "addr", 6, "t_address"),
            item(32, "map1", 7, "t_mapping(t_address,t_bool)"),
            item(34, "s1", 8, "t_string_storage"),
            item(36, "b1", 9, "t_bytes_storage"),
            item(40, "sArray", 10, "t_array(t_struct(S)14_storage)dyn_storage"),
            item(43, "array", 11, "t_array(t_uint256)dyn_storage"),
        ],
        "types": {
            "t_address": {"encoding": "inplace", "label": "address", "numberOfBytes": "20"},
            "t_array(t_struct(S)14_storage)dyn_storage": {
                "base": S_TYPE,
                "encoding": "dynamic_array",
                "label": "struct A.S[]",
                "numberOfBytes": "32",
            },
            "t_array(t_uint256)dyn_storage": {
                "base": "t_uint256",
                "encoding": "dynamic_array",
                "label": "uint256[]",
                "numberOfBytes": "32",
            },
            "t_bool": {"encoding": "inplace", "label": "bool", "numberOfBytes": "1"},
            "t_bytes_storage": {"encoding": "bytes", "label": "bytes", "numberOfBytes": "32"},
            "t_mapping(t_address,t_bool)": {
                "encoding": "mapping",
                "key": "t_address",
                "label": "mapping(address => bool)",
                "numberOfBytes": "32",
                "value": "t_bool",
            },
            "t_string_storage": {"encoding": "bytes", "label": "string", "numberOfBytes": "32"},
            S_TYPE: {
                "encoding": "inplace",
                "label": "struct A.S",
                "members": [
                    item(8, "a", 0, "t_uint256"),
                    item(10, "c", 1, "t_uint256"),
                    item(12, "nestedString", 2, "t_string_storage"),
                ],
                "numberOfBytes": "96",
            },
            "t_uint256": {"encoding": "inplace", "label": "uint256", "numberOfBytes": "32"},
        },
    }


@pytest.fixture
def deployed(builder: StorageBuilder) -> StorageBuilder:
    """State of contract A right after its constructor ran."""
    builder.put(0, 1)
    builder.put(1, 2)
    builder.put(2, 1)
    builder.put_s(3, 7, 3, "hello")
    builder.put(6, int(ADDR, 16))
    # map1[OTHER_ADDR] = true
    key = bytes.fromhex(OTHER_ADDR[2:]).rjust(32, b"\x00")
    builder.put(int.from_bytes(keccak(key + _word(7)), "big"), 1)
    builder.put_s_array(10, [(5, 4, "yo"), (8, 9, "oy")])
    builder.put_uint_array(11, [1, 2, 3])
    return builder


@pytest.fixture
def mock_rpc():
    rpc = AsyncMock()
    rpc.get_storage_at = AsyncMock(return_value=b"\x00" * 32)
    rpc.latest_block = AsyncMock(return_value=100)
    rpc.aclose = AsyncMock()
    return rpc
