import json
from pathlib import Path
from typing import Any

import pytest

from slotlens.core.errors import LayoutError, UnknownTypeReference, UnsupportedType, VariableNotFound
from slotlens.core.models import (
    BlobType,
    DynamicArrayType,
    MappingType,
    ScalarType,
    StaticArrayType,
    StructType,
    UnsupportedPrimitive,
)
from slotlens.layout.loader import classify_type, layout_from_compiler_output, load_layout, load_layout_file
from slotlens.layout.schema import TypeItem


def test_load_layout_classifies_every_type(contract_layout: dict[str, Any]) -> None:
    layout = load_layout(contract_layout)

    assert layout.labels() == ["x", "y", "b", "s", "addr", "map1", "s1", "b1", "sArray", "array"]
    assert isinstance(layout.resolve("t_uint256"), ScalarType)
    assert layout.resolve("t_bool").kind == "bool"
    assert isinstance(layout.resolve("t_string_storage"), BlobType)
    assert isinstance(layout.resolve("t_mapping(t_address,t_bool)"), MappingType)
    assert isinstance(layout.resolve("t_array(t_uint256)dyn_storage"), DynamicArrayType)

    s = layout.resolve("t_struct(S)14_storage")
    assert isinstance(s, StructType)
    assert [(m.label, m.slot) for m in s.members] == [("a", 0), ("c", 1), ("nestedString", 2)]


def test_slots_are_arbitrary_precision() -> None:
    big = str(2**200)
    layout = load_layout(
        {
            "storage": [{"label": "v", "offset": 0, "slot": big, "type": "t_uint256"}],
            "types": {"t_uint256": {"label": "uint256", "numberOfBytes": "32"}},
        }
    )
    assert layout.find("v").slot == 2**200


def test_find_missing_variable(contract_layout: dict[str, Any]) -> None:
    with pytest.raises(VariableNotFound):
        load_layout(contract_layout).find("nope")


@pytest.mark.parametrize(
    "item,expected",
    [
        ({"label": "uint8", "numberOfBytes": "1"}, ScalarType("uint8", 1, "uint")),
        ({"label": "int24", "numberOfBytes": "3"}, ScalarType("int24", 3, "int")),
        ({"label": "bytes32", "numberOfBytes": "32"}, ScalarType("bytes32", 32, "fixed_bytes")),
        ({"label": "address payable", "numberOfBytes": "20"}, ScalarType("address payable", 20, "address")),
        ({"label": "contract IERC20", "numberOfBytes": "20"}, ScalarType("contract IERC20", 20, "address")),
        ({"label": "enum A.Status", "numberOfBytes": "1"}, ScalarType("enum A.Status", 1, "enum")),
        ({"label": "fixed128x18", "numberOfBytes": "16"}, UnsupportedPrimitive("fixed128x18", 16)),
        (
            {"label": "uint256[3]", "numberOfBytes": "96", "encoding": "inplace", "base": "t_uint256"},
            StaticArrayType("uint256[3]", 96, "t_uint256", 3),
        ),
        (
            {"label": "uint256[]", "numberOfBytes": "32", "base": "t_uint256"},
            DynamicArrayType("uint256[]", 32, "t_uint256"),
        ),
        (
            {"label": "mapping(uint256 => bool)", "numberOfBytes": "32", "key": "t_uint256", "value": "t_bool"},
            MappingType("mapping(uint256 => bool)", 32, "t_uint256", "t_bool"),
        ),
    ],
)
def test_classify_type(item: dict[str, Any], expected: Any) -> None:
    assert classify_type(TypeItem.model_validate(item)) == expected


def test_strict_load_reports_unknown_reference(contract_layout: dict[str, Any]) -> None:
    del contract_layout["types"]["t_bool"]
    layout = load_layout(contract_layout)  # lazy by default
    with pytest.raises(UnknownTypeReference) as exc:
        load_layout(contract_layout, strict=True)
    assert exc.value.type_ref == "t_bool"
    with pytest.raises(UnknownTypeReference):
        layout.resolve("t_bool")


def test_strict_load_reports_unsupported_type() -> None:
    raw = {
        "storage": [{"label": "f", "offset": 0, "slot": "0", "type": "t_fixed"}],
        "types": {"t_fixed": {"label": "fixed128x18", "numberOfBytes": "16"}},
    }
    with pytest.raises(UnsupportedType):
        load_layout(raw, strict=True)


def test_empty_contract_has_null_types() -> None:
    layout = load_layout({"storage": [], "types": None})
    assert layout.storage == ()


@pytest.mark.parametrize(
    "raw",
    [
        {"types": {}},
        {"storage": [{"label": "x", "offset": 0, "slot": "zero", "type": "t"}], "types": {}},
        {"storage": [{"label": "x", "offset": 40, "slot": "0", "type": "t"}], "types": {}},
        {"storage": [{"label": "x", "offset": 0, "slot": str(2**256), "type": "t"}], "types": {}},
        {"storage": [{"label": "x", "offset": 0, "slot": "-1", "type": "t"}], "types": {}},
        {"storage": [], "types": {"t": {"label": "uint256", "numberOfBytes": "lots"}}},
        {"storage": [], "types": {"t": {"label": "uint8", "numberOfBytes": "0"}}},
        {"storage": [], "types": {"t": {"label": "uint256", "numberOfBytes": "64"}}},
    ],
)
def test_invalid_layouts(raw: dict[str, Any]) -> None:
    with pytest.raises(LayoutError):
        load_layout(raw)


def test_load_from_json_text_and_file(contract_layout: dict[str, Any], tmp_path: Path) -> None:
    text = json.dumps(contract_layout)
    path = tmp_path / "layout.json"
    path.write_text(text)

    assert load_layout(text) == load_layout(path)
    with pytest.raises(LayoutError):
        load_layout("{not json")


def test_layout_from_compiler_output(contract_layout: dict[str, Any], tmp_path: Path) -> None:
    output = {"contracts": {"Storage.sol": {"A": {"abi": [], "storageLayout": contract_layout}}}}
    layout = layout_from_compiler_output(output, "Storage.sol", "A")
    assert layout.find("sArray").slot == 10

    path = tmp_path / "out.json"
    path.write_text(json.dumps(output))
    assert load_layout_file(path, contract="Storage.sol:A") == layout

    with pytest.raises(LayoutError):
        layout_from_compiler_output(output, "Storage.sol", "B")
    with pytest.raises(LayoutError):
        load_layout_file(path, contract="A")


def test_highest_slot_is_accepted() -> None:
    raw = {
        "storage": [{"label": "x", "offset": 0, "slot": hex(2**256 - 1), "type": "t_uint8"}],
        "types": {"t_uint8": {"encoding": "inplace", "label": "uint8", "numberOfBytes": "1"}},
    }
    assert load_layout(raw).find("x").slot == 2**256 - 1


@pytest.mark.parametrize("offset", [1, 16, 31])
def test_scalar_must_fit_its_word(offset: int) -> None:
    raw = {
        "storage": [{"label": "x", "offset": offset, "slot": "0", "type": "t_uint256"}],
        "types": {"t_uint256": {"encoding": "inplace", "label": "uint256", "numberOfBytes": "32"}},
    }
    with pytest.raises(LayoutError, match="does not fit"):
        load_layout(raw)


def test_struct_member_must_fit_its_word() -> None:
    raw = {
        "storage": [{"label": "p", "offset": 0, "slot": "0", "type": "t_struct(P)"}],
        "types": {
            "t_struct(P)": {
                "encoding": "inplace",
                "label": "struct C.P",
                "numberOfBytes": "32",
                "members": [
                    {"label": "flag", "offset": 0, "slot": "0", "type": "t_bool"},
                    {"label": "wide", "offset": 16, "slot": "0", "type": "t_uint256"},
                ],
            },
            "t_bool": {"encoding": "inplace", "label": "bool", "numberOfBytes": "1"},
            "t_uint256": {"encoding": "inplace", "label": "uint256", "numberOfBytes": "32"},
        },
    }
    with pytest.raises(LayoutError, match="wide"):
        load_layout(raw)

    raw["types"]["t_struct(P)"]["members"][1]["offset"] = 1
    raw["types"]["t_uint256"] = {"encoding": "inplace", "label": "uint128", "numberOfBytes": "16"}
    layout = load_layout(raw)
    assert layout.types["t_struct(P)"].members[1].offset == 1
