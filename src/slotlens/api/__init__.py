"""Public query API over storage readers."""

from slotlens.api.variables import (
    decode_selected,
    get_mapping_entry,
    get_variable,
    get_variables,
    read_contract,
)

__all__ = [
    "decode_selected",
    "get_mapping_entry",
    "get_variable",
    "get_variables",
    "read_contract",
]
