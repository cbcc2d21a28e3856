from __future__ import annotations

from .api.variables import get_mapping_entry, get_variable, get_variables, read_contract
from .clients.rpc import RPC, ContractStorage
from .core.config import DecoderConfig, ReadConfig
from .core.errors import (
    DecodeLimitExceeded,
    LayoutError,
    MalformedValue,
    StorageDecodeError,
    StorageReadFailure,
    UnknownTypeReference,
    UnsupportedType,
    VariableNotFound,
)
from .core.models import DecodedVariable, StorageLayout
from .layout.loader import layout_from_compiler_output, load_layout
from .storage.memory import MemoryStorage

__all__ = [
    "get_variable",
    "get_variables",
    "get_mapping_entry",
    "read_contract",
    "RPC",
    "ContractStorage",
    "MemoryStorage",
    "DecoderConfig",
    "ReadConfig",
    "DecodedVariable",
    "StorageLayout",
    "load_layout",
    "layout_from_compiler_output",
    "StorageDecodeError",
    "LayoutError",
    "VariableNotFound",
    "UnknownTypeReference",
    "UnsupportedType",
    "StorageReadFailure",
    "MalformedValue",
    "DecodeLimitExceeded",
]
