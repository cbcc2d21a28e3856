"""Core data models, configuration, interfaces and errors.

This package provides:
- Layout models (StorageLayout, DeclaredVariable, type descriptors)
- Configuration classes (DecoderConfig, ReadConfig)
- The storage read capability protocol (IStorageReader)
- The decoding error taxonomy
"""

from slotlens.core.config import DecoderConfig, ReadConfig
from slotlens.core.errors import (
    DecodeLimitExceeded,
    LayoutError,
    MalformedValue,
    StorageDecodeError,
    StorageReadFailure,
    UnknownTypeReference,
    UnsupportedType,
    VariableNotFound,
)
from slotlens.core.interfaces import IStorageReader
from slotlens.core.models import DecodedVariable, DeclaredVariable, StorageLayout, TypeDescriptor

__all__ = [
    "DecoderConfig",
    "ReadConfig",
    "DecodeLimitExceeded",
    "LayoutError",
    "MalformedValue",
    "StorageDecodeError",
    "StorageReadFailure",
    "UnknownTypeReference",
    "UnsupportedType",
    "VariableNotFound",
    "IStorageReader",
    "DecodedVariable",
    "DeclaredVariable",
    "StorageLayout",
    "TypeDescriptor",
]
