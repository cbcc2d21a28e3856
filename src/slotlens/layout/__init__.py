"""Storage layout loading.

This package provides:
- Wire models mirroring the compiler `storageLayout` JSON (pydantic)
- The loader that classifies every type entry into a descriptor variant
"""

from slotlens.layout.loader import (
    classify_type,
    layout_from_compiler_output,
    load_layout,
    load_layout_file,
    validate_layout,
)
from slotlens.layout.schema import StorageItem, StorageLayoutJson, TypeItem

__all__ = [
    "classify_type",
    "layout_from_compiler_output",
    "load_layout",
    "load_layout_file",
    "validate_layout",
    "StorageItem",
    "StorageLayoutJson",
    "TypeItem",
]
