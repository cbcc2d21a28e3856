"""Error taxonomy for storage decoding.

Every error raised by the decoder derives from `StorageDecodeError` so callers
can catch the whole family at once. The decoder never retries: read failures
raised by a storage reader propagate unchanged.
"""

from __future__ import annotations


class StorageDecodeError(Exception):
    """Base class for all decoding errors."""


class LayoutError(StorageDecodeError):
    """Layout JSON does not match the compiler storage-layout shape."""


class VariableNotFound(StorageDecodeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"No variable '{name}' in storage layout")
        self.name = name


class UnknownTypeReference(StorageDecodeError):
    def __init__(self, type_ref: str) -> None:
        super().__init__(f"Type reference '{type_ref}' missing from layout types")
        self.type_ref = type_ref


class UnsupportedType(StorageDecodeError):
    def __init__(self, label: str) -> None:
        super().__init__(f"Storage type {label} not supported")
        self.label = label


class StorageReadFailure(StorageDecodeError):
    """The storage read capability failed for one slot."""

    def __init__(self, slot: str, reason: str) -> None:
        super().__init__(f"Failed to read slot {slot}: {reason}")
        self.slot = slot
        self.reason = reason


class MalformedValue(StorageDecodeError):
    """Stored bytes violate the encoding of their declared type."""

    def __init__(self, label: str, reason: str) -> None:
        super().__init__(f"Malformed {label} value: {reason}")
        self.label = label
        self.reason = reason


class DecodeLimitExceeded(StorageDecodeError):
    def __init__(self, what: str, limit: int) -> None:
        super().__init__(f"{what} exceeds limit of {limit}")
        self.what = what
        self.limit = limit
