"""Wire models for the compiler `storageLayout` JSON.

Field names match solc output verbatim (`numberOfBytes`, `astId`...).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from pydantic import BaseModel


class StorageItem(BaseModel):
    label: str
    offset: int = 0
    slot: str
    type: str
    astId: Optional[int] = None
    contract: Optional[str] = None


class TypeItem(BaseModel):
    label: str
    numberOfBytes: str
    encoding: Optional[str] = None
    members: Optional[Sequence[StorageItem]] = None
    key: Optional[str] = None
    value: Optional[str] = None
    base: Optional[str] = None


class StorageLayoutJson(BaseModel):
    storage: Sequence[StorageItem]
    types: Optional[dict[str, TypeItem]] = None
