from __future__ import annotations

from typing import Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# IStorageReader
# ---------------------------------------------------------------------------

@runtime_checkable
class IStorageReader(Protocol):
    """
    Abstract read capability over one contract's storage.

    Domain expectations:
    - `slot` is a 32-byte big-endian slot word.
    - It returns the 32-byte word stored there, or the zero word for a slot
      that was never written.
    - Within one decode session the underlying state is a stable snapshot.
    - It never writes.
    """

    async def read(self, slot: bytes) -> bytes:
        """
        Return the 32-byte word stored at `slot`.

        Implementations:
        - ContractStorage (eth_getStorageAt over JSON-RPC, pinned block)
        - MemoryStorage (in-memory snapshot / state dump)

        Failures must surface as StorageReadFailure.
        """
        ...
