"""Lightweight JSON-RPC client for Ethereum-compatible nodes.

This module provides:
- `RPC`: an async client with sane timeouts/connection limits
- `ContractStorage`: an `IStorageReader` over `eth_getStorageAt`, pinned to
  one block so a decode session reads a stable snapshot
- Helper utilities to format block identifiers
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from slotlens.constants import WORD_SIZE
from slotlens.core.errors import StorageReadFailure
from slotlens.decoding.slots import as_hex

logger = logging.getLogger(__name__)

BlockId = int | str


def to_hex_block(x: BlockId) -> str:
    """Return a 0x-prefixed hex block number, or pass a block tag through."""
    if isinstance(x, int):
        return hex(x)
    return x


def word_from_hex(value: str) -> bytes:
    """Normalize an RPC hex quantity/data string into a 32-byte word."""
    h = value[2:] if value.lower().startswith("0x") else value
    if len(h) % 2:
        h = "0" + h
    raw = bytes.fromhex(h)
    if len(raw) > WORD_SIZE:
        raise ValueError(f"storage value longer than {WORD_SIZE} bytes: {value}")
    return raw.rjust(WORD_SIZE, b"\x00")


class RPC:
    """Minimal async RPC client.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    """

    def __init__(self, url: str, *, timeout_s: int = 20, max_connections: int = 64) -> None:
        self.url = url
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
        )

    async def call(self, method: str, params: list[Any]) -> Any:
        """Issue one JSON-RPC call and return its `result`."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        logger.debug("rpc %s %s", method, params)
        r = await self.client.post(self.url, json=payload)
        r.raise_for_status()
        data = r.json()
        if "error" in data:
            e = data["error"]
            logger.warning("rpc %s failed: %s", method, e)
            raise RuntimeError(f"RPC error: {e.get('code')} {e.get('message')}")
        return data.get("result")

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        return int(await self.call("eth_blockNumber", []), 16)

    async def get_storage_at(self, address: str, slot: bytes, block: BlockId = "latest") -> bytes:
        """Return the 32-byte word stored at `slot` of `address` at `block`."""
        result = await self.call(
            "eth_getStorageAt",
            [address.lower(), as_hex(slot), to_hex_block(block)],
        )
        if not isinstance(result, str):
            raise RuntimeError(f"RPC error: unexpected eth_getStorageAt result {result!r}")
        return word_from_hex(result)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()


class ContractStorage:
    """Storage reader for one contract over JSON-RPC.

    Reads are bounded by a semaphore of `concurrency` in-flight requests.
    Use `pinned()` to resolve "latest" once so every read in a session hits
    the same block.
    """

    def __init__(
        self,
        rpc: RPC,
        address: str,
        *,
        block: BlockId = "latest",
        concurrency: int = 16,
    ) -> None:
        self.rpc = rpc
        self.address = address
        self.block = block
        self._sem = asyncio.Semaphore(concurrency)

    @classmethod
    async def pinned(
        cls,
        rpc: RPC,
        address: str,
        *,
        block: BlockId = "latest",
        concurrency: int = 16,
    ) -> ContractStorage:
        """Build a reader whose block tag "latest" is resolved to a number."""
        if isinstance(block, str) and block.lower() == "latest":
            try:
                block = await rpc.latest_block()
            except (httpx.HTTPError, RuntimeError, ValueError) as e:
                raise StorageReadFailure("<head>", f"{type(e).__name__}: {e}") from e
        return cls(rpc, address, block=block, concurrency=concurrency)

    async def read(self, slot: bytes) -> bytes:
        try:
            async with self._sem:
                return await self.rpc.get_storage_at(self.address, slot, self.block)
        except (httpx.HTTPError, RuntimeError, ValueError) as e:
            raise StorageReadFailure(as_hex(slot), f"{type(e).__name__}: {e}") from e
