"""Network clients (JSON-RPC)."""

from slotlens.clients.rpc import RPC, ContractStorage

__all__ = ["RPC", "ContractStorage"]
