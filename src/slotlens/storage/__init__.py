"""Storage readers that do not need a live node."""

from slotlens.storage.memory import MemoryStorage

__all__ = ["MemoryStorage"]
