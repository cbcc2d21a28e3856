"""Public query API.

This module provides two layers:

1) Pure queries against any `IStorageReader`:
   - `get_variable(reader, layout, name)`
   - `get_variables(reader, layout)`
   - `get_mapping_entry(reader, layout, name, *keys)`
   They hold no state between calls; each call is an independent decode
   against the reader's snapshot.

2) `read_contract(config)` (convenience wrapper):
   - Wires a concrete RPC reader pinned to one block for CLI / script usage.
   - Closes the RPC client when done.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from slotlens.clients.rpc import RPC, ContractStorage
from slotlens.core.config import DecoderConfig, ReadConfig
from slotlens.core.interfaces import IStorageReader
from slotlens.core.models import DecodedVariable, MappingType, StorageLayout
from slotlens.core.tasks import gather_or_cancel
from slotlens.decoding.scalars import encode_key
from slotlens.decoding.slots import from_word, mapping_slot, to_word
from slotlens.decoding.walker import StorageWalker
from slotlens.layout.loader import LayoutSource, load_layout, load_layout_file

logger = logging.getLogger(__name__)

MIN_RPC_CONNECTIONS = 32


def _as_layout(layout: LayoutSource) -> StorageLayout:
    return layout if isinstance(layout, StorageLayout) else load_layout(layout)


# ---------------------------------------------------------------------------
# 1) Pure queries
# ---------------------------------------------------------------------------


async def get_variable(
    reader: IStorageReader,
    layout: LayoutSource,
    name: str,
    *,
    config: DecoderConfig | None = None,
) -> DecodedVariable:
    """Decode one declared variable by label (first exact match).

    Raises VariableNotFound when no variable carries `name`.
    """
    layout = _as_layout(layout)
    item = layout.find(name)
    return await StorageWalker(layout, reader, config).decode_variable(item)


async def get_variables(
    reader: IStorageReader,
    layout: LayoutSource,
    *,
    config: DecoderConfig | None = None,
) -> dict[str, DecodedVariable]:
    """Decode every declared variable, concurrently, in declaration order.

    One failing variable fails the whole batch and cancels the rest.
    """
    layout = _as_layout(layout)
    walker = StorageWalker(layout, reader, config)
    values = await gather_or_cancel(walker.decode_variable(item) for item in layout.storage)
    logger.info("decoded %d variables", len(values))
    return {item.label: value for item, value in zip(layout.storage, values)}


async def get_mapping_entry(
    reader: IStorageReader,
    layout: LayoutSource,
    name: str,
    *keys: Any,
    config: DecoderConfig | None = None,
) -> DecodedVariable:
    """Decode the value stored under explicit key(s) of a mapping variable.

    Nested mappings take one key per level, e.g.
    `get_mapping_entry(reader, layout, "allowance", owner, spender)`.
    """
    if not keys:
        raise ValueError("at least one mapping key is required")
    layout = _as_layout(layout)
    item = layout.find(name)
    descriptor = layout.resolve(item.type_ref)
    slot = item.slot
    for key in keys:
        if not isinstance(descriptor, MappingType):
            raise ValueError(f"{name}: {descriptor.label} is not a mapping, too many keys")
        key_word = encode_key(key, layout.resolve(descriptor.key_ref))
        slot = from_word(mapping_slot(key_word, to_word(slot)))
        descriptor = layout.resolve(descriptor.value_ref)
    value = await StorageWalker(layout, reader, config).decode(slot, 0, descriptor)
    return DecodedVariable(type=descriptor.label, value=value)


# ---------------------------------------------------------------------------
# 2) RPC wiring
# ---------------------------------------------------------------------------


async def decode_selected(
    reader: IStorageReader,
    layout: StorageLayout,
    names: list[str],
    *,
    config: DecoderConfig | None = None,
) -> Mapping[str, DecodedVariable]:
    """Decode `names` (or every variable when empty)."""
    if not names:
        return await get_variables(reader, layout, config=config)
    values = await gather_or_cancel(get_variable(reader, layout, n, config=config) for n in names)
    return dict(zip(names, values))


async def read_contract(
    config: ReadConfig,
    *,
    decoder_config: DecoderConfig | None = None,
) -> Mapping[str, DecodedVariable]:
    """Decode variables of a live contract described by `config`."""
    layout = load_layout_file(config.layout_path, contract=config.contract)
    rpc = RPC(
        config.rpc_url,
        timeout_s=config.timeout_s,
        max_connections=max(MIN_RPC_CONNECTIONS, 2 * config.concurrency),
    )
    try:
        reader = await ContractStorage.pinned(
            rpc,
            config.address,
            block=config.block,
            concurrency=config.concurrency,
        )
        logger.info("reading %s at block %s", config.address, reader.block)
        return await decode_selected(reader, layout, config.variables, config=decoder_config)
    finally:
        await rpc.aclose()
