import asyncio
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from slotlens.api.variables import decode_selected, read_contract
from slotlens.core.config import ReadConfig
from slotlens.core.errors import StorageDecodeError
from slotlens.core.models import DecodedVariable
from slotlens.layout.loader import load_layout_file
from slotlens.storage.memory import MemoryStorage

console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def to_jsonable(value: Any) -> Any:
    """Render decoded values as JSON-compatible data (bytes → 0x-hex)."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Mapping):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    return value


def _add_branch(tree: Tree, label: str, value: Any) -> None:
    if isinstance(value, Mapping):
        branch = tree.add(f"[bold]{escape(label)}[/]" + (" [dim]{}[/]" if not value else ""))
        for k, v in value.items():
            _add_branch(branch, str(k), v)
    elif isinstance(value, list):
        branch = tree.add(f"[bold]{escape(label)}[/] [dim]({len(value)})[/]")
        for i, v in enumerate(value):
            _add_branch(branch, f"[{i}]", v)
    else:
        tree.add(f"[bold]{escape(label)}[/] = " + escape(repr(to_jsonable(value))))


def _render(results: Mapping[str, DecodedVariable], as_json: bool) -> None:
    if as_json:
        console.print_json(json.dumps({k: to_jsonable(v.as_dict()) for k, v in results.items()}))
        return
    root = Tree("[bold]storage[/]")
    for name, decoded in results.items():
        node = root.add(f"[bold cyan]{escape(name)}[/] [green]{escape(decoded.type)}[/]")
        if isinstance(decoded.value, (Mapping, list)):
            _add_branch(node, "value", decoded.value)
        else:
            node.add(escape(repr(to_jsonable(decoded.value))))
    console.print(root)


def _parse_block(block: str) -> int | str:
    if block.lower().startswith("0x"):
        return int(block, 16)
    if block.isdigit():
        return int(block)
    return block


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except StorageDecodeError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("-v", "--verbose", count=True, help="-v for info, -vv for debug logs")
def cli(verbose: int) -> None:
    """Decode Solidity contract storage into typed values."""
    _configure_logging(verbose)


layout_option = click.option(
    "--layout",
    "layout_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="storageLayout JSON (or full compiler output with --contract)",
)
contract_option = click.option("--contract", default=None, help="Source.sol:Name when --layout is compiler output")
var_option = click.option("--var", "variables", multiple=True, help="Variable label; repeat for several (default: all)")
json_option = click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON instead of a tree")


@cli.command("read")
@click.option("--rpc", required=True, envvar="SLOTLENS_RPC_URL", help="RPC endpoint URL")
@click.option("--address", required=True, help="Contract address")
@click.option("--block", default="latest", show_default=True, help="Block number or tag")
@layout_option
@contract_option
@var_option
@json_option
@click.option("--timeout", "timeout_s", type=int, default=20, show_default=True, help="Per-request timeout (s)")
@click.option("--concurrency", type=int, default=16, show_default=True, help="Max parallel storage reads")
def read_cmd(
    rpc: str,
    address: str,
    block: str,
    layout_path: Path,
    contract: str | None,
    variables: tuple[str, ...],
    as_json: bool,
    timeout_s: int,
    concurrency: int,
) -> None:
    """Decode variables of a deployed contract through eth_getStorageAt."""
    config = ReadConfig(
        rpc_url=rpc,
        address=address,
        layout_path=layout_path,
        block=_parse_block(block),
        variables=list(variables),
        contract=contract,
        timeout_s=timeout_s,
        concurrency=concurrency,
        as_json=as_json,
    )
    results = _run(read_contract(config))
    _render(results, config.as_json)


@cli.command("snapshot")
@click.option(
    "--storage",
    "storage_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="JSON dump of slot → word",
)
@layout_option
@contract_option
@var_option
@json_option
def snapshot_cmd(
    storage_path: Path,
    layout_path: Path,
    contract: str | None,
    variables: tuple[str, ...],
    as_json: bool,
) -> None:
    """Decode variables from a storage dump file."""

    async def run() -> Mapping[str, DecodedVariable]:
        layout = load_layout_file(layout_path, contract=contract)
        reader = MemoryStorage.from_json(storage_path)
        return await decode_selected(reader, layout, list(variables))

    _render(_run(run()), as_json)


@cli.command("layout")
@layout_option
@contract_option
def layout_cmd(layout_path: Path, contract: str | None) -> None:
    """List declared variables with their slot, offset and type."""
    try:
        layout = load_layout_file(layout_path, contract=contract)
    except StorageDecodeError as e:
        raise click.ClickException(str(e)) from e

    table = Table(title=str(layout_path))
    table.add_column("label", style="bold cyan")
    table.add_column("slot", justify="right")
    table.add_column("offset", justify="right")
    table.add_column("type", style="green")
    table.add_column("kind", style="dim")
    for item in layout.storage:
        descriptor = layout.types.get(item.type_ref)
        type_label = descriptor.label if descriptor is not None else f"? {item.type_ref}"
        kind = type(descriptor).__name__ if descriptor is not None else "missing"
        table.add_row(item.label, str(item.slot), str(item.offset), type_label, kind)
    console.print(table)


if __name__ == "__main__":
    cli()
