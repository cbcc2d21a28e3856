from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class DecoderConfig:
    """Safety bounds applied while walking a layout."""

    max_depth: int = 64  # nested struct/array levels
    max_array_length: int = 100_000  # elements per array
    max_blob_length: int = 1 << 20  # bytes per string/bytes value


@dataclass(frozen=True)
class ReadConfig:
    """Configuration for decoding a live contract (CLI)."""

    rpc_url: str
    address: str
    layout_path: Path
    block: int | str = "latest"
    variables: list[str] = field(default_factory=list)
    contract: str | None = None  # "Source.sol:Name" when the layout file is full compiler output
    timeout_s: int = 20
    concurrency: int = 16
    as_json: bool = False
