"""Fail-fast fan-out for sibling decodes.

`gather_or_cancel` behaves like `asyncio.gather` on success: results come
back in argument order. When any child raises, the children still pending are
cancelled and awaited before the first failure (in argument order) is
re-raised unchanged, so no read outlives the decode that issued it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")


async def _cancel_all(tasks: list[asyncio.Future[Any]]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def gather_or_cancel(aws: Iterable[Awaitable[T]]) -> list[T]:
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        await _cancel_all(tasks)
        raise

    if pending:
        await _cancel_all(list(pending))

    failures = [t.exception() for t in tasks if t in done and not t.cancelled() and t.exception() is not None]
    if failures:
        raise failures[0]
    return [t.result() for t in tasks]
