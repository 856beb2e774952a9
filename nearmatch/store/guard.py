"""Timeout guard for store calls."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

import structlog

from nearmatch.exceptions import StoreUnavailable

logger = structlog.get_logger("nearmatch.store")

T = TypeVar("T")


async def guarded(awaitable: Awaitable[T], timeout: float, operation: str) -> T:
    """Await a store call, converting a timeout into ``StoreUnavailable``.

    Nothing is retried here; retry policy belongs to the caller.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("store_call_timeout", operation=operation, timeout=timeout)
        raise StoreUnavailable(
            f"Profile store did not answer {operation!r} within {timeout}s",
            operation=operation,
        ) from exc
