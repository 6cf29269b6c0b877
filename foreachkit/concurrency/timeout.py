"""Deadline race for a single callback invocation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, TypeVar

from ..errors import ForEachTimeoutError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _discard_outcome(task: "asyncio.Future[Any]") -> None:
    # Late settlement of a timed-out callback; retrieve it so asyncio never
    # reports an unhandled exception for it.
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug("Discarding late failure from timed-out callback: %r", error)


async def with_timeout(awaitable: Awaitable[T], timeout_ms: int, context: str) -> T:
    """
    Await ``awaitable`` unless ``timeout_ms`` elapses first.

    The callback is not cancelled when the deadline wins; it keeps running
    and its eventual result or exception is dropped.

    Raises:
        ForEachTimeoutError: The deadline expired first
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.add_done_callback(_discard_outcome)
        raise

    if task in done:
        return task.result()

    task.add_done_callback(_discard_outcome)
    logger.warning("Operation timed out after %dms at %s", timeout_ms, context)
    raise ForEachTimeoutError(
        f"Operation timed out after {timeout_ms}ms at {context}",
        {"timeout": timeout_ms, "context": context},
    )
