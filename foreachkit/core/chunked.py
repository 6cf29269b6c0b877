"""
Chunked engines.

The (possibly reversed) positions are split into windows of
``chunk_size``. Windows run strictly one after another. After each window
``on_chunk_complete(window_index, success_count)`` fires, including for a
window in which every element failed. The async variant can fan out inside
a window and pause between windows.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, List, Sequence

from ..collection import Collection, Position, as_collection, partition
from ..config import DEFAULT_CHUNK_CONCURRENCY
from ..types import MISSING, ChunkedOptions, resolve_options
from ..utils.performance import PerformanceTracker, log_metrics
from ..utils.validators import validate_callback, validate_chunked_options, validate_target
from .step import OutcomeKind, bind, handle_failure, outcome_for_return, run_element, run_step

logger = logging.getLogger(__name__)


def for_each_chunked(
    target: Any,
    callback: Callable[..., Any],
    options: Any = None,
    **overrides: Any,
) -> None:
    """
    Call ``callback(value, index_or_key, target)`` window by window.

    Requires ``chunk_size``. Within a window elements run sequentially with
    the same error policy as ``for_each``.

    Example:
        >>> for_each_chunked(
        ...     rows,
        ...     index_row,
        ...     chunk_size=500,
        ...     on_chunk_complete=lambda i, n: print(f"window {i}: {n} rows"),
        ... )
    """
    validate_target(target)
    validate_callback(callback)
    opts = resolve_options(ChunkedOptions, options, **overrides)
    validate_chunked_options(opts)

    collection = as_collection(target)
    call = bind(callback, opts.this_arg)
    windows = list(partition(list(collection.positions(opts.reverse)), opts.chunk_size))

    logger.debug(
        "for_each_chunked: %d windows of up to %d", len(windows), opts.chunk_size
    )

    tracker = PerformanceTracker()
    tracker.start()
    try:
        for window_index, window in enumerate(windows):
            succeeded = 0
            for position in window:
                if position.value is MISSING:
                    continue
                outcome = run_step(
                    call, (position.value, position.key, collection.source), outcome_for_return
                )
                if outcome.kind is OutcomeKind.ERROR:
                    handle_failure(
                        outcome.error,
                        "for_each_chunked",
                        collection,
                        position.key,
                        opts.break_on_error,
                        {"chunk_index": window_index},
                    )
                    continue
                succeeded += 1

            tracker.increment_items(succeeded)
            if opts.on_chunk_complete is not None:
                opts.on_chunk_complete(window_index, succeeded)
    finally:
        tracker.stop()
        log_metrics("for_each_chunked", tracker)


async def for_each_chunked_async(
    target: Any,
    callback: Callable[..., Any],
    options: Any = None,
    **overrides: Any,
) -> None:
    """
    Await ``callback(value, index_or_key, target)`` window by window.

    With ``concurrency`` > 1 each window is split into batches of
    ``concurrency`` elements that run concurrently, each batch joined
    before the next starts. ``delay_between_chunks`` (milliseconds) pauses
    between windows but not after the last one. ``on_chunk_complete`` may
    be a coroutine function.
    """
    validate_target(target)
    validate_callback(callback)
    opts = resolve_options(ChunkedOptions, options, **overrides)
    validate_chunked_options(opts)

    concurrency = opts.concurrency or DEFAULT_CHUNK_CONCURRENCY
    collection = as_collection(target)
    call = bind(callback, opts.this_arg)
    windows = list(partition(list(collection.positions(opts.reverse)), opts.chunk_size))

    logger.debug(
        "for_each_chunked_async: %d windows of up to %d, concurrency=%d",
        len(windows),
        opts.chunk_size,
        concurrency,
    )

    tracker = PerformanceTracker()
    tracker.start()
    try:
        for window_index, window in enumerate(windows):
            if concurrency > 1:
                succeeded = await _run_window_batched(
                    collection, call, window, window_index, opts, concurrency
                )
            else:
                succeeded = await _run_window_sequential(
                    collection, call, window, window_index, opts
                )

            tracker.increment_items(succeeded)
            if opts.on_chunk_complete is not None:
                notified = opts.on_chunk_complete(window_index, succeeded)
                if inspect.isawaitable(notified):
                    await notified

            if opts.delay_between_chunks > 0 and window_index < len(windows) - 1:
                await asyncio.sleep(opts.delay_between_chunks / 1000)
    finally:
        tracker.stop()
        log_metrics("for_each_chunked_async", tracker)


async def _run_window_sequential(
    collection: Collection,
    call: Callable[..., Any],
    window: Sequence[Position],
    window_index: int,
    opts: ChunkedOptions,
) -> int:
    succeeded = 0
    for position in window:
        if position.value is MISSING:
            continue
        if await run_element(
            call,
            collection,
            position.key,
            position.value,
            "for_each_chunked_async",
            opts.break_on_error,
            timeout=opts.timeout,
            extra={"chunk_index": window_index},
        ):
            succeeded += 1
    return succeeded


async def _run_window_batched(
    collection: Collection,
    call: Callable[..., Any],
    window: Sequence[Position],
    window_index: int,
    opts: ChunkedOptions,
    concurrency: int,
) -> int:
    succeeded = 0
    for batch in partition(window, concurrency):
        results: List[bool] = await asyncio.gather(
            *(
                run_element(
                    call,
                    collection,
                    position.key,
                    position.value,
                    "for_each_chunked_async",
                    opts.break_on_error,
                    timeout=opts.timeout,
                    extra={"chunk_index": window_index},
                )
                for position in batch
                if position.value is not MISSING
            )
        )
        succeeded += sum(results)
    return succeeded
