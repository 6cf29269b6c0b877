"""
Bounded parallel engine.

Two ways to keep at most ``concurrency`` callbacks in flight:

    - Grouped fan-out (default): positions are split, in processing order,
      into groups of ``concurrency``; each group runs concurrently and the
      next group starts only after the whole group has settled.
    - Admission queue (``preserve_order=True``): every element asks a FIFO
      Semaphore for a slot up front, so elements are admitted in processing
      order as slots free up. Only admission order is guaranteed, results
      are not reordered.

In both modes a failing element does not cancel its siblings; with
``break_on_error`` the call raises as soon as the join sees the failure
while the other callbacks run to completion in the background.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List

from ..collection import Collection, Position, as_collection, partition
from ..concurrency.semaphore import Semaphore
from ..config import DEFAULT_CONCURRENCY
from ..types import MISSING, AsyncOptions, resolve_options
from ..utils.performance import PerformanceTracker, log_metrics
from ..utils.validators import validate_async_options, validate_callback, validate_target
from .step import bind, run_element

logger = logging.getLogger(__name__)

OPERATION = "for_each_parallel"


async def for_each_parallel(
    target: Any,
    callback: Callable[..., Any],
    options: Any = None,
    **overrides: Any,
) -> None:
    """
    Run ``callback(value, index_or_key, target)`` for all elements concurrently.

    Args:
        target: Sequence or mapping to iterate
        callback: Sync or async callable
        options: AsyncOptions, a mapping of option names, or None
        **overrides: Individual options, e.g. ``concurrency=5``

    Raises:
        ValidationError: Bad target, callback or options (nothing is called)
        ForEachTimeoutError: An element exceeded ``timeout``
        IterationError: A callback raised and ``break_on_error`` is set

    Example:
        >>> await for_each_parallel(urls, fetch, concurrency=5, timeout=10_000)
    """
    validate_target(target)
    validate_callback(callback)
    opts = resolve_options(AsyncOptions, options, **overrides)
    validate_async_options(opts)

    concurrency = opts.concurrency or DEFAULT_CONCURRENCY
    collection = as_collection(target)
    call = bind(callback, opts.this_arg)
    positions = list(collection.positions(opts.reverse))

    logger.debug(
        "%s: %d positions, concurrency=%d, preserve_order=%s",
        OPERATION,
        len(positions),
        concurrency,
        opts.preserve_order,
    )

    tracker = PerformanceTracker()
    tracker.start()
    try:
        if opts.preserve_order:
            await _run_admission_queue(collection, call, positions, opts, concurrency, tracker)
        else:
            await _run_grouped(collection, call, positions, opts, concurrency, tracker)
    finally:
        tracker.stop()
        log_metrics(OPERATION, tracker)


async def _run_grouped(
    collection: Collection,
    call: Callable[..., Any],
    positions: List[Position],
    opts: AsyncOptions,
    concurrency: int,
    tracker: PerformanceTracker,
) -> None:
    for group in partition(positions, concurrency):
        results = await asyncio.gather(
            *(
                run_element(
                    call,
                    collection,
                    position.key,
                    position.value,
                    OPERATION,
                    opts.break_on_error,
                    timeout=opts.timeout,
                )
                for position in group
                if position.value is not MISSING
            )
        )
        tracker.increment_items(sum(results))


async def _run_admission_queue(
    collection: Collection,
    call: Callable[..., Any],
    positions: List[Position],
    opts: AsyncOptions,
    concurrency: int,
    tracker: PerformanceTracker,
) -> None:
    semaphore = Semaphore(concurrency)

    async def admit(position: Position) -> bool:
        release = await semaphore.acquire()
        try:
            return await run_element(
                call,
                collection,
                position.key,
                position.value,
                OPERATION,
                opts.break_on_error,
                timeout=opts.timeout,
            )
        finally:
            release()

    # gather starts the tasks in list order, so slot requests queue up in
    # processing order
    results = await asyncio.gather(
        *(admit(position) for position in positions if position.value is not MISSING)
    )
    tracker.increment_items(sum(results))
    logger.debug(
        "%s: admission queue peaked at %d in flight",
        OPERATION,
        semaphore.stats.max_in_flight,
    )
