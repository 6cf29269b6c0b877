"""
Sequential engines.

``for_each`` and ``for_each_async`` visit one element at a time; element
N's callback settles before element N+1 starts. Holes (MISSING) are
skipped and never count as processed.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..collection import Collection, as_collection
from ..types import MISSING, AsyncOptions, ForEachOptions, IterationContext, resolve_options
from ..utils.performance import PerformanceTracker, log_metrics
from ..utils.validators import (
    validate_async_options,
    validate_callback,
    validate_for_each_options,
    validate_target,
)
from .step import (
    OutcomeKind,
    bind,
    handle_failure,
    outcome_for_step,
    returns,
    run_step,
    run_step_async,
)

logger = logging.getLogger(__name__)


def for_each(
    target: Any,
    callback: Callable[..., Any],
    options: Any = None,
    **overrides: Any,
) -> None:
    """
    Call ``callback(value, index_or_key, target)`` for every element.

    Args:
        target: Sequence or mapping to iterate
        callback: Invoked once per element
        options: ForEachOptions, a mapping of option names, or None
        **overrides: Individual options, e.g. ``reverse=True``

    Raises:
        ValidationError: Bad target, callback or options (nothing is called)
        IterationError: A callback raised and ``break_on_error`` is set

    Example:
        >>> seen = []
        >>> for_each([1, 2, 3], lambda v, i, xs: seen.append(v), reverse=True)
        >>> seen
        [3, 2, 1]
    """
    validate_target(target)
    validate_callback(callback)
    opts = resolve_options(ForEachOptions, options, **overrides)
    validate_for_each_options(opts)

    collection = as_collection(target)
    call = bind(callback, opts.this_arg)
    interpret = returns(opts.break_on_return)

    tracker = PerformanceTracker()
    tracker.start()
    try:
        for position in collection.positions(opts.reverse):
            if position.value is MISSING:
                continue

            outcome = run_step(call, (position.value, position.key, target), interpret)
            if outcome.kind is OutcomeKind.ERROR:
                handle_failure(
                    outcome.error, "for_each", collection, position.key, opts.break_on_error
                )
                continue

            tracker.increment_items()
            if outcome.kind is OutcomeKind.BREAK:
                break
    finally:
        tracker.stop()
        log_metrics("for_each", tracker)


def for_each_with_context(
    target: Any,
    callback: Callable[..., Any],
    options: Any = None,
    **overrides: Any,
) -> None:
    """
    Call ``callback(value, index_or_key, context)`` for every element.

    ``context`` is an IterationContext. The callback steers the loop by
    returning ``Step.BREAK`` or ``Step.SKIP``; returning None continues.

    ``context.index`` counts in processing order, so with ``reverse=True``
    the first element visited has ``context.index == 0``. The caller-visible
    index or key is the second argument and ``context.key``.
    """
    validate_target(target)
    validate_callback(callback)
    opts = resolve_options(ForEachOptions, options, **overrides)
    validate_for_each_options(opts)

    collection = as_collection(target)
    call = bind(callback, opts.this_arg)
    total = len(collection)

    tracker = PerformanceTracker()
    tracker.start()
    try:
        for position in collection.positions(opts.reverse):
            if position.value is MISSING:
                continue

            context = make_context(position.ordinal, total, position.key)
            outcome = run_step(call, (position.value, position.key, context), outcome_for_step)
            if outcome.kind is OutcomeKind.ERROR:
                handle_failure(
                    outcome.error,
                    "for_each_with_context",
                    collection,
                    position.key,
                    opts.break_on_error,
                )
                continue

            tracker.increment_items()
            if outcome.kind is OutcomeKind.BREAK:
                break
    finally:
        tracker.stop()
        log_metrics("for_each_with_context", tracker)


async def for_each_async(
    target: Any,
    callback: Callable[..., Any],
    options: Any = None,
    **overrides: Any,
) -> None:
    """
    Await ``callback(value, index_or_key, target)`` for each element in turn.

    The callback may be a coroutine function or a plain function. With
    ``timeout`` (milliseconds) each awaited result races a deadline; a
    timeout always raises ForEachTimeoutError, even with
    ``break_on_error=False``.

    Example:
        >>> async def save(record, index, records):
        ...     await db.insert(record)
        >>> await for_each_async(records, save, timeout=5000)
    """
    validate_target(target)
    validate_callback(callback)
    opts = resolve_options(AsyncOptions, options, **overrides)
    validate_async_options(opts)

    collection = as_collection(target)
    call = bind(callback, opts.this_arg)
    interpret = returns(opts.break_on_return)

    tracker = PerformanceTracker()
    tracker.start()
    try:
        await _run_sequential_async(collection, call, interpret, opts, tracker)
    finally:
        tracker.stop()
        log_metrics("for_each_async", tracker)


async def _run_sequential_async(
    collection: Collection,
    call: Callable[..., Any],
    interpret: Callable[[Any], Any],
    opts: AsyncOptions,
    tracker: PerformanceTracker,
) -> None:
    for position in collection.positions(opts.reverse):
        if position.value is MISSING:
            continue

        outcome = await run_step_async(
            call,
            (position.value, position.key, collection.source),
            interpret,
            timeout=opts.timeout,
            label=collection.describe(position.key),
        )
        if outcome.kind is OutcomeKind.ERROR:
            handle_failure(
                outcome.error, "for_each_async", collection, position.key, opts.break_on_error
            )
            continue

        tracker.increment_items()
        if outcome.kind is OutcomeKind.BREAK:
            break


def make_context(ordinal: int, total: int, key: Any) -> IterationContext:
    return IterationContext(
        index=ordinal,
        total=total,
        is_first=ordinal == 0,
        is_last=ordinal == total - 1,
        key=key,
    )
