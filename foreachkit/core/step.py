"""
Per-element step functions.

A step invokes the caller's callback for one element and reports what the
engine loop should do next as a tagged Outcome, instead of letting the
callback flip flags on a shared object. ``handle_failure`` is the single
place that decides whether a failed step aborts the whole call.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Optional, Tuple

from ..collection import Collection
from ..concurrency.timeout import with_timeout
from ..errors import IterationError, is_fatal
from ..types import Step

logger = logging.getLogger(__name__)


class OutcomeKind(Enum):
    CONTINUE = "continue"
    SKIP = "skip"
    BREAK = "break"
    ERROR = "error"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.kind is not OutcomeKind.ERROR

    @classmethod
    def failed(cls, error: BaseException) -> "Outcome":
        return cls(OutcomeKind.ERROR, error)


CONTINUE = Outcome(OutcomeKind.CONTINUE)
SKIP = Outcome(OutcomeKind.SKIP)
BREAK = Outcome(OutcomeKind.BREAK)

_STEP_OUTCOMES = {Step.CONTINUE: CONTINUE, Step.SKIP: SKIP, Step.BREAK: BREAK}

Interpreter = Callable[[Any], Outcome]


def bind(callback: Callable[..., Any], this_arg: Any) -> Callable[..., Any]:
    """Bind ``this_arg`` as the callback's leading argument, method-style."""
    if this_arg is None:
        return callback
    return partial(callback, this_arg)


def outcome_for_return(result: Any, break_on_return: bool = False) -> Outcome:
    if break_on_return and result is not None:
        return BREAK
    return CONTINUE


def outcome_for_step(result: Any) -> Outcome:
    """Map a context callback's return value (a Step or None) to an outcome."""
    if isinstance(result, Step):
        return _STEP_OUTCOMES[result]
    return CONTINUE


def returns(break_on_return: bool) -> Interpreter:
    """Interpreter for plain callbacks: a non-None result may stop the loop."""
    return partial(outcome_for_return, break_on_return=break_on_return)


def run_step(
    call: Callable[..., Any],
    args: Tuple[Any, ...],
    interpret: Interpreter,
) -> Outcome:
    try:
        result = call(*args)
    except Exception as error:
        return Outcome.failed(error)
    return interpret(result)


async def invoke_async(
    call: Callable[..., Any],
    args: Tuple[Any, ...],
    timeout: Optional[int] = None,
    label: str = "",
) -> Any:
    """Call a sync or async callback and await its result, racing ``timeout``."""
    result = call(*args)
    if inspect.isawaitable(result):
        if timeout:
            return await with_timeout(result, timeout, label)
        return await result
    return result


async def run_step_async(
    call: Callable[..., Any],
    args: Tuple[Any, ...],
    interpret: Interpreter,
    timeout: Optional[int] = None,
    label: str = "",
) -> Outcome:
    try:
        result = await invoke_async(call, args, timeout, label)
    except Exception as error:
        return Outcome.failed(error)
    return interpret(result)


def handle_failure(
    error: BaseException,
    operation: str,
    collection: Collection,
    key: Any,
    break_on_error: bool,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Apply the error policy to one failed element.

    Timeouts and plugin errors always propagate unchanged. Any other error
    is wrapped in IterationError when ``break_on_error`` is set, otherwise
    it is dropped and the caller moves on.
    """
    if is_fatal(error):
        raise error

    position = collection.describe(key)
    if break_on_error:
        details: Dict[str, Any] = {collection.key_field: key, "error": error}
        if extra:
            details.update(extra)
        raise IterationError(f"Error in {operation} at {position}", details) from error

    logger.debug("%s: ignoring error at %s: %r", operation, position, error)


async def run_element(
    call: Callable[..., Any],
    collection: Collection,
    key: Any,
    value: Any,
    operation: str,
    break_on_error: bool,
    timeout: Optional[int] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Run one element of a fan-out and apply the error policy.

    Returns True when the callback succeeded, False when its failure was
    absorbed; raises when the failure is fatal or ``break_on_error`` is set.
    """
    outcome = await run_step_async(
        call,
        (value, key, collection.source),
        outcome_for_return,
        timeout=timeout,
        label=collection.describe(key),
    )
    if outcome.kind is OutcomeKind.ERROR:
        handle_failure(outcome.error, operation, collection, key, break_on_error, extra)
        return False
    return True
