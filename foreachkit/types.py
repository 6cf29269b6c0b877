"""Option records, iteration context and sentinel values."""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from .errors import ValidationError

OptionsT = TypeVar("OptionsT")


class _Missing:
    """Marks a hole in a sparse sequence or an absent mapping value."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def sparse(length: int, values: Mapping[int, Any]) -> List[Any]:
    """Build a list of ``length`` holes with ``values`` placed at their indices."""
    items: List[Any] = [MISSING] * length
    for index, value in values.items():
        items[index] = value
    return items


class Step(Enum):
    """Control value a context callback returns to steer the loop."""

    CONTINUE = "continue"
    SKIP = "skip"
    BREAK = "break"


@dataclass(frozen=True)
class IterationContext:
    """Position metadata for one element.

    Attributes:
        index: Ordinal position in processing order
        total: Number of positions in the collection
        is_first: First position processed
        is_last: Last position processed
        key: Caller-visible index (sequences) or key (mappings)
    """

    index: int
    total: int
    is_first: bool
    is_last: bool
    key: Any = None


@dataclass(frozen=True)
class ForEachOptions:
    """Options shared by every engine.

    Attributes:
        this_arg: When set, bound as the callback's first argument
        break_on_error: Abort on the first callback failure
        break_on_return: Stop after a callback returns something other than None
        reverse: Process positions in reverse order
    """

    this_arg: Any = None
    break_on_error: bool = False
    break_on_return: bool = False
    reverse: bool = False


@dataclass(frozen=True)
class AsyncOptions(ForEachOptions):
    """Options for the async and parallel engines.

    Attributes:
        concurrency: Maximum callbacks in flight (engine default when None)
        preserve_order: Admit elements through a FIFO limiter queue
        timeout: Per-element deadline in milliseconds
    """

    concurrency: Optional[int] = None
    preserve_order: bool = False
    timeout: Optional[int] = None


@dataclass(frozen=True)
class ChunkedOptions(AsyncOptions):
    """Options for the chunked engines.

    Attributes:
        chunk_size: Window size (required)
        delay_between_chunks: Pause between windows in milliseconds (async only)
        on_chunk_complete: Called with (window_index, success_count)
    """

    chunk_size: Optional[int] = None
    delay_between_chunks: float = 0
    on_chunk_complete: Optional[Callable[[int, int], Any]] = None


@dataclass(frozen=True)
class LazyOptions:
    """Options for lazy iteration.

    ``buffer_size`` and ``preload_next`` tune read-ahead only; they never
    change which values a chain yields.
    """

    buffer_size: Optional[int] = None
    preload_next: bool = True
    reverse: bool = False


def resolve_options(
    options_cls: Type[OptionsT],
    options: Any = None,
    **overrides: Any,
) -> OptionsT:
    """
    Build an options record from a mapping, another record, or keywords.

    Fields of a record of a different options class are carried over when
    ``options_cls`` declares them; unknown mapping keys are rejected.
    """
    names = {f.name for f in fields(options_cls)}
    data: Dict[str, Any]

    if options is None:
        data = {}
    elif isinstance(options, options_cls) and not overrides:
        return options
    elif is_dataclass(options) and not isinstance(options, type):
        data = {k: v for k, v in _shallow_asdict(options).items() if k in names}
    elif isinstance(options, Mapping):
        data = dict(options)
    else:
        raise ValidationError(
            "Options must be a mapping or an options record",
            {"received": type(options).__name__},
        )

    data.update(overrides)
    unknown = sorted(set(data) - names)
    if unknown:
        raise ValidationError(
            f"Unknown option(s): {', '.join(unknown)}",
            {"field": unknown[0], "allowed": sorted(names)},
        )
    return options_cls(**data)


def _shallow_asdict(record: Any) -> Dict[str, Any]:
    # asdict() deep-copies values, which would copy this_arg
    return {f.name: getattr(record, f.name) for f in fields(record)}


__all__ = [
    "MISSING",
    "sparse",
    "Step",
    "IterationContext",
    "ForEachOptions",
    "AsyncOptions",
    "ChunkedOptions",
    "LazyOptions",
    "resolve_options",
]
