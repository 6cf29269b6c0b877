"""
Lazy, pull-based iteration.

``for_each_lazy`` returns the root of a chain of stages. Each stage wraps
exactly one upstream stage and does work only when pulled, so building a
chain with ``filter``/``map``/``take``/``skip`` evaluates nothing. A stage
that has reported exhaustion keeps reporting it without touching its
upstream again. Chains are single-use: there is no reset.

``for_each_generator`` is the eager counterpart: a plain generator that is
re-derived from the collection on every call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Generic, Iterator, List, NamedTuple, Optional, Tuple, TypeVar

from ..collection import Collection, MappingCollection, SequenceCollection, as_collection
from ..config import DEFAULT_BUFFER_SIZE
from ..errors import ValidationError
from ..types import MISSING, LazyOptions, resolve_options
from ..utils.validators import validate_lazy_options, validate_target

T = TypeVar("T")
U = TypeVar("U")


class Pull(NamedTuple):
    """Result of one pull: ``done`` is True once the stage is exhausted."""

    done: bool
    value: Any = None


EXHAUSTED = Pull(True)


class LazyIterator(ABC, Generic[T]):
    """Base stage of a lazy chain."""

    def __init__(self) -> None:
        self._exhausted = False

    @abstractmethod
    def _pull(self) -> Pull:
        ...

    def pull(self) -> Pull:
        """Produce the next value, or ``Pull(done=True)``."""
        if self._exhausted:
            return EXHAUSTED
        result = self._pull()
        if result.done:
            self._exhausted = True
        return result

    def __iter__(self) -> "LazyIterator[T]":
        return self

    def __next__(self) -> T:
        result = self.pull()
        if result.done:
            raise StopIteration
        return result.value

    def to_list(self) -> List[T]:
        """Drain the chain into a list."""
        items: List[T] = []
        result = self.pull()
        while not result.done:
            items.append(result.value)
            result = self.pull()
        return items

    def take(self, count: int) -> "LazyIterator[T]":
        return TakeIterator(self, _require_count("take", count))

    def skip(self, count: int) -> "LazyIterator[T]":
        return SkipIterator(self, _require_count("skip", count))

    def filter(self, predicate: Callable[[T], bool]) -> "LazyIterator[T]":
        return FilterIterator(self, predicate)

    def map(self, transform: Callable[[T], U]) -> "LazyIterator[U]":
        return MapIterator(self, transform)


def _require_count(operation: str, count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValidationError(
            f"{operation} count must be a non-negative integer",
            {"field": "count", "received": count},
        )
    return count


class _BufferedSource(LazyIterator[T]):
    """Root stage; reads ahead up to ``buffer_size`` raw entries per refill."""

    def __init__(self, buffer_size: int, preload_next: bool) -> None:
        super().__init__()
        self._read_ahead = buffer_size if preload_next else 1
        self._buffer: Deque[Any] = deque()

    @abstractmethod
    def _read(self, count: int) -> List[Any]:
        """Read up to ``count`` raw entries; an empty list means the end."""

    def _pull(self) -> Pull:
        while True:
            if not self._buffer:
                self._buffer.extend(self._read(self._read_ahead))
                if not self._buffer:
                    return EXHAUSTED
            entry = self._buffer.popleft()
            if entry is not MISSING:
                return Pull(False, entry)


class SequenceLazyIterator(_BufferedSource[T]):
    def __init__(
        self,
        collection: SequenceCollection,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        preload_next: bool = True,
        reverse: bool = False,
    ) -> None:
        super().__init__(buffer_size, preload_next)
        self._items = collection.source
        self._reverse = reverse
        self._cursor = 0
        self._length: Optional[int] = None

    def _read(self, count: int) -> List[Any]:
        if self._length is None:
            self._length = len(self._items)
        entries = []
        while count > 0 and self._cursor < self._length:
            index = self._length - 1 - self._cursor if self._reverse else self._cursor
            entries.append(self._items[index])
            self._cursor += 1
            count -= 1
        return entries


class MappingLazyIterator(_BufferedSource[Tuple[Any, Any]]):
    """Yields ``(key, value)`` pairs over the mapping's own keys."""

    def __init__(
        self,
        collection: MappingCollection,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        preload_next: bool = True,
        reverse: bool = False,
    ) -> None:
        super().__init__(buffer_size, preload_next)
        self._collection = collection
        self._reverse = reverse
        self._keys: Optional[List[Any]] = None
        self._cursor = 0

    def _read(self, count: int) -> List[Any]:
        if self._keys is None:
            self._keys = self._collection.own_keys()
            if self._reverse:
                self._keys.reverse()
        mapping = self._collection.source
        entries = []
        while count > 0 and self._cursor < len(self._keys):
            key = self._keys[self._cursor]
            self._cursor += 1
            count -= 1
            value = mapping[key]
            entries.append(MISSING if value is MISSING else (key, value))
        return entries


class FilterIterator(LazyIterator[T]):
    def __init__(self, source: LazyIterator[T], predicate: Callable[[T], bool]) -> None:
        super().__init__()
        self._source = source
        self._predicate = predicate

    def _pull(self) -> Pull:
        result = self._source.pull()
        while not result.done and not self._predicate(result.value):
            result = self._source.pull()
        return result


class MapIterator(LazyIterator[U]):
    def __init__(self, source: LazyIterator[T], transform: Callable[[T], U]) -> None:
        super().__init__()
        self._source = source
        self._transform = transform

    def _pull(self) -> Pull:
        result = self._source.pull()
        if result.done:
            return EXHAUSTED
        return Pull(False, self._transform(result.value))


class TakeIterator(LazyIterator[T]):
    def __init__(self, source: LazyIterator[T], count: int) -> None:
        super().__init__()
        self._source = source
        self._count = count
        self._taken = 0

    def _pull(self) -> Pull:
        if self._taken >= self._count:
            return EXHAUSTED
        result = self._source.pull()
        if not result.done:
            self._taken += 1
        return result


class SkipIterator(LazyIterator[T]):
    def __init__(self, source: LazyIterator[T], count: int) -> None:
        super().__init__()
        self._source = source
        self._count = count
        self._skipped = 0

    def _pull(self) -> Pull:
        while self._skipped < self._count:
            result = self._source.pull()
            if result.done:
                return result
            self._skipped += 1
        return self._source.pull()


def for_each_lazy(target: Any, options: Any = None, **overrides: Any) -> LazyIterator[Any]:
    """
    Wrap ``target`` in a lazy chain.

    Sequences yield their values, mappings yield ``(key, value)`` pairs.

    Example:
        >>> for_each_lazy(range(1, 11)).filter(lambda x: x % 2 == 0).map(
        ...     lambda x: x * 2
        ... ).skip(1).take(3).to_list()
        [8, 12, 16]
    """
    validate_target(target)
    opts = resolve_options(LazyOptions, options, **overrides)
    validate_lazy_options(opts)

    buffer_size = opts.buffer_size or DEFAULT_BUFFER_SIZE
    collection = as_collection(target)
    if isinstance(collection, SequenceCollection):
        return SequenceLazyIterator(collection, buffer_size, opts.preload_next, opts.reverse)
    return MappingLazyIterator(collection, buffer_size, opts.preload_next, opts.reverse)


def for_each_generator(target: Any, options: Any = None, **overrides: Any) -> Iterator[Any]:
    """
    Eager generator over ``target``; each call starts from the beginning.

    Takes the same options as ``for_each_lazy``; only ``reverse`` affects
    what is yielded. The target and options are validated immediately, not
    on the first ``next()``.
    """
    validate_target(target)
    opts = resolve_options(LazyOptions, options, **overrides)
    validate_lazy_options(opts)
    return _generate(as_collection(target), opts.reverse)


def _generate(collection: Collection, reverse: bool) -> Iterator[Any]:
    pairs = isinstance(collection, MappingCollection)
    for position in collection.positions(reverse):
        if position.value is MISSING:
            continue
        yield (position.key, position.value) if pairs else position.value
