"""
Collection sum type.

A target is either sequence-shaped (positionally indexed) or
mapping-shaped (string keys to values). Engines never touch the caller's
object directly; they walk the ``positions()`` of the wrapper, which
reads the source snapshot-style and never mutates it.
"""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Mapping, Sequence
from typing import Any, Iterator, List, NamedTuple, Union

from .errors import ErrorCode, ValidationError

_TEXT_TYPES = (str, bytes, bytearray)


class Position(NamedTuple):
    """One element drawn from a collection.

    ``ordinal`` is the processing order, ``key`` the caller-visible index
    or key, ``value`` the element (MISSING for holes/absent values).
    """

    ordinal: int
    key: Any
    value: Any


def is_sequence_target(target: Any) -> bool:
    return isinstance(target, Sequence) and not isinstance(target, _TEXT_TYPES)


def is_mapping_target(target: Any) -> bool:
    return isinstance(target, Mapping)


class SequenceCollection:
    key_field = "index"

    def __init__(self, items: Sequence) -> None:
        self.source = items

    def __len__(self) -> int:
        return len(self.source)

    def positions(self, reverse: bool = False) -> Iterator[Position]:
        length = len(self.source)
        if reverse:
            # reversed working copy, the caller's sequence is left alone
            view = list(reversed(self.source))
            for i in range(length):
                yield Position(i, length - 1 - i, view[i])
        else:
            for i in range(length):
                yield Position(i, i, self.source[i])

    def describe(self, key: Any) -> str:
        return f"index {key}"


class MappingCollection:
    key_field = "key"

    def __init__(self, mapping: Mapping) -> None:
        self.source = mapping

    def own_keys(self) -> List[Any]:
        # ChainMap parents play the role of inherited entries
        if isinstance(self.source, ChainMap):
            return list(self.source.maps[0]) if self.source.maps else []
        return list(self.source)

    def __len__(self) -> int:
        return len(self.own_keys())

    def positions(self, reverse: bool = False) -> Iterator[Position]:
        keys = self.own_keys()
        if reverse:
            keys.reverse()
        for i, key in enumerate(keys):
            yield Position(i, key, self.source[key])

    def describe(self, key: Any) -> str:
        return f'key "{key}"'


Collection = Union[SequenceCollection, MappingCollection]


def as_collection(target: Any) -> Collection:
    """Wrap a caller's target in the matching collection variant."""
    if is_sequence_target(target):
        return SequenceCollection(target)
    if is_mapping_target(target):
        return MappingCollection(target)
    raise ValidationError(
        "Target must be a sequence or a mapping",
        {"received": type(target).__name__},
        code=ErrorCode.INVALID_TARGET,
    )


def partition(items: Sequence, size: int) -> Iterator[Sequence]:
    """Split ``items`` into consecutive slices of ``size`` (the last may be shorter)."""
    for start in range(0, len(items), size):
        yield items[start : start + size]
