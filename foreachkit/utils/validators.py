"""
Precondition checks shared by every engine.

All checks raise ValidationError before any element is processed.
"""

from __future__ import annotations

import numbers
from typing import Any

from ..collection import is_mapping_target, is_sequence_target
from ..config import MAX_BUFFER_SIZE, MAX_CHUNK_SIZE, MAX_CONCURRENCY
from ..errors import ErrorCode, ValidationError
from ..types import AsyncOptions, ChunkedOptions, ForEachOptions, LazyOptions

PLUGIN_HOOKS = ("before_iteration", "after_iteration", "on_error")


def is_positive_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _require_bool(options: Any, field: str) -> None:
    value = getattr(options, field)
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field} must be a boolean",
            {"field": field, "received": type(value).__name__},
        )


def validate_target(target: Any) -> None:
    if not (is_sequence_target(target) or is_mapping_target(target)):
        raise ValidationError(
            "Target must be a sequence or a mapping",
            {"received": type(target).__name__},
            code=ErrorCode.INVALID_TARGET,
        )


def validate_callback(callback: Any, message: str | None = None) -> None:
    if not callable(callback):
        raise ValidationError(
            message or "Callback must be callable",
            {"received": type(callback).__name__},
            code=ErrorCode.INVALID_CALLBACK,
        )


def validate_for_each_options(options: ForEachOptions) -> None:
    for field in ("break_on_error", "break_on_return", "reverse"):
        _require_bool(options, field)


def validate_async_options(options: AsyncOptions) -> None:
    validate_for_each_options(options)

    concurrency = options.concurrency
    if concurrency is not None:
        if not is_positive_integer(concurrency):
            raise ValidationError(
                "concurrency must be a positive integer",
                {"field": "concurrency", "received": concurrency},
                code=ErrorCode.CONCURRENCY_ERROR,
            )
        if concurrency > MAX_CONCURRENCY:
            raise ValidationError(
                f"concurrency cannot exceed {MAX_CONCURRENCY}",
                {"field": "concurrency", "received": concurrency},
                code=ErrorCode.CONCURRENCY_ERROR,
            )

    _require_bool(options, "preserve_order")

    if options.timeout is not None and not is_positive_integer(options.timeout):
        raise ValidationError(
            "timeout must be a positive integer",
            {"field": "timeout", "received": options.timeout},
        )


def validate_chunked_options(options: ChunkedOptions) -> None:
    validate_async_options(options)

    if not is_positive_integer(options.chunk_size):
        raise ValidationError(
            "chunk_size must be a positive integer",
            {"field": "chunk_size", "received": options.chunk_size},
            code=ErrorCode.CHUNK_SIZE_ERROR,
        )
    if options.chunk_size > MAX_CHUNK_SIZE:
        raise ValidationError(
            f"chunk_size cannot exceed {MAX_CHUNK_SIZE}",
            {"field": "chunk_size", "received": options.chunk_size},
            code=ErrorCode.CHUNK_SIZE_ERROR,
        )

    delay = options.delay_between_chunks
    if isinstance(delay, bool) or not isinstance(delay, numbers.Real) or delay < 0:
        raise ValidationError(
            "delay_between_chunks must be a non-negative number",
            {"field": "delay_between_chunks", "received": delay},
        )

    if options.on_chunk_complete is not None and not callable(options.on_chunk_complete):
        raise ValidationError(
            "on_chunk_complete must be callable",
            {"field": "on_chunk_complete", "received": type(options.on_chunk_complete).__name__},
        )


def validate_lazy_options(options: LazyOptions) -> None:
    if options.buffer_size is not None:
        if not is_positive_integer(options.buffer_size):
            raise ValidationError(
                "buffer_size must be a positive integer",
                {"field": "buffer_size", "received": options.buffer_size},
            )
        if options.buffer_size > MAX_BUFFER_SIZE:
            raise ValidationError(
                f"buffer_size cannot exceed {MAX_BUFFER_SIZE}",
                {"field": "buffer_size", "received": options.buffer_size},
            )
    _require_bool(options, "preload_next")
    _require_bool(options, "reverse")


def validate_plugin(plugin: Any) -> None:
    name = getattr(plugin, "name", None)
    if not name or not isinstance(name, str):
        raise ValidationError(
            "Plugin must have a name of type str",
            {"field": "name", "received": name},
        )

    version = getattr(plugin, "version", None)
    if not version or not isinstance(version, str):
        raise ValidationError(
            "Plugin must have a version of type str",
            {"field": "version", "received": version},
        )

    for hook in PLUGIN_HOOKS:
        method = getattr(plugin, hook, None)
        if method is not None and not callable(method):
            raise ValidationError(
                f"Plugin {hook} must be callable",
                {"field": hook, "plugin": name, "received": type(method).__name__},
            )
