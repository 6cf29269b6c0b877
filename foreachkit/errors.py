"""
Error taxonomy for foreachkit.

Every error raised by the library derives from ForEachError and carries a
machine-readable ErrorCode plus a details dict:

    - ValidationError: bad target, callback or options; raised before any
      element is processed
    - IterationError: a callback failed for a specific element
    - ForEachTimeoutError: a callback missed its deadline (always fatal)
    - PluginError: a lifecycle hook failed (always fatal inside engines)
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Machine-readable error codes."""

    INVALID_CALLBACK = "INVALID_CALLBACK"
    INVALID_TARGET = "INVALID_TARGET"
    INVALID_OPTIONS = "INVALID_OPTIONS"
    ITERATION_ERROR = "ITERATION_ERROR"
    PLUGIN_ERROR = "PLUGIN_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    CONCURRENCY_ERROR = "CONCURRENCY_ERROR"
    CHUNK_SIZE_ERROR = "CHUNK_SIZE_ERROR"


class ForEachError(Exception):
    """Base class for all foreachkit errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details: Dict[str, Any] = details or {}
        self.timestamp = datetime.now(timezone.utc)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for structured logs."""
        stack = None
        if self.__traceback__ is not None:
            stack = "".join(
                traceback.format_exception(type(self), self, self.__traceback__)
            )
        return {
            "name": self.name,
            "message": self.message,
            "code": self.code.value,
            "details": {key: _jsonable(value) for key, value in self.details.items()},
            "timestamp": self.timestamp.isoformat(),
            "stack": stack,
        }

    def __repr__(self) -> str:
        return f"{self.name}({self.message!r}, code={self.code.value})"


class ValidationError(ForEachError, ValueError):
    """Invalid target, callback or options."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.INVALID_OPTIONS,
    ) -> None:
        super().__init__(message, code, details)


class IterationError(ForEachError):
    """A callback raised for one element.

    The element's position is in ``details["index"]`` (sequences) or
    ``details["key"]`` (mappings); the original exception is in
    ``details["error"]`` and is also chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.ITERATION_ERROR,
    ) -> None:
        super().__init__(message, code, details)

    @property
    def error(self) -> Optional[BaseException]:
        return self.details.get("error")


class ForEachTimeoutError(IterationError):
    """A callback did not settle before its deadline."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details, code=ErrorCode.TIMEOUT_ERROR)


class PluginError(ForEachError):
    """A plugin hook raised, or the plugin registry was misused."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, ErrorCode.PLUGIN_ERROR, details)


def is_fatal(error: BaseException) -> bool:
    """Fatal errors propagate regardless of ``break_on_error``."""
    return isinstance(error, (ForEachTimeoutError, PluginError))


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseException):
        return {"name": type(value).__name__, "message": str(value)}
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return repr(value)
