"""Utility helpers for foreachkit."""

from .logging_config import setup_logging
from .performance import (
    PerformanceMetrics,
    PerformanceTracker,
    debounce,
    measure_async_performance,
    measure_performance,
    throttle,
)
from .validators import (
    is_positive_integer,
    validate_async_options,
    validate_callback,
    validate_chunked_options,
    validate_for_each_options,
    validate_lazy_options,
    validate_plugin,
    validate_target,
)

__all__ = [
    "setup_logging",
    "PerformanceMetrics",
    "PerformanceTracker",
    "debounce",
    "measure_async_performance",
    "measure_performance",
    "throttle",
    "is_positive_integer",
    "validate_async_options",
    "validate_callback",
    "validate_chunked_options",
    "validate_for_each_options",
    "validate_lazy_options",
    "validate_plugin",
    "validate_target",
]
