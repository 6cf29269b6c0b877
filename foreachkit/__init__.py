"""
foreachkit: iteration engines for sequences and mappings.

Sequential, async, bounded-parallel, chunked and lazy ways to visit every
element of a list-like or dict-like value with one callback.

Key Components:
    - for_each / for_each_with_context: synchronous engines
    - for_each_async / for_each_parallel: async engines with timeouts
    - for_each_chunked / for_each_chunked_async: windowed processing
    - for_each_lazy / for_each_generator: pull-based iteration
    - ForEachCore: async engines with plugin hooks

Example:
    >>> from foreachkit import for_each_parallel
    >>> await for_each_parallel(urls, fetch, concurrency=5, timeout=3000)
"""

from .errors import (
    ErrorCode,
    ForEachError,
    ForEachTimeoutError,
    IterationError,
    PluginError,
    ValidationError,
)
from .types import (
    MISSING,
    AsyncOptions,
    ChunkedOptions,
    ForEachOptions,
    IterationContext,
    LazyOptions,
    Step,
    sparse,
)
from .config import load_options
from .utils import (
    PerformanceMetrics,
    PerformanceTracker,
    debounce,
    measure_async_performance,
    measure_performance,
    setup_logging,
    throttle,
)
from .concurrency import Semaphore
from .core import (
    LazyIterator,
    for_each,
    for_each_async,
    for_each_chunked,
    for_each_chunked_async,
    for_each_generator,
    for_each_lazy,
    for_each_parallel,
    for_each_with_context,
)
from .plugins import ForEachCore, IterationPlugin, PluginConfig, PluginManager

__version__ = "0.1.0"

__all__ = [
    "ErrorCode",
    "ForEachError",
    "ForEachTimeoutError",
    "IterationError",
    "PluginError",
    "ValidationError",
    "MISSING",
    "AsyncOptions",
    "ChunkedOptions",
    "ForEachOptions",
    "IterationContext",
    "LazyOptions",
    "Step",
    "sparse",
    "load_options",
    "PerformanceMetrics",
    "PerformanceTracker",
    "debounce",
    "measure_async_performance",
    "measure_performance",
    "setup_logging",
    "throttle",
    "Semaphore",
    "LazyIterator",
    "for_each",
    "for_each_async",
    "for_each_chunked",
    "for_each_chunked_async",
    "for_each_generator",
    "for_each_lazy",
    "for_each_parallel",
    "for_each_with_context",
    "ForEachCore",
    "IterationPlugin",
    "PluginConfig",
    "PluginManager",
]
