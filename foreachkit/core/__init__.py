"""
Iteration engines.

Key Components:
    - for_each / for_each_with_context / for_each_async: sequential engines
    - for_each_parallel: bounded fan-out (grouped or FIFO admission)
    - for_each_chunked / for_each_chunked_async: windowed processing
    - for_each_lazy / for_each_generator: pull-based and eager generators
"""

from .chunked import for_each_chunked, for_each_chunked_async
from .lazy import LazyIterator, Pull, for_each_generator, for_each_lazy
from .parallel import for_each_parallel
from .sequential import for_each, for_each_async, for_each_with_context

__all__ = [
    "for_each",
    "for_each_async",
    "for_each_with_context",
    "for_each_parallel",
    "for_each_chunked",
    "for_each_chunked_async",
    "for_each_lazy",
    "for_each_generator",
    "LazyIterator",
    "Pull",
]
