"""
Concurrency primitives used by the parallel and chunked engines.

Key Components:
    - Semaphore: FIFO counting limiter with single-use release tokens
    - with_timeout: deadline race around one callback invocation
"""

from .semaphore import Semaphore, SemaphoreStats
from .timeout import with_timeout

__all__ = [
    "Semaphore",
    "SemaphoreStats",
    "with_timeout",
]
