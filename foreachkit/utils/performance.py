"""
Timing helpers.

PerformanceTracker is run by every engine call and its metrics are logged
at DEBUG; the measure/throttle/debounce helpers are for callers.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceMetrics:
    """Snapshot of a tracker.

    Attributes:
        items_processed: Elements whose callback succeeded
        total_time_ms: Wall-clock time between start and stop (or now)
        average_time_per_item_ms: total_time_ms / items_processed
        throughput: Items per second
    """

    items_processed: int
    total_time_ms: float
    average_time_per_item_ms: float
    throughput: float


class PerformanceTracker:
    def __init__(self) -> None:
        self._start_time = 0.0
        self._end_time = 0.0
        self._items_processed = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._start_time = time.perf_counter()
        self._running = True
        self._items_processed = 0

    def stop(self) -> None:
        self._end_time = time.perf_counter()
        self._running = False

    def increment_items(self, count: int = 1) -> None:
        self._items_processed += count

    def get_metrics(self) -> PerformanceMetrics:
        end_time = time.perf_counter() if self._running else self._end_time
        total_time_ms = (end_time - self._start_time) * 1000
        items = self._items_processed
        return PerformanceMetrics(
            items_processed=items,
            total_time_ms=total_time_ms,
            average_time_per_item_ms=total_time_ms / items if items else 0.0,
            throughput=items / (total_time_ms / 1000) if total_time_ms > 0 else 0.0,
        )

    def reset(self) -> None:
        self._start_time = 0.0
        self._end_time = 0.0
        self._items_processed = 0
        self._running = False


def log_metrics(operation: str, tracker: PerformanceTracker) -> None:
    metrics = tracker.get_metrics()
    logger.debug(
        "%s: %d items in %.2fms (%.1f items/s)",
        operation,
        metrics.items_processed,
        metrics.total_time_ms,
        metrics.throughput,
    )


def measure_performance(
    fn: Callable[[], T],
    label: Optional[str] = None,
    log: Optional[Callable[[str], None]] = None,
) -> Tuple[T, float]:
    """Run ``fn`` and return ``(result, duration_ms)``."""
    start = time.perf_counter()
    result = fn()
    duration = (time.perf_counter() - start) * 1000

    if label and log:
        log(f"[Performance] {label}: {duration:.2f}ms")

    return result, duration


async def measure_async_performance(
    fn: Callable[[], Awaitable[T]],
    label: Optional[str] = None,
    log: Optional[Callable[[str], None]] = None,
) -> Tuple[T, float]:
    """Await ``fn()`` and return ``(result, duration_ms)``."""
    start = time.perf_counter()
    result = await fn()
    duration = (time.perf_counter() - start) * 1000

    if label and log:
        log(f"[Performance] {label}: {duration:.2f}ms")

    return result, duration


def throttle(fn: Callable[..., Any], delay_ms: float) -> Callable[..., None]:
    """
    Call ``fn`` at most once per ``delay_ms``.

    A call inside the window is deferred to the end of the window; later
    calls in the same window replace its arguments.
    """
    lock = threading.Lock()
    state = {"last_call": 0.0, "timer": None}
    interval = delay_ms / 1000

    def _fire(args: Tuple[Any, ...], kwargs: dict) -> None:
        with lock:
            state["last_call"] = time.monotonic()
            state["timer"] = None
        fn(*args, **kwargs)

    @wraps(fn)
    def throttled(*args: Any, **kwargs: Any) -> None:
        with lock:
            elapsed = time.monotonic() - state["last_call"]
            if elapsed >= interval:
                state["last_call"] = time.monotonic()
                call_now = True
            else:
                call_now = False
                if state["timer"] is not None:
                    state["timer"].cancel()
                timer = threading.Timer(interval - elapsed, _fire, (args, kwargs))
                timer.daemon = True
                state["timer"] = timer
                timer.start()
        if call_now:
            fn(*args, **kwargs)

    def cancel() -> None:
        with lock:
            if state["timer"] is not None:
                state["timer"].cancel()
                state["timer"] = None

    throttled.cancel = cancel  # type: ignore[attr-defined]
    return throttled


def debounce(fn: Callable[..., Any], delay_ms: float) -> Callable[..., None]:
    """Call ``fn`` once calls have stopped for ``delay_ms``."""
    lock = threading.Lock()
    state = {"timer": None}

    def _fire(args: Tuple[Any, ...], kwargs: dict) -> None:
        with lock:
            state["timer"] = None
        fn(*args, **kwargs)

    @wraps(fn)
    def debounced(*args: Any, **kwargs: Any) -> None:
        with lock:
            if state["timer"] is not None:
                state["timer"].cancel()
            timer = threading.Timer(delay_ms / 1000, _fire, (args, kwargs))
            timer.daemon = True
            state["timer"] = timer
            timer.start()

    def cancel() -> None:
        with lock:
            if state["timer"] is not None:
                state["timer"].cancel()
                state["timer"] = None

    debounced.cancel = cancel  # type: ignore[attr-defined]
    return debounced
