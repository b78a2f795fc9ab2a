"""Timing helpers for DepLocate."""

import functools
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, TypeVar

F = TypeVar('F', bound=Callable[..., Any])


@dataclass
class PerformanceMetrics:
    """Timing of a single measured operation."""

    function_name: str
    execution_time: float


class PerformanceMonitor:
    """Collects wall-clock timings of named operations."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.metrics: List[PerformanceMetrics] = []

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Context manager for measuring an operation.

        Args:
            name: Name of the operation being measured
        """
        start_time = time.perf_counter()
        try:
            yield
        finally:
            if self.enabled:
                self.metrics.append(PerformanceMetrics(
                    function_name=name,
                    execution_time=time.perf_counter() - start_time,
                ))

    def get_summary(self) -> Dict[str, Any]:
        """Get performance summary.

        Returns:
            Dictionary with performance summary, empty when nothing was measured
        """
        if not self.metrics:
            return {}

        total_time = sum(m.execution_time for m in self.metrics)
        return {
            "total_executions": len(self.metrics),
            "total_time": total_time,
            "average_time": total_time / len(self.metrics),
            "metrics": list(self.metrics),
        }


def benchmark(func: F) -> F:
    """Log how long ``func`` took at debug level."""
    logger = logging.getLogger("dep_locate.performance")

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            logger.debug("%s took %.4f seconds", func.__name__, time.perf_counter() - start_time)
    return wrapper  # type: ignore[return-value]
