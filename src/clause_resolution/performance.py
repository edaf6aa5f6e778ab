"""Timing utilities for the Clause Preference Resolution Engine.

Resolution itself is cheap; these helpers exist so that a pipeline run can
report where its time went (normalization, aggregation, audit writes) and
flag runs that exceed the configured budget.
"""

import functools
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class PerformanceMetrics:
    """Timing record for one pipeline stage."""

    operation_name: str
    start_time: float = field(default_factory=time.perf_counter)
    duration: Optional[float] = None
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def finish(self, success: bool = True, error: Optional[str] = None) -> None:
        self.duration = time.perf_counter() - self.start_time
        self.success = success
        self.error = error


class PerformanceMonitor:
    """
    Collects stage timings across pipeline runs.

    Stages are keyed by name; each run appends a new PerformanceMetrics so
    averages and success rates can be computed over the pipeline's lifetime.
    """

    def __init__(self, max_processing_time: float = 5.0):
        """
        Initialize the monitor.

        Args:
            max_processing_time: Seconds after which a finished stage is
                logged as slow.
        """
        self.max_processing_time = max_processing_time
        self.metrics: Dict[str, List[PerformanceMetrics]] = {}
        self._open: List[PerformanceMetrics] = []

    def start_operation(self, operation_name: str, **metadata) -> PerformanceMetrics:
        metric = PerformanceMetrics(operation_name=operation_name, metadata=metadata)
        self._open.append(metric)
        return metric

    def end_operation(
        self,
        metric: Optional[PerformanceMetrics] = None,
        success: bool = True,
        error: Optional[str] = None
    ) -> None:
        """
        Finish a stage and file it under its name.

        Args:
            metric: The stage to finish. Defaults to the most recently started.
            success: Whether the stage succeeded.
            error: Optional error message.
        """
        if metric is None:
            if not self._open:
                return
            metric = self._open.pop()
        elif metric in self._open:
            self._open.remove(metric)

        metric.finish(success=success, error=error)
        self.metrics.setdefault(metric.operation_name, []).append(metric)

        if metric.duration > self.max_processing_time:
            logger.warning(
                f"Stage '{metric.operation_name}' took {metric.duration:.3f}s, "
                f"budget is {self.max_processing_time}s"
            )

    @contextmanager
    def track(self, operation_name: str, **metadata) -> Iterator[PerformanceMetrics]:
        """Time the enclosed block, marking it failed if it raises."""
        metric = self.start_operation(operation_name, **metadata)
        try:
            yield metric
        except Exception as e:
            self.end_operation(metric, success=False, error=str(e))
            raise
        self.end_operation(metric)

    def get_operation_stats(self, operation_name: str) -> Dict[str, Any]:
        """
        Aggregate timings for one stage.

        Returns:
            Dictionary with count, average, min, max, total and success_rate,
            or an empty dictionary if the stage never finished.
        """
        records = self.metrics.get(operation_name, [])
        durations = [m.duration for m in records if m.duration is not None]
        if not durations:
            return {}

        return {
            "count": len(durations),
            "average": sum(durations) / len(durations),
            "min": min(durations),
            "max": max(durations),
            "total": sum(durations),
            "success_rate": sum(1 for m in records if m.success) / len(records),
        }

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: self.get_operation_stats(name) for name in self.metrics}

    def reset(self) -> None:
        self.metrics.clear()
        self._open.clear()


def timed_operation(operation_name: str):
    """
    Decorator logging how long the wrapped call took.

    Example:
        @timed_operation("normalize_submissions")
        def normalize(...):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{operation_name} failed after {time.perf_counter() - start:.3f}s: {e}"
                )
                raise
            logger.debug(f"{operation_name} completed in {time.perf_counter() - start:.3f}s")
            return result
        return wrapper
    return decorator
