"""Remote call metrics.

Counts calls, failures and durations per game endpoint. The summary is
logged when the bot shuts down.

Usage:
    @tracked("GetPlanet")
    async def fetch_planet(self, planet_id: str) -> Planet:
        ...

    log_metrics_summary()
"""

import logging
import time
from collections import defaultdict
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from pydantic import BaseModel, PrivateAttr

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class CallMetrics(BaseModel):
    """Metrics for a single endpoint."""

    call_count: int = 0
    error_count: int = 0
    total_duration_ms: float = 0.0
    max_duration_ms: float = 0.0

    @property
    def avg_duration_ms(self) -> float:
        if self.call_count == 0:
            return 0.0
        return self.total_duration_ms / self.call_count

    @property
    def error_rate(self) -> float:
        if self.call_count == 0:
            return 0.0
        return self.error_count / self.call_count

    def record_call(self, duration_ms: float, is_error: bool = False) -> None:
        self.call_count += 1
        self.total_duration_ms += duration_ms
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        if is_error:
            self.error_count += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_count": self.call_count,
            "error_count": self.error_count,
            "error_rate": f"{self.error_rate:.1%}",
            "avg_duration_ms": round(self.avg_duration_ms, 2),
            "max_duration_ms": round(self.max_duration_ms, 2),
        }


class MetricsCollector(BaseModel):
    """Collects metrics for all endpoints."""

    _metrics: dict[str, CallMetrics] = PrivateAttr(
        default_factory=lambda: defaultdict(CallMetrics)
    )
    _started_at: float = PrivateAttr(default_factory=time.time)

    def record(self, name: str, duration_ms: float, is_error: bool = False) -> None:
        self._metrics[name].record_call(duration_ms, is_error)

    def get_summary(self) -> dict[str, Any]:
        total_calls = sum(m.call_count for m in self._metrics.values())
        total_errors = sum(m.error_count for m in self._metrics.values())
        return {
            "uptime_seconds": round(time.time() - self._started_at, 2),
            "total_calls": total_calls,
            "total_errors": total_errors,
            "overall_error_rate": f"{total_errors / max(1, total_calls):.1%}",
            "by_endpoint": {name: m.to_dict() for name, m in self._metrics.items()},
        }

    def log_summary(self, level: int = logging.INFO) -> None:
        summary = self.get_summary()
        logger.log(
            level,
            "API calls: %d calls, %d errors, %.0fs uptime",
            summary["total_calls"],
            summary["total_errors"],
            summary["uptime_seconds"],
        )
        for name, metrics in summary["by_endpoint"].items():
            logger.log(
                level,
                "  %s: %d calls, %s errors, avg %.0fms",
                name,
                metrics["call_count"],
                metrics["error_rate"],
                metrics["avg_duration_ms"],
            )

    def reset(self) -> None:
        self._metrics.clear()
        self._started_at = time.time()


_collector = MetricsCollector()


def tracked(
    name: str | None = None,
) -> Callable[
    [Callable[P, Coroutine[Any, Any, T]]],
    Callable[P, Coroutine[Any, Any, T]],
]:
    """Decorator recording call metrics for an async function.

    Args:
        name: Name to record metrics under. Defaults to the function name.
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]],
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        metric_name = name or func.__name__

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start = time.perf_counter()
            is_error = False
            try:
                return await func(*args, **kwargs)
            except Exception:
                is_error = True
                raise
            finally:
                duration_ms = (time.perf_counter() - start) * 1000
                _collector.record(metric_name, duration_ms, is_error)

        return wrapper

    return decorator


def log_metrics_summary() -> None:
    _collector.log_summary()


def get_metrics_summary() -> dict[str, Any]:
    return _collector.get_summary()


def reset_metrics() -> None:
    _collector.reset()
