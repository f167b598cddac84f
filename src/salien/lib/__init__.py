"""Reusable, parametric building blocks.

Nothing in here knows about planets or zones; the game logic lives in
salien.bot.

Modules:
- cache: TTL cache with single-flight refresh
- logs: Logging setup and per-account log prefixes
- metrics: Remote call metrics with @tracked decorator
- realtime: Shutdown-aware Scheduler (sleep raises ShutdownRequested)
- retry: Fixed-delay RetryPolicy on top of tenacity
- throttle: Concurrency and spacing limits for outgoing requests
"""

from salien.lib.cache import CacheEntry, TTLCache
from salien.lib.logs import AccountLogger, account_label, configure_logging
from salien.lib.metrics import (
    CallMetrics,
    MetricsCollector,
    get_metrics_summary,
    log_metrics_summary,
    reset_metrics,
    tracked,
)
from salien.lib.realtime import Scheduler, ShutdownRequested
from salien.lib.retry import RetryPolicy, SleepFunc
from salien.lib.throttle import Throttle

__all__ = [
    # Cache
    "CacheEntry",
    "TTLCache",
    # Logs
    "AccountLogger",
    "account_label",
    "configure_logging",
    # Metrics
    "CallMetrics",
    "MetricsCollector",
    "get_metrics_summary",
    "log_metrics_summary",
    "reset_metrics",
    "tracked",
    # Realtime
    "Scheduler",
    "ShutdownRequested",
    # Retry
    "RetryPolicy",
    "SleepFunc",
    # Throttle
    "Throttle",
]
