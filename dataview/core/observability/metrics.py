from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter
from prometheus_client import Histogram

# Named counters (custom)
_NAMED = Counter()

QUERY_DURATION_SECONDS = Histogram(
    "dataview_query_duration_seconds",
    "Database statement duration in seconds",
    ["kind"],
)

QUERY_ERRORS_TOTAL = PromCounter(
    "dataview_query_errors_total",
    "Database statements that raised",
    ["kind"],
)


def reset_metrics() -> None:
    """
    Test helper: clears named counters to avoid cross-test leakage.
    Prometheus collectors are process-global and are left alone.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    """
    Increment a named counter (health probes, validation rejects, etc.).
    """
    if not name:
        return
    _NAMED[name] += int(value)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
