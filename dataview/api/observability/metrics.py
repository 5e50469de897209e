from __future__ import annotations

import re
from prometheus_client import Counter, Histogram


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"

    p = re.sub(r"^/api/data/[^/]+/distinct/[^/]+$", "/api/data/:table/distinct/:column", p)
    p = re.sub(r"^/api/data/[^/]+$", "/api/data/:table", p)
    p = re.sub(r"^/api/tables/[^/]+/columns$", "/api/tables/:table/columns", p)
    p = re.sub(r"^/api/stats/[^/]+$", "/api/stats/:table", p)

    return p


HTTP_REQUESTS_TOTAL = Counter(
    "dataview_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "dataview_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
