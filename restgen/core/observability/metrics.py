from __future__ import annotations

import re

from prometheus_client import Counter, Histogram


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"
    p = re.sub(r"/\d+", "/:id", p)
    return p


HTTP_REQUESTS_TOTAL = Counter(
    "restgen_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "restgen_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

AUTHZ_DECISIONS_TOTAL = Counter(
    "restgen_authz_decisions_total",
    "Role gate decisions",
    ["decision", "required_role", "operation", "table"],
)

STATEMENTS_TOTAL = Counter(
    "restgen_statements_total",
    "SQL statements dispatched by generated handlers",
    ["table", "operation", "outcome"],
)

SCHEMA_MATERIALIZATIONS_TOTAL = Counter(
    "restgen_schema_materializations_total",
    "CREATE TABLE IF NOT EXISTS runs at startup",
    ["table", "outcome"],
)

UNHANDLED_ERRORS_TOTAL = Counter(
    "restgen_unhandled_errors_total",
    "Requests that ended in an unexpected exception",
    ["table", "exception"],
)
