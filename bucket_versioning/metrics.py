"""
Prometheus metrics for object-store calls.

Storage metrics are prefixed with ``storage_`` and labeled by
``operation`` (``put``, ``get_version``, ``list_versions_for_key``, ...)
so every adapter method can be drilled into separately.

Metrics are exposed via ``/metrics`` in the FastAPI app.
"""
from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------

STORAGE_OPERATIONS_TOTAL = Counter(
    "storage_operations_total",
    "Object-store calls by operation and outcome",
    ["operation", "status"],
)

UNDELETE_TOTAL = Counter(
    "undelete_total",
    "Undelete requests by outcome",
    ["outcome"],
)

# ---------------------------------------------------------------------------
# Histograms
# ---------------------------------------------------------------------------

STORAGE_OPERATION_DURATION = Histogram(
    "storage_operation_duration_seconds",
    "Latency of object-store calls in seconds",
    ["operation"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
)
