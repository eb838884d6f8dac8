"""
Prometheus metrics collection for the tender pricing engine.

Counters and histograms are process-local; callers that want to scrape
them mount prometheus_client's exposition in their own service.
"""

from prometheus_client import Counter, Histogram

# ============================================================================
# Pricing Run Metrics
# ============================================================================

pricing_run_duration_seconds = Histogram(
    "tender_pricing_run_duration_seconds",
    "Duration of a full tender pricing run in seconds",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)

items_priced_total = Counter(
    "tender_items_priced_total",
    "Total number of tender items evaluated",
    ["status"],  # status: RESOLVED, UNRESOLVED
)

# ============================================================================
# Rule Engine Metrics
# ============================================================================

actions_applied_total = Counter(
    "tender_actions_applied_total",
    "Total number of rule actions applied to items",
    ["kind"],
)

config_warnings_total = Counter(
    "tender_config_warnings_total",
    "Total number of configuration warnings raised during evaluation",
    ["code"],
)

reduction_steps = Histogram(
    "tender_reduction_steps",
    "Number of discount steps taken per sequential reduction",
    ["item_type"],
    buckets=(0, 1, 2, 3, 5, 10, 20, 50, 100, 500),
)


# ============================================================================
# Helper Functions
# ============================================================================


def record_run(duration_seconds: float, statuses: list[str]) -> None:
    """
    Record the outcome of one pricing run.

    Args:
        duration_seconds: Wall time of the run
        statuses: Resolution status of every item in the run
    """
    pricing_run_duration_seconds.observe(duration_seconds)
    for status in statuses:
        items_priced_total.labels(status=status).inc()
