"""Prometheus metrics for monitoring sales, credit checks and receivable settlement"""

from prometheus_client import Counter, Histogram

# Sales metrics
sale_counter = Counter(
    "fiado_sales_total",
    "Sales and service orders recorded",
    ["sale_type", "payment_method"],
)

credit_check_counter = Counter(
    "fiado_credit_checks_total",
    "Credit limit checks on credit sales",
    ["outcome"],  # accepted | rejected
)

# Receivable metrics
settlement_counter = Counter(
    "fiado_settlements_total",
    "Receivables marked paid",
)

# Store health
persistence_failures_counter = Counter(
    "fiado_persistence_failures_total",
    "Failed row store reads and writes",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_sale(sale_type: str, payment_method: str) -> None:
    """Record a booked sale; credit sales also count as an accepted credit check"""
    sale_counter.labels(sale_type=sale_type, payment_method=payment_method).inc()
    if payment_method == "credit":
        credit_check_counter.labels(outcome="accepted").inc()


def record_credit_rejection() -> None:
    credit_check_counter.labels(outcome="rejected").inc()
