"""Prometheus metrics for sales volume, credit rejections and collections"""

from prometheus_client import Counter, Histogram

# Sale metrics
sale_counter = Counter(
    "crediario_sales_total",
    "Sale creation attempts",
    ["outcome"],  # created | credit_rejected | invalid
)

financed_amount_histogram = Histogram(
    "crediario_financed_amount_cents",
    "Financed amount per created sale",
    buckets=[10_000, 50_000, 100_000, 250_000, 500_000, 1_000_000, 2_500_000],
)

sale_cancellation_counter = Counter(
    "crediario_sale_cancellations_total",
    "Cancelled sales",
)

# Payment metrics
payment_counter = Counter(
    "crediario_payments_total",
    "Payments recorded",
    ["method"],
)

installment_settled_counter = Counter(
    "crediario_installments_settled_total",
    "Installments fully paid",
)

payment_rejection_counter = Counter(
    "crediario_payment_rejections_total",
    "Rejected payments",
    ["reason"],  # invalid_amount | exceeds_balance | not_payable
)

# Document rendering
document_failure_counter = Counter(
    "document_render_failures_total",
    "Failed contract rendering calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_sale(outcome: str, financed_cents: int = 0) -> None:
    """Record sale outcome; financed amount only for created sales"""
    sale_counter.labels(outcome=outcome).inc()
    if outcome == "created":
        financed_amount_histogram.observe(financed_cents)


def record_payment(method: str, settled: bool) -> None:
    payment_counter.labels(method=method).inc()
    if settled:
        installment_settled_counter.inc()
