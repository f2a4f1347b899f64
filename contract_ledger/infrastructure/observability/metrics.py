"""Prometheus metrics for contract lifecycle, payments and notification delivery"""

from prometheus_client import Counter, Histogram

# Contract metrics
contracts_created_counter = Counter(
    "contracts_created_total",
    "Contracts created",
    ["frequency"],  # monthly | weekly | daily
)

installments_generated_counter = Counter(
    "installments_generated_total",
    "Installment schedule rows materialized",
)

contract_rollback_counter = Counter(
    "contract_rollbacks_total",
    "Contracts deleted again because their ledger could not be stored",
)

contracts_voided_counter = Counter(
    "contracts_voided_total",
    "Contracts moved to voided",
)

cleanup_failure_counter = Counter(
    "void_cleanup_failures_total",
    "Best-effort cascade steps that failed after a void committed",
    ["step"],  # billing | property
)

# Payment metrics
payments_recorded_counter = Counter(
    "payments_recorded_total",
    "Installment payments recorded",
)

payments_reverted_counter = Counter(
    "payments_reverted_total",
    "Installment payments reverted",
)

# Transfer metrics
transfer_decision_counter = Counter(
    "transfer_decisions_total",
    "Ownership transfer decisions",
    ["outcome"],  # approved | rejected
)

# Notification metrics
notification_latency_histogram = Histogram(
    "notification_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

notification_failure_counter = Counter(
    "notification_failures_total",
    "Failed notification deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_contract_created(frequency: str, installment_count: int) -> None:
    contracts_created_counter.labels(frequency=frequency).inc()
    installments_generated_counter.inc(installment_count)
