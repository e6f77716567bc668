"""Prometheus metrics for ledger mutations, accrual runs and store health"""

from decimal import Decimal

from prometheus_client import Counter, Gauge, Histogram

from loan_ledger.domain.models import AccrualResult, Transaction

# Ledger metrics
transaction_counter = Counter(
    "loan_ledger_transactions_total",
    "Ledger transactions committed",
    ["type"],  # interest | payment
)

total_debt_gauge = Gauge(
    "loan_ledger_total_debt",
    "Outstanding balance after the last observed mutation or read",
)

validation_failure_counter = Counter(
    "loan_ledger_validation_failures_total",
    "Mutations rejected before touching the store",
)

# Accrual metrics
accrual_counter = Counter(
    "loan_ledger_accrual_runs_total",
    "Interest accrual evaluations",
    ["outcome"],  # applied | not-the-accrual-day | already-applied-this-month | no-outstanding-debt
)

# Store health
store_failure_counter = Counter(
    "loan_ledger_store_failures_total",
    "Failed store operations surfaced to callers",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transaction(transaction: Transaction) -> None:
    transaction_counter.labels(type=transaction.type.value).inc()
    record_balance(transaction.balance_after)


def record_balance(total_debt: Decimal) -> None:
    total_debt_gauge.set(float(total_debt))


def record_accrual(result: AccrualResult) -> None:
    """Count accrual outcomes; applied runs also count as an interest transaction"""
    outcome = "applied" if result.applied else result.reason.value
    accrual_counter.labels(outcome=outcome).inc()
    if result.transaction is not None:
        record_transaction(result.transaction)
